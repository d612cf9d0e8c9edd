from pathlib import Path
from typing import Union

from playwright.async_api import Page

from ..core.constants import TIMEOUT


async def wait_for_network_idle(page: Page, timeout: float = TIMEOUT.MEDIUM) -> None:
    await page.wait_for_load_state("networkidle", timeout=timeout)


async def wait_for_dom_content_loaded(page: Page, timeout: float = TIMEOUT.MEDIUM) -> None:
    await page.wait_for_load_state("domcontentloaded", timeout=timeout)


async def take_screenshot(page: Page, name: str,
                          directory: Union[str, Path] = "test-results/screenshots") -> bytes:
    """Full page screenshot saved as <directory>/<name>.png"""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    return await page.screenshot(path=str(directory / f"{name}.png"), full_page=True)
