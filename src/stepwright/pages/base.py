import asyncio
import logging
from typing import Any, Dict, List, Optional, Protocol, Union, runtime_checkable

from playwright.async_api import FrameLocator, Locator, Page, Response, expect

from ..core.config import EnvConfig
from ..core.constants import TIMEOUT
from ..core.exceptions import ExecutionError, ValidationError
from ..data.loader import extract_keys
from .url import resolve_url

logger = logging.getLogger(__name__)


@runtime_checkable
class PageObject(Protocol):
    """Capabilities every page object exposes to step definitions"""

    def get_page(self) -> Page:
        ...

    def get_url(self) -> str:
        ...

    async def goto(self) -> None:
        ...


class BasePage:
    """
    Generic browser interactions for one logical page.

    Every interaction performs a single Playwright action or assertion.
    Assertions go through Playwright's ``expect`` and re-poll until its
    timeout. ``index`` arguments are 0-based and default to the first match.
    """

    def __init__(self, page: Page, path: str, config: Optional[EnvConfig] = None,
                 subdomain: Optional[str] = None):
        self.page = page
        self.path = path
        self.config = config or EnvConfig()
        self.subdomain = subdomain

    def get_page(self) -> Page:
        """
        Playwright page of the current page object.

        Should be used for page assertions only.
        """
        return self.page

    def get_url(self) -> str:
        return resolve_url(self.path, self.config, self.subdomain)

    def set_path(self, path: str) -> None:
        self.path = path

    # Navigation

    async def goto(self) -> None:
        """Open current page"""
        url = self.get_url()
        logger.debug(f"Navigating to {url}")
        await self.page.goto(url)

    async def go_back(self) -> None:
        await self.page.go_back()

    async def go_forward(self) -> None:
        await self.page.go_forward()

    async def close(self) -> None:
        """Close current tab"""
        await self.page.close()

    async def close_by_index(self, index: int) -> None:
        """Close the tab at index within the browser context"""
        await self.page.context.pages[index].close()

    # Locators

    def get_by_locator(self, locator: str, index: int = 0) -> Locator:
        return self.page.locator(locator).nth(index)

    def get_by_role(self, role: str, name: Optional[str] = None, exact: bool = True, index: int = 0) -> Locator:
        return self.page.get_by_role(role, name=name, exact=exact).nth(index)

    def get_by_label(self, label: str, exact: bool = True, index: int = 0) -> Locator:
        return self.page.get_by_label(label, exact=exact).nth(index)

    def get_by_placeholder(self, placeholder: str, exact: bool = True, index: int = 0) -> Locator:
        return self.page.get_by_placeholder(placeholder, exact=exact).nth(index)

    def get_by_text(self, text: str, exact: bool = True, index: int = 0) -> Locator:
        return self.page.get_by_text(text, exact=exact).nth(index)

    # Waits

    async def wait_for_timeout(self, timeout: int) -> None:
        """Wait for a fixed time in milliseconds. Should be used for debugging only."""
        await self.page.wait_for_timeout(timeout)

    async def wait_for_response(self, url: str, code: int = 200,
                                timeout: float = TIMEOUT.LONG) -> Response:
        """Wait for a response whose URL contains url and whose status is code"""
        return await self.page.wait_for_response(
            lambda response: url in response.url and response.status == code,
            timeout=timeout
        )

    async def wait_for_role_visible(self, role: str, name: Optional[str] = None, exact: bool = True) -> None:
        await self.page.get_by_role(role, name=name, exact=exact).wait_for()

    async def wait_for_locator_visible(self, locator: str) -> None:
        await self.page.locator(locator).wait_for(state="visible")

    async def wait_for_role_with_index_visible(self, role: str, name: Optional[str] = None, index: int = 0) -> None:
        await self.get_by_role(role, name, index=index).wait_for()

    # Hover

    async def hover_by_label(self, label: str) -> None:
        await self.page.get_by_label(label).hover()

    async def hover_by_role(self, role: str, name: str) -> None:
        await self.page.get_by_role(role, name=name, exact=True).hover()

    async def hover_by_locator(self, locator: str) -> None:
        await self.page.locator(locator).hover()

    # Clipboard

    async def _write_clipboard(self, text: Optional[str]) -> None:
        await self.page.evaluate("text => navigator.clipboard.writeText(text)", text or "")

    async def _read_clipboard(self) -> str:
        return await self.page.evaluate("() => navigator.clipboard.readText()")

    async def copy_by_label(self, label: str) -> None:
        """Copy the text of the element with label to the clipboard"""
        await self._write_clipboard(await self.page.get_by_label(label).text_content())

    async def copy_by_locator(self, locator: str) -> None:
        await self._write_clipboard(await self.page.locator(locator).text_content())

    async def paste_by_label(self, label: str) -> None:
        """Paste the clipboard into the input with label"""
        text = await self._read_clipboard()
        await self.page.get_by_label(label).fill(text)

    async def paste_by_role_textbox(self, name: str) -> None:
        text = await self._read_clipboard()
        await self.page.get_by_role("textbox", name=name).fill(text)

    async def paste_by_placeholder(self, placeholder: str) -> None:
        text = await self._read_clipboard()
        await self.page.get_by_placeholder(placeholder, exact=True).fill(text)

    async def paste_by_locator(self, locator: str, index: int = 0) -> None:
        text = await self._read_clipboard()
        await self.page.locator(locator).nth(index).fill(text)

    # Click

    async def click_by_text(self, text: str, index: int = 0) -> None:
        await self.get_by_text(text, index=index).click()

    async def click_by_text_in_frame(self, frame: FrameLocator, text: str, index: int = 0) -> None:
        await frame.get_by_text(text, exact=True).nth(index).click()

    async def click_by_role(self, role: str, name: str, exact: bool = True, index: int = 0) -> None:
        """
        Click an element by its role and accessible name.

        Args:
            role: ARIA role, e.g. 'button' or 'link'
            name: Accessible name of the element
            exact: Whether the name must match exactly
            index: Which match to click when several elements match
        """
        await self.get_by_role(role, name, exact=exact, index=index).click()

    async def click_by_role_in_frame(self, frame: FrameLocator, role: str, name: str, index: int = 0) -> None:
        await frame.get_by_role(role, name=name).nth(index).click()

    async def click_by_locator(self, locator: str, index: int = 0, **options: Any) -> None:
        """Click the index-th element matching locator; options go to Locator.click"""
        await self.page.locator(locator).nth(index).click(**options)

    async def click_by_locator_in_frame(self, frame: FrameLocator, locator: str, index: int = 0) -> None:
        await frame.locator(locator).nth(index).click()

    async def click_by_label(self, label: str, force: bool = False) -> None:
        await self.page.get_by_label(label, exact=True).click(force=force)

    # Fill

    async def fill_by_role(self, role: str, name: str, value: str, index: int = 0) -> None:
        await self.get_by_role(role, name, index=index).fill(value)

    async def fill_by_role_textbox(self, name: str, value: str, index: int = 0) -> None:
        await self.page.get_by_role("textbox", name=name).nth(index).fill(value)

    async def fill_by_placeholder(self, placeholder: str, value: str, exact: bool = True, index: int = 0) -> None:
        await self.get_by_placeholder(placeholder, exact=exact, index=index).fill(value)

    async def fill_by_locator(self, locator: str, value: Optional[str], index: int = 0) -> None:
        """Fill the index-th element matching locator; a None value is ignored"""
        if value is not None:
            await self.page.locator(locator).nth(index).fill(value)

    async def fill_by_locator_in_frame(self, frame: FrameLocator, locator: str, value: str, index: int = 0) -> None:
        await frame.locator(locator).nth(index).fill(value)

    # Select

    async def select_option_by_label(self, label: str, option: str) -> None:
        await self.page.get_by_label(label, exact=True).select_option(option)

    async def select_option_by_text(self, text: str, option: str) -> None:
        await self.page.get_by_text(text, exact=True).select_option(option)

    async def select_option_by_locator(self, locator: str, value: Union[str, List[str]], index: int = 0) -> None:
        await self.page.locator(locator).nth(index).select_option(value)

    async def select_option(self, locator: str, option: str, index: int = 0) -> None:
        """Open a custom dropdown by locator, then click the option by its label"""
        await self.click_by_locator(locator, index)
        await self.click_by_label(option)

    async def select_combobox_options(self, options: List[str]) -> None:
        """Open the i-th combobox on the page and pick options[i] in it"""
        for i, option in enumerate(options):
            await self.click_by_role("combobox", "", exact=False, index=i)
            await self.click_by_role("option", option)

    async def count_by_text(self, text: str) -> int:
        elements = await self.page.get_by_text(text, exact=True).all()
        return len(elements)

    # Frames

    async def get_frame_by_index(self, locator: str, index: int = 0, attribute: str = "name") -> FrameLocator:
        """
        Frame locator for the index-th iframe matching locator.

        The iframe is re-located by the value of attribute so the returned
        frame stays valid if the surrounding DOM re-renders.
        """
        iframe = self.page.locator(locator).nth(index)
        value = await iframe.get_attribute(attribute)
        return self.page.frame_locator(f'iframe[{attribute}="{value}"]')

    # Assertions

    async def to_have_value(self, selector: str, value: str, index: int = 0) -> None:
        await expect(self.page.locator(selector).nth(index)).to_have_value(value)

    async def to_have_attribute(self, selector: str, attribute_name: str, value: str) -> None:
        await expect(self.page.locator(selector)).to_have_attribute(attribute_name, value)

    async def to_have_text_from_selection(self, selector: str, text: str, index: int = 0) -> None:
        await expect(self.page.locator(selector).nth(index)).to_have_text(text)

    async def to_contain_text(self, selector: str, text: str, index: int = 0) -> None:
        await expect(self.page.locator(selector).nth(index)).to_contain_text(text)

    async def assert_form_selected_options(self, selector: str, questions: List[str], options: List[str]) -> None:
        """Check the combobox next to each question shows the matching option"""
        if len(questions) != len(options):
            raise ValueError("questions and options must have the same length")
        await asyncio.gather(*(
            expect(
                self.page.locator(selector).filter(has_text=question).get_by_role("combobox")
            ).to_contain_text(option)
            for question, option in zip(questions, options)
        ))

    # Network

    async def _json_body(self, response: Response) -> Any:
        try:
            return await response.json()
        except Exception as e:
            raise ExecutionError(f"Failed to parse response from {response.url}: {e}") from e

    async def get_keys_from_api_response(self, endpoint: str, keys: List[str],
                                         timeout: float = TIMEOUT.LONG) -> Dict[str, Any]:
        """
        Wait for the next response from endpoint and extract keys from its JSON body.

        Args:
            endpoint: Substring of the response URL
            keys: Dotted key paths to extract
            timeout: Milliseconds to wait for the response

        Returns:
            Mapping of each found key to its value
        """
        response = await self.page.wait_for_response(lambda r: endpoint in r.url, timeout=timeout)
        body = await self._json_body(response)
        extracted = extract_keys(body, keys)
        if not extracted:
            raise ValidationError("No specified keys found in the response")
        return extracted

    async def check_feature_flag_is_enabled(self, endpoint: str, key: str,
                                            timeout: float = TIMEOUT.LONG) -> Optional[bool]:
        """
        Read a feature flag from the next response of endpoint.

        Returns the flag's ``enabled`` value, or None if the flag is absent.
        """
        response = await self.page.wait_for_response(lambda r: endpoint in r.url, timeout=timeout)
        body = await self._json_body(response)
        flags = body.get("data", body) if isinstance(body, dict) else body
        if not isinstance(flags, list):
            raise ExecutionError(f"Unexpected feature flag payload from {response.url}")

        for flag in flags:
            if isinstance(flag, dict) and flag.get("key") == key:
                enabled = bool(flag.get("enabled"))
                logger.info(f'{key} - "enabled": {enabled}')
                return enabled

        logger.warning(f"{key} not found")
        return None
