from typing import List, Optional

from playwright.async_api import Locator, Page

from ..core.config import EnvConfig
from ..core.constants import PAGE_PATH
from .base import BasePage


class TodoPage:
    """TodoMVC page"""

    def __init__(self, page: Page, config: Optional[EnvConfig] = None):
        self.base = BasePage(page, PAGE_PATH["TODO"], config)
        self.new_todo: Locator = page.get_by_placeholder("What needs to be done?")
        self.todo_items: Locator = page.get_by_test_id("todo-title")

    def get_page(self) -> Page:
        return self.base.get_page()

    def get_url(self) -> str:
        return self.base.get_url()

    async def goto(self) -> None:
        await self.base.goto()

    def todo_item(self, index: int) -> Locator:
        return self.base.page.get_by_test_id("todo-item").nth(index)

    async def add_todo(self, item: str) -> None:
        await self.new_todo.fill(item)
        await self.new_todo.press("Enter")

    async def add_todos(self, items: List[str]) -> None:
        for item in items:
            await self.add_todo(item)

    async def get_todos(self) -> List[str]:
        return await self.todo_items.all_text_contents()

    async def todo_count(self) -> int:
        return await self.todo_items.count()

    async def complete_todo(self, index: int) -> None:
        await self.todo_item(index).get_by_role("checkbox").check()
