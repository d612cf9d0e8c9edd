import re
from typing import TYPE_CHECKING, List

from playwright.async_api import expect

from .registry import given, when, then

if TYPE_CHECKING:
    from ..executor.context import FixtureContext


@given("I am on the Todo page")
async def open_todo_page(context: "FixtureContext"):
    await context.todo_page.goto()


@when("I add a todo {string}")
async def add_todo(context: "FixtureContext", item: str):
    await context.todo_page.add_todo(item)


@when("I add the todos {listOfString}")
async def add_todos(context: "FixtureContext", items: List[str]):
    await context.todo_page.add_todos(items)
    context.store_data("added_todos", items)


@then("I should see {string} in the list")
async def todo_in_list(context: "FixtureContext", item: str):
    todos = await context.todo_page.get_todos()
    assert item in todos, f"'{item}' not found in todo list: {todos}"


@then("I should see {int} todos in the list")
async def todo_count(context: "FixtureContext", expected: int):
    await expect(context.todo_page.todo_items).to_have_count(expected)


@when("I complete the todo at index {int}")
async def complete_todo(context: "FixtureContext", index: int):
    await context.todo_page.complete_todo(index)


@then("the todo at index {int} should be marked as completed")
async def todo_is_completed(context: "FixtureContext", index: int):
    await expect(context.todo_page.todo_item(index)).to_have_class(re.compile("completed"))
