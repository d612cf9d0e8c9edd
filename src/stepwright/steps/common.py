"""
Generic step definitions shared by every feature.

Handlers receive the scenario's FixtureContext first, then the typed
placeholder values. Indexes are 0-based unless the phrase says otherwise.
"""
import re
import logging
from typing import TYPE_CHECKING, Any, List

from playwright.async_api import expect

from ..core.exceptions import DataLoadError
from ..data.loader import get_data_by_key
from .registry import given, when, then

if TYPE_CHECKING:
    from ..executor.context import FixtureContext

logger = logging.getLogger(__name__)

COMMON_DATA = ("commonDataProvider",)


def _common_value(context: "FixtureContext", data_key: str) -> Any:
    value = get_data_by_key(context.common_data_provider.common_data, data_key)
    if value is None:
        raise DataLoadError(f"No common data found for key: {data_key}")
    return value


def _common_value_or_key(context: "FixtureContext", data_key: str) -> str:
    """Value stored under data_key, or the key itself when there is none"""
    value = get_data_by_key(context.common_data_provider.common_data, data_key)
    return data_key if value is None else str(value)


# Navigation

@given("I am on the page {string}")
@given("I navigate to {string}")
async def open_page(context: "FixtureContext", page_name: str):
    """Open the page object registered under page_name"""
    await context.resolve_page(page_name).goto()


@given("I go to home page")
async def go_to_home_page(context: "FixtureContext"):
    await context.base_page.goto()


@when("I go back")
async def go_back(context: "FixtureContext"):
    await context.base_page.go_back()


@when("I go forward")
async def go_forward(context: "FixtureContext"):
    await context.base_page.go_forward()


@when("I close current tab")
async def close_current_tab(context: "FixtureContext"):
    await context.base_page.close()


@when("I close tab at index {int}")
async def close_tab_at_index(context: "FixtureContext", index: int):
    await context.base_page.close_by_index(index)


# Wait

@when("I wait for {int} seconds")
async def wait_for_seconds(context: "FixtureContext", seconds: int):
    await context.base_page.wait_for_timeout(seconds * 1000)


@when("I wait for response of API with key {string}", fixtures=COMMON_DATA)
async def wait_for_api_response(context: "FixtureContext", data_key: str):
    """Wait for a 200 response from the URL stored in common data"""
    api_url = _common_value(context, data_key)
    await context.base_page.wait_for_response(str(api_url))


@when("I wait for element with role {string} and name {string} to be visible")
async def wait_for_role_visible(context: "FixtureContext", role: str, name: str):
    await context.base_page.wait_for_role_visible(role, name, True)


@when("I wait for element with locator {string} to be visible")
async def wait_for_locator_visible(context: "FixtureContext", locator: str):
    await context.base_page.wait_for_locator_visible(locator)


# Type

@when("I type data with key {string} to input with role {string}", fixtures=COMMON_DATA)
async def type_data_to_role(context: "FixtureContext", data_key: str, input_name: str):
    data_content = _common_value(context, data_key)
    await context.base_page.fill_by_role_textbox(input_name, str(data_content))


@when("I type data with key {string} to input with locator {string}", fixtures=COMMON_DATA)
async def type_data_to_locator(context: "FixtureContext", data_key: str, locator: str):
    await context.base_page.fill_by_locator(locator, _common_value_or_key(context, data_key))


@when("I type {string} to input with locator {string}")
async def type_to_locator(context: "FixtureContext", text: str, locator: str):
    await context.base_page.fill_by_locator(locator, text)


@when("I type {string} to input with role {string}")
async def type_to_role(context: "FixtureContext", text: str, input_name: str):
    await context.base_page.fill_by_role_textbox(input_name, text)


@when("I type {string} to input with placeholder {string}")
async def type_to_placeholder(context: "FixtureContext", text: str, placeholder: str):
    await context.base_page.fill_by_placeholder(placeholder, text)


@when("I type {string} to input with role {string} at index {int}")
async def type_to_role_at_index(context: "FixtureContext", text: str, name: str, index: int):
    await context.base_page.fill_by_role_textbox(name, text, index)


@when("I type {string} to input with locator {string} at index {int}")
async def type_to_locator_at_index(context: "FixtureContext", text: str, locator: str, index: int):
    await context.base_page.fill_by_locator(locator, text, index)


@when("I type {string} to input with placeholder {string} at index {int}")
async def type_to_placeholder_at_index(context: "FixtureContext", text: str, placeholder: str, index: int):
    await context.base_page.fill_by_placeholder(placeholder, text, index=index)


@when("I fill all the inputs with placeholder {string} with values: {listOfString}")
async def fill_all_by_placeholder(context: "FixtureContext", placeholder: str, values: List[str]):
    """Fill the i-th input with placeholder using values[i]"""
    for index, value in enumerate(values):
        await context.base_page.fill_by_placeholder(placeholder, value, index=index)


# Hover

@when("I hover on element with label {string}")
async def hover_by_label(context: "FixtureContext", label: str):
    await context.base_page.hover_by_label(label)


@when("I hover on element with locator {string}")
async def hover_by_locator(context: "FixtureContext", locator: str):
    await context.base_page.hover_by_locator(locator)


@when("I hover on element with role {string} and name {string}")
async def hover_by_role(context: "FixtureContext", role: str, name: str):
    await context.base_page.hover_by_role(role, name)


# Click

@when("I click element with locator {string}")
@when("I click button with locator {string}")
async def click_by_locator(context: "FixtureContext", locator: str):
    await context.base_page.click_by_locator(locator)


@when("I click button with locator {string} at index {int}")
async def click_by_locator_at_index(context: "FixtureContext", locator: str, index: int):
    await context.base_page.click_by_locator(locator, index)


@when("I click element with label {string}")
async def click_by_label(context: "FixtureContext", label: str):
    await context.base_page.click_by_label(label)


@when("I click element with role {string} and name {string}")
async def click_by_role(context: "FixtureContext", role: str, name: str):
    await context.base_page.click_by_role(role, name)


@when("I click element with role {string} and name {string} at index {int}")
async def click_by_role_at_index(context: "FixtureContext", role: str, name: str, index: int):
    await context.base_page.click_by_role(role, name, index=index)


@when("I click element with text {string} at index {int}")
async def click_by_text_at_index(context: "FixtureContext", text: str, index: int):
    await context.base_page.click_by_text(text, index)


@when("I click link {string}")
async def click_link(context: "FixtureContext", name: str):
    await context.base_page.click_by_role("link", name)


@when("I click button {string}")
async def click_button(context: "FixtureContext", name: str):
    await context.base_page.click_by_role("button", name)


@when("I click button {string} at index {int}")
async def click_button_at_index(context: "FixtureContext", name: str, index: int):
    await context.base_page.click_by_role("button", name, index=index)


@when("I click menuitem {string}")
async def click_menuitem(context: "FixtureContext", name: str):
    await context.base_page.click_by_role("menuitem", name)


# Clipboard

@when("I copy element with label {string} to clipboard")
async def copy_by_label(context: "FixtureContext", label: str):
    await context.base_page.copy_by_label(label)


@when("I copy element with locator {string} to clipboard")
async def copy_by_locator(context: "FixtureContext", locator: str):
    await context.base_page.copy_by_locator(locator)


@when("I paste from clipboard to input with label {string}")
async def paste_by_label(context: "FixtureContext", label: str):
    await context.base_page.paste_by_label(label)


@when("I paste from clipboard to input with role {string}")
async def paste_by_role(context: "FixtureContext", name: str):
    await context.base_page.paste_by_role_textbox(name)


@when("I paste from clipboard to input with placeholder {string}")
async def paste_by_placeholder(context: "FixtureContext", placeholder: str):
    await context.base_page.paste_by_placeholder(placeholder)


@when("I paste from clipboard to input with locator {string}")
async def paste_by_locator(context: "FixtureContext", locator: str):
    await context.base_page.paste_by_locator(locator, 0)


@when("I paste from clipboard to input with locator {string} at index {int}")
async def paste_by_locator_at_index(context: "FixtureContext", locator: str, index: int):
    await context.base_page.paste_by_locator(locator, index)


# Assertions

@then("I should be in page {string}")
async def should_be_in_page(context: "FixtureContext", page_name: str):
    """Current URL equals the URL of the page object registered under page_name"""
    page_object = context.resolve_page(page_name)
    await expect(page_object.get_page()).to_have_url(page_object.get_url())


@then("I expect that the title contains {string}")
async def title_contains(context: "FixtureContext", keyword: str):
    await expect(context.base_page.get_page()).to_have_title(re.compile(keyword))


@then("I expect that the text contains {string} is visible")
async def text_containing_is_visible(context: "FixtureContext", text: str):
    await expect(context.page.get_by_text(text).first).to_be_visible()


@then("I expect that the text contains {string} is invisible")
async def text_containing_is_invisible(context: "FixtureContext", text: str):
    await expect(context.page.get_by_text(text).first).to_be_hidden()


@then("I expect that the text {string} is visible")
async def text_is_visible(context: "FixtureContext", text: str):
    await expect(context.page.get_by_text(text, exact=True).first).to_be_visible()


@then("I expect that the text {string} is invisible")
async def text_is_invisible(context: "FixtureContext", text: str):
    await expect(context.page.get_by_text(text, exact=True).first).to_be_hidden()


@then("I expect that the text of data with key {string} is visible", fixtures=COMMON_DATA)
async def data_text_is_visible(context: "FixtureContext", data_key: str):
    text = _common_value_or_key(context, data_key)
    await expect(context.page.get_by_text(text, exact=True).first).to_be_visible()


@then("I expect that the text of data with key {string} is invisible", fixtures=COMMON_DATA)
async def data_text_is_invisible(context: "FixtureContext", data_key: str):
    text = _common_value_or_key(context, data_key)
    await expect(context.page.get_by_text(text, exact=True).first).to_be_hidden()


@then("I expect that element with locator {string} is visible")
async def locator_is_visible(context: "FixtureContext", locator: str):
    await expect(context.page.locator(locator).first).to_be_visible()


@then("I expect that element with locator {string} is invisible")
async def locator_is_invisible(context: "FixtureContext", locator: str):
    await expect(context.page.locator(locator).first).to_be_hidden()


@then("I expect that {string} with text {string} is visible")
@then("I expect that the element with role {string} and text {string} is visible")
async def role_with_text_is_visible(context: "FixtureContext", role: str, text: str):
    await expect(context.page.get_by_role(role, name=text, exact=True).first).to_be_visible()


@then("I expect that button with text {string} is visible")
async def button_is_visible(context: "FixtureContext", text: str):
    await expect(context.page.get_by_role("button", name=text, exact=True).first).to_be_visible()


@then("I expect that the element with text {string} is invisible")
async def element_with_text_is_invisible(context: "FixtureContext", text: str):
    await expect(context.page.get_by_text(text, exact=True)).to_be_hidden()


@then("I expect that the element with role {string} and order {int} is visible")
async def role_at_order_is_visible(context: "FixtureContext", role: str, order: int):
    await expect(context.page.get_by_role(role, exact=True).nth(order)).to_be_visible()


@then("I expect that element with role {string} and name {string} is displayed {int} times")
async def role_displayed_times(context: "FixtureContext", role: str, name: str, times: int):
    for index in range(times):
        await context.base_page.wait_for_role_with_index_visible(role, name, index)


@then("I expect that all text in a list with role {string} equal to: {listOfString}")
async def list_texts_equal(context: "FixtureContext", role: str, values: List[str]):
    await expect(context.page.get_by_role(role)).to_have_text(values)


# Tables

@then("I expect that row number {int} in table contains these values: {listOfString}")
async def table_row_contains(context: "FixtureContext", row_number: int, values: List[str]):
    """Row number counts the header row as 0"""
    await context.page.wait_for_selector("table")
    row = context.page.locator("table tr").nth(row_number)
    for value in values:
        await expect(row).to_contain_text(value)


@then("I expect that all rows at column {int} in table contains the same value: {string}")
async def table_column_has_value(context: "FixtureContext", column: int, text: str):
    """Every body row has text in its column-th cell (1-based). A "No results." table passes."""
    page = context.page
    if await page.locator('table tbody tr td:has-text("No results.")').count():
        logger.info("Table has no results, nothing to compare")
        return

    row_count = await page.locator("table tbody tr").count()
    cells = page.locator(f"table tbody tr td:nth-child({column})").filter(has_text=text)
    matching = await cells.count()
    assert matching == row_count, (
        f"Expected all {row_count} rows to contain '{text}' at column {column}, found {matching}"
    )


@then("I expect that the table contains {int} record")
@then("I expect that the table contains {int} records")
async def table_record_count(context: "FixtureContext", total: int):
    await context.page.wait_for_selector("table")
    size = await context.page.locator("table tr").count()
    # header row included
    assert size == total + 1, f"Expected {total} records in table, found {size - 1}"
