from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from stepwright.core.exceptions import DataLoadError, PageNotFoundError
from stepwright.executor.context import FixtureContext
from stepwright.steps import common


@pytest.fixture
def context(page, env_config):
    return FixtureContext(page, env_config, environ={})


@pytest.fixture
def assertion():
    """Patches expect() in the common steps; returns the awaitable assertion object"""
    assertion = AsyncMock()
    with patch.object(common, "expect", MagicMock(return_value=assertion)):
        yield assertion


class TestNavigationSteps:
    """Test navigation steps"""

    @pytest.mark.asyncio
    async def test_open_page_by_fixture_name(self, context, page):
        await common.open_page(context, "todoPage")
        page.goto.assert_awaited_once_with("https://demo.playwright.dev/todomvc")

    @pytest.mark.asyncio
    async def test_open_unknown_page(self, context):
        with pytest.raises(PageNotFoundError) as exc_info:
            await common.open_page(context, "loginPage")
        assert "todoPage" in exc_info.value.available

    @pytest.mark.asyncio
    async def test_wait_for_seconds(self, context, page):
        await common.wait_for_seconds(context, 2)
        page.wait_for_timeout.assert_awaited_once_with(2000)

    @pytest.mark.asyncio
    async def test_should_be_in_page(self, context, page, assertion):
        await common.should_be_in_page(context, "todoPage")
        assertion.to_have_url.assert_awaited_once_with("https://demo.playwright.dev/todomvc")


class TestDataSteps:
    """Test steps reading common data"""

    @pytest.mark.asyncio
    async def test_wait_for_api_response(self, context, page):
        await common.wait_for_api_response(context, "api.users")

        page.wait_for_response.assert_awaited_once()
        predicate = page.wait_for_response.await_args.args[0]
        assert predicate(MagicMock(url="https://x.test/api/users?page=1", status=200))
        assert not predicate(MagicMock(url="https://x.test/api/users", status=500))

    @pytest.mark.asyncio
    async def test_wait_for_unknown_api_key(self, context):
        with pytest.raises(DataLoadError, match="api.unknown"):
            await common.wait_for_api_response(context, "api.unknown")

    @pytest.mark.asyncio
    async def test_type_data_to_role(self, context, page, locator):
        await common.type_data_to_role(context, "todo.first", "New todo")

        page.get_by_role.assert_called_once_with("textbox", name="New todo")
        locator.fill.assert_awaited_once_with("Buy milk")

    @pytest.mark.asyncio
    async def test_type_data_to_locator_falls_back_to_key(self, context, locator):
        """Test that an unknown data key is typed literally"""
        await common.type_data_to_locator(context, "literal text", "#name")
        locator.fill.assert_awaited_once_with("literal text")

    @pytest.mark.asyncio
    async def test_data_text_is_visible(self, context, page, assertion):
        await common.data_text_is_visible(context, "todo.first")

        page.get_by_text.assert_called_once_with("Buy milk", exact=True)
        assertion.to_be_visible.assert_awaited_once()


class TestInteractionSteps:
    """Test typing and clicking steps"""

    @pytest.mark.asyncio
    async def test_fill_all_by_placeholder(self, context, locator):
        await common.fill_all_by_placeholder(context, "Amount", ["1", "2", "3"])

        assert [c.args[0] for c in locator.fill.await_args_list] == ["1", "2", "3"]
        assert [c.args[0] for c in locator.nth.call_args_list] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_click_by_role_at_index(self, context, page, locator):
        """Test that the index selects the match instead of changing exactness"""
        await common.click_by_role_at_index(context, "button", "Delete", 2)

        page.get_by_role.assert_called_once_with("button", name="Delete", exact=True)
        locator.nth.assert_called_with(2)
        locator.click.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_click_button_at_index(self, context, page, locator):
        await common.click_button_at_index(context, "Save", 1)

        page.get_by_role.assert_called_once_with("button", name="Save", exact=True)
        locator.nth.assert_called_with(1)

    @pytest.mark.asyncio
    async def test_paste_by_locator_at_index(self, context, page, locator):
        page.evaluate.return_value = "clip"

        await common.paste_by_locator_at_index(context, "input", 1)

        locator.nth.assert_called_with(1)
        locator.fill.assert_awaited_once_with("clip")


class TestAssertionSteps:
    """Test assertion steps"""

    @pytest.mark.asyncio
    async def test_title_contains(self, context, assertion):
        await common.title_contains(context, "TodoMVC")

        pattern = assertion.to_have_title.await_args.args[0]
        assert pattern.search("React • TodoMVC")

    @pytest.mark.asyncio
    async def test_role_displayed_times(self, context, locator):
        await common.role_displayed_times(context, "listitem", "Todo", 3)
        assert locator.wait_for.await_count == 3

    @pytest.mark.asyncio
    async def test_table_row_contains(self, context, page, locator, assertion):
        await common.table_row_contains(context, 1, ["Jane", "Admin"])

        page.wait_for_selector.assert_awaited_once_with("table")
        locator.nth.assert_called_with(1)
        assert assertion.to_contain_text.await_count == 2

    @pytest.mark.asyncio
    async def test_table_record_count(self, context, locator):
        """Test that the header row is not counted as a record"""
        locator.count.return_value = 4
        await common.table_record_count(context, 3)

        with pytest.raises(AssertionError, match="Expected 4 records"):
            await common.table_record_count(context, 4)


class TestTableColumnStep:
    """Test the same-value-in-column step"""

    @pytest.fixture
    def table(self, page):
        """Separate locators for the no-results probe, the rows and the cells"""
        no_results, rows, cells = MagicMock(), MagicMock(), MagicMock()
        no_results.count = AsyncMock(return_value=0)
        rows.count = AsyncMock(return_value=3)
        cells.filter.return_value = cells
        cells.count = AsyncMock(return_value=3)

        def find(selector):
            if "No results." in selector:
                return no_results
            if "td:nth-child" in selector:
                return cells
            return rows

        page.locator.side_effect = find
        return no_results, rows, cells

    @pytest.mark.asyncio
    async def test_all_rows_match(self, context, page, table):
        _, _, cells = table

        await common.table_column_has_value(context, 2, "Active")

        page.locator.assert_any_call("table tbody tr td:nth-child(2)")
        cells.filter.assert_called_once_with(has_text="Active")

    @pytest.mark.asyncio
    async def test_some_rows_differ(self, context, table):
        _, _, cells = table
        cells.count.return_value = 2

        with pytest.raises(AssertionError, match="found 2"):
            await common.table_column_has_value(context, 2, "Active")

    @pytest.mark.asyncio
    async def test_no_results_table_passes(self, context, table):
        no_results, _, cells = table
        no_results.count.return_value = 1

        await common.table_column_has_value(context, 2, "Active")

        cells.filter.assert_not_called()
