from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from stepwright.api.client import ApiClient
from stepwright.core.exceptions import PageNotFoundError
from stepwright.data.providers import CommonDataProvider
from stepwright.executor.context import PAGE_OBJECTS, FixtureContext, get_page_from_fixtures
from stepwright.pages.base import BasePage
from stepwright.pages.todo import TodoPage


class TestGetPageFromFixtures:
    """Test page lookup by fixture key"""

    def test_known_page(self):
        todo_page = MagicMock()
        assert get_page_from_fixtures({"todoPage": todo_page}, "todoPage") is todo_page

    def test_unknown_page_lists_available(self):
        with pytest.raises(PageNotFoundError) as exc_info:
            get_page_from_fixtures({"todoPage": MagicMock(), "basePage": MagicMock()}, "loginPage")

        assert exc_info.value.page_name == "loginPage"
        assert "todoPage" in str(exc_info.value)
        assert "basePage" in str(exc_info.value)


class TestFixtureContext:
    """Test FixtureContext"""

    @pytest.fixture
    def context(self, page, env_config):
        return FixtureContext(page, env_config, environ={})

    def test_page_objects_are_built_eagerly(self, context):
        assert set(context.pages) == set(PAGE_OBJECTS)
        assert isinstance(context.base_page, BasePage)
        assert isinstance(context.todo_page, TodoPage)

    def test_providers_are_lazy_and_cached(self, context):
        with patch("stepwright.executor.context.CommonDataProvider", wraps=CommonDataProvider) as provider:
            first = context.common_data_provider
            second = context.get("commonDataProvider")

        assert first is second
        provider.assert_called_once()
        assert first.get("todo.first") == "Buy milk"

    def test_secrets_provider(self, context):
        assert context.secret_data_provider.secrets_data.user.email == "user@example.com"

    def test_api_client_uses_configured_base_url(self, context):
        client = context.api_client
        assert isinstance(client, ApiClient)
        assert client.base_url == "https://api.example.com"

    def test_unknown_fixture(self, context):
        with pytest.raises(KeyError, match="Unknown fixture: nope"):
            context.get("nope")

    def test_available(self, context):
        assert {"basePage", "todoPage", "commonDataProvider", "apiClient"} <= set(context.available())

    def test_store_and_get_data(self, context):
        """Test data storage and retrieval"""
        context.store_data("user_id", "12345")

        assert context.get_data("user_id") == "12345"
        assert context.get_data("missing", "default") == "default"

    @pytest.mark.asyncio
    async def test_close_releases_resources(self, page, env_config):
        browser_context = MagicMock(close=AsyncMock())
        context = FixtureContext(page, env_config, browser_context, environ={})
        client = context.api_client

        with patch.object(client, "close") as close_client:
            await context.close()

        close_client.assert_called_once()
        browser_context.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_without_fixtures(self, context):
        await context.close()
