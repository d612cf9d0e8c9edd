import logging
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from playwright.async_api import BrowserContext, Page

from ..api.client import ApiClient
from ..core.config import EnvConfig
from ..core.exceptions import PageNotFoundError
from ..data.providers import CommonDataProvider, SecretsDataProvider
from ..pages.base import BasePage, PageObject
from ..pages.todo import TodoPage

logger = logging.getLogger(__name__)

# Page objects available to scenarios, keyed by the name used in feature files
PAGE_OBJECTS: Dict[str, Callable[[Page, EnvConfig], PageObject]] = {
    "basePage": lambda page, config: BasePage(page, "", config),
    "todoPage": TodoPage,
}


def get_page_from_fixtures(pages: Mapping[str, PageObject], page_name: str) -> PageObject:
    """Page object registered as page_name, or PageNotFoundError listing the valid keys"""
    page_object = pages.get(page_name)
    if page_object is None:
        raise PageNotFoundError(page_name, pages.keys())
    return page_object


class FixtureContext:
    """
    Fixtures available to step definitions during one scenario.

    Page objects are built when the context is created. Data providers and
    the API client are built by prepare() for the fixtures a scenario's steps
    declare, or on first use otherwise. The executor owns the context and
    closes it after the scenario; steps only borrow it.
    """

    def __init__(
            self,
            page: Page,
            config: EnvConfig,
            browser_context: Optional[BrowserContext] = None,
            environ: Optional[Mapping[str, str]] = None
    ):
        self.page = page
        self.config = config
        self.browser_context = browser_context
        self.current_step: Optional[Any] = None
        self.test_data: Dict[str, Any] = {}
        self.last_response: Optional[Any] = None

        self.pages: Dict[str, PageObject] = {
            name: factory(page, config) for name, factory in PAGE_OBJECTS.items()
        }
        self._factories: Dict[str, Callable[[], Any]] = {
            "secretDataProvider": lambda: SecretsDataProvider(config, environ),
            "commonDataProvider": lambda: CommonDataProvider(config, environ),
            "apiClient": lambda: ApiClient(config.api_base_url),
        }
        self._fixtures: Dict[str, Any] = {}

    @property
    def base_page(self) -> BasePage:
        return self.pages["basePage"]

    @property
    def todo_page(self) -> TodoPage:
        return self.pages["todoPage"]

    @property
    def secret_data_provider(self) -> SecretsDataProvider:
        return self.get("secretDataProvider")

    @property
    def common_data_provider(self) -> CommonDataProvider:
        return self.get("commonDataProvider")

    @property
    def api_client(self) -> ApiClient:
        return self.get("apiClient")

    def available(self):
        return list(self.pages) + list(self._factories)

    def get(self, name: str) -> Any:
        """Fixture by name, building it on first access"""
        if name in self.pages:
            return self.pages[name]
        if name not in self._fixtures:
            if name not in self._factories:
                raise KeyError(f"Unknown fixture: {name}. Available: {', '.join(self.available())}")
            logger.debug(f"Creating fixture {name}")
            self._fixtures[name] = self._factories[name]()
        return self._fixtures[name]

    def prepare(self, names: Iterable[str]) -> None:
        """Build the named fixtures now, so construction errors surface before any step runs"""
        for name in names:
            self.get(name)

    def resolve_page(self, page_name: str) -> PageObject:
        return get_page_from_fixtures(self.pages, page_name)

    def store_data(self, key: str, value: Any):
        """Store data for use in later steps"""
        self.test_data[key] = value

    def get_data(self, key: str, default: Any = None) -> Any:
        """Retrieve stored data"""
        return self.test_data.get(key, default)

    async def close(self) -> None:
        """Release the scenario's resources"""
        api_client = self._fixtures.pop("apiClient", None)
        if api_client is not None:
            api_client.close()
        self._fixtures.clear()
        if self.browser_context is not None:
            await self.browser_context.close()
