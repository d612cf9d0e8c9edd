import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from stepwright.core.config import EnvConfig

LOCATOR_ACTIONS = (
    "click", "fill", "hover", "press", "check", "wait_for", "text_content",
    "select_option", "count", "all", "all_text_contents", "get_attribute",
)
PAGE_ACTIONS = (
    "goto", "go_back", "go_forward", "close", "wait_for_timeout", "wait_for_response",
    "evaluate", "wait_for_selector", "screenshot", "wait_for_load_state",
)
PAGE_FINDERS = (
    "locator", "get_by_role", "get_by_label", "get_by_placeholder", "get_by_text", "get_by_test_id",
)

COMMON_DATA = {
    "todo": {"first": "Buy milk"},
    "api": {"users": "/api/users"},
    "search": {"placeholder": "What needs to be done?"},
}

SECRETS_DATA = {
    "admin": {"email": "admin@example.com", "password": "admin-pass"},
    "adminInstitution": {"email": "institution@example.com", "password": "inst-pass"},
    "reviewer": {"email": "reviewer@example.com", "password": "review-pass"},
    "user": {"email": "user@example.com", "password": "user-pass"},
    "commonPassword": "shared-pass",
}


@pytest.fixture
def locator():
    """Locator mock: chaining returns itself, actions are awaitable"""
    locator = MagicMock(name="locator")
    for action in LOCATOR_ACTIONS:
        setattr(locator, action, AsyncMock())
    locator.nth.return_value = locator
    locator.filter.return_value = locator
    locator.get_by_role.return_value = locator
    locator.first = locator
    return locator


@pytest.fixture
def page(locator):
    """Playwright page mock whose finders all return the locator fixture"""
    page = MagicMock(name="page")
    for action in PAGE_ACTIONS:
        setattr(page, action, AsyncMock())
    for finder in PAGE_FINDERS:
        getattr(page, finder).return_value = locator
    page.is_closed.return_value = False
    return page


@pytest.fixture
def data_dir(tmp_path):
    """Data directory holding common.json and secrets.json"""
    (tmp_path / "common.json").write_text(json.dumps(COMMON_DATA), encoding="utf-8")
    (tmp_path / "secrets.json").write_text(json.dumps(SECRETS_DATA), encoding="utf-8")
    return tmp_path


@pytest.fixture
def env_config(data_dir):
    return EnvConfig(
        base_url="https://demo.playwright.dev",
        portal_url="https://portal.example.com",
        api_base_url="https://api.example.com",
        data_dir=str(data_dir),
    )
