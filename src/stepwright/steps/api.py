"""
REST API step definitions.

Requests run in a worker thread so the event loop keeps serving sibling
scenarios. A 429 answer marks the scenario skipped.
"""
import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any, List

from ..api.client import ApiClient, ApiDataBuilder, ApiValidator
from ..core.exceptions import ValidationError
from ..data.loader import get_nested_value
from .registry import given, when, then

if TYPE_CHECKING:
    from ..executor.context import FixtureContext

logger = logging.getLogger(__name__)

API_CLIENT = ("apiClient",)

_MISSING = object()


async def _send(context: "FixtureContext", method: str, path: str, body: Any = None):
    client: ApiClient = context.api_client
    if body is None:
        response = await asyncio.to_thread(client.request, method, path)
    else:
        response = await asyncio.to_thread(client.request, method, path, json=body)
    ApiClient.check_rate_limit(response)
    context.last_response = response
    return response


def _last_json(context: "FixtureContext") -> Any:
    if context.last_response is None:
        raise ValidationError("No API request has been sent in this scenario")
    try:
        return context.last_response.json()
    except ValueError as e:
        raise ValidationError(f"Response body is not JSON: {e}") from e


def _field(context: "FixtureContext", path: str) -> Any:
    value = get_nested_value(_last_json(context), path, _MISSING)
    if value is _MISSING:
        raise ValidationError(f"Response has no field '{path}'")
    return value


@given("I use the API bearer token {string}", fixtures=API_CLIENT)
async def use_bearer_token(context: "FixtureContext", token: str):
    context.api_client.set_auth_token(token)


@when("I send a GET request to {string}", fixtures=API_CLIENT)
async def send_get(context: "FixtureContext", path: str):
    await _send(context, 'GET', path)


@when("I send a DELETE request to {string}", fixtures=API_CLIENT)
async def send_delete(context: "FixtureContext", path: str):
    await _send(context, 'DELETE', path)


@when("I send a POST request to {string} with JSON:", fixtures=API_CLIENT)
async def send_post_json(context: "FixtureContext", path: str):
    """POST the step's doc string as JSON"""
    text = getattr(context.current_step, 'text', None)
    if not text:
        raise ValidationError("POST step needs a JSON doc string")
    await _send(context, 'POST', path, json.loads(text))


@when("I send a POST request to {string} with a random user", fixtures=API_CLIENT)
async def send_post_random_user(context: "FixtureContext", path: str):
    user = ApiDataBuilder().build_user()
    context.store_data('request_body', user)
    await _send(context, 'POST', path, user)


@then("the response status should be {int}")
async def response_status(context: "FixtureContext", status: int):
    if context.last_response is None:
        raise ValidationError("No API request has been sent in this scenario")
    ApiValidator.validate_status(context.last_response, status)


@then("the response field {string} should be {int}")
async def response_field_equals_int(context: "FixtureContext", path: str, expected: int):
    actual = _field(context, path)
    assert actual == expected, f"Expected '{path}' to be {expected}, got {actual!r}"


@then("the response field {string} should be {string}")
async def response_field_equals_string(context: "FixtureContext", path: str, expected: str):
    actual = _field(context, path)
    assert str(actual) == expected, f"Expected '{path}' to be '{expected}', got {actual!r}"


@then("the response field {string} should match the request body")
async def response_matches_request(context: "FixtureContext", path: str):
    """Every key of the stored request body comes back under path ('.' for the root)"""
    body = context.get_data('request_body') or {}
    echoed = _last_json(context) if path == '.' else _field(context, path)
    for key, value in body.items():
        assert echoed.get(key) == value, f"Expected '{key}' to be {value!r}, got {echoed.get(key)!r}"


@then("the response list {string} should contain {int} items")
async def response_list_length(context: "FixtureContext", path: str, count: int):
    items = _field(context, path)
    ApiValidator.validate_array_response(items)
    assert len(items) == count, f"Expected {count} items in '{path}', got {len(items)}"


@then("every item in {string} should have fields {listOfString}")
async def response_items_have_fields(context: "FixtureContext", path: str, fields: List[str]):
    items = _field(context, path)
    ApiValidator.validate_array_response(items, 1)
    for item in items:
        ApiValidator.validate_required_fields(item, fields)
