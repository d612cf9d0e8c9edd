import re
import types

import pytest

from stepwright.core.exceptions import AmbiguousStepError, RegistryFrozenError, UndefinedStepError
from stepwright.steps import build_registry
from stepwright.steps.registry import StepDefinitionRegistry, when


def first_handler(context, item):
    """Add an item"""
    context.append(item)


def second_handler(context, item):
    context.append(item.upper())


async def async_handler(context, count):
    context.append(count)


class TestStepDefinitionRegistry:
    """Test step registration and matching"""

    @pytest.fixture
    def registry(self):
        return StepDefinitionRegistry()

    def test_match_ignores_keyword(self, registry):
        registry.given("I add {string}")(first_handler)

        for keyword in ("Given", "When", "Then", "And", "But"):
            assert registry.match('I add "x"', keyword).args == ["x"]

    def test_description_defaults_to_docstring(self, registry):
        definition = registry.add_definition("when", "I add {string}", first_handler)
        assert definition.description == "Add an item"

    def test_same_handler_twice_is_a_noop(self, registry):
        registry.add_definition("when", "I add {string}", first_handler)
        registry.add_definition("when", "I add {string}", first_handler)

        assert len(registry.definitions) == 1

    def test_conflicting_handler_raises(self, registry):
        """Test that one expression cannot be bound to two handlers"""
        registry.add_definition("when", "I add {string}", first_handler)

        with pytest.raises(AmbiguousStepError, match="already bound"):
            registry.add_definition("then", "I add {string}", second_handler)

    def test_undefined_step(self, registry):
        with pytest.raises(UndefinedStepError, match="No step definition found"):
            registry.match("I do nothing", "When")
        assert registry.find_step_definition("when", "I do nothing") is None

    def test_ambiguous_match(self, registry):
        registry.add_definition("when", "I add {string}", first_handler)
        registry.add_definition("when", re.compile(r'I add "(.*)"'), second_handler)

        with pytest.raises(AmbiguousStepError, match="Multiple step definitions"):
            registry.match('I add "x"')

    def test_regex_definition(self, registry):
        registry.add_definition("then", re.compile(r"^I see (\d+) items$"), first_handler)
        assert registry.match("I see 3 items").args == ["3"]

    def test_frozen_registry_rejects_registration(self, registry):
        registry.freeze()

        assert registry.frozen
        with pytest.raises(RegistryFrozenError):
            registry.add_definition("when", "I add {string}", first_handler)
        with pytest.raises(RegistryFrozenError):
            registry.clear()

    def test_custom_parameter_type(self, registry):
        registry.define_parameter_type("color", r"red|green|blue", str.upper)
        registry.add_definition("when", "I pick {color}", first_handler)

        assert registry.match("I pick green").args == ["GREEN"]

    def test_parameter_type_rejects_groups(self, registry):
        with pytest.raises(ValueError, match="capturing groups"):
            registry.define_parameter_type("pair", r"(\d+),(\d+)", str)

    @pytest.mark.asyncio
    async def test_execute_sync_and_async(self, registry):
        registry.add_definition("when", "I add {string}", first_handler)
        registry.add_definition("then", "I count {int}", async_handler)
        calls = []

        await registry.match('I add "milk"').execute(calls)
        await registry.match("I count 2").execute(calls)

        assert calls == ["milk", 2]

    def test_fixtures_for_skips_undefined_and_ambiguous_steps(self, registry):
        registry.when("I add {string}", fixtures=("commonDataProvider",))(first_handler)
        registry.when("I add {word}", fixtures=("apiClient",))(second_handler)
        registry.then("I count {int}", fixtures=("apiClient", "commonDataProvider"))(async_handler)

        # 'I add "tea"' matches both {string} and {word}
        assert registry.fixtures_for(['I add "tea"', "I add tea", "I count 2", "I dance"]) == [
            "apiClient", "commonDataProvider",
        ]

    def test_module_markers_carry_fixtures(self, registry):
        module = types.ModuleType("data_steps")

        @when("I load {string}", fixtures=("commonDataProvider",))
        def load_item(context, key):
            return key

        load_item.__module__ = module.__name__
        module.load_item = load_item

        assert registry.register_from_module(module) == 1
        assert registry.match('I load "todo.first"').definition.fixtures == ("commonDataProvider",)

    def test_list_definitions(self, registry):
        registry.add_definition("given", "I add {string}", first_handler)

        assert registry.list_definitions() == [{
            'keyword': 'given',
            'pattern': 'I add {string}',
            'description': 'Add an item',
            'function': 'first_handler',
        }]


class TestBuildRegistry:
    """Test the registry of built-in steps"""

    @pytest.fixture(scope="class")
    def registry(self):
        return build_registry()

    def test_registry_is_frozen(self, registry):
        assert registry.frozen

    @pytest.mark.parametrize("step_text", [
        'I am on the page "todoPage"',
        'I navigate to "todoPage"',
        'I click button "Save"',
        'I click button "Save" at index 1',
        'I click button with locator "#save"',
        'I click button with locator "#save" at index 1',
        'I type "Jane" to input with role "Name"',
        'I type "Jane" to input with role "Name" at index 2',
        'I expect that the text "Done" is visible',
        'I expect that the text contains "Do" is visible',
        'I expect that "button" with text "Save" is visible',
        'I expect that the table contains 1 record',
        'I expect that the table contains 3 records',
        'I should see "Buy milk" in the list',
        'I should see 2 todos in the list',
        'I add the todos [Feed cat, Read book]',
        'the response field "page" should be 2',
        'the response field "name" should be "Jane"',
        'I send a POST request to "/users" with JSON:',
    ])
    def test_builtin_steps_resolve_to_one_definition(self, registry, step_text):
        assert registry.match(step_text) is not None

    def test_aliases_share_a_handler(self, registry):
        first = registry.match('I am on the page "todoPage"').definition.function
        second = registry.match('I navigate to "todoPage"').definition.function
        assert first is second

    def test_no_two_definitions_share_an_expression(self, registry):
        patterns = [d.pattern for d in registry.definitions]
        assert len(patterns) == len(set(patterns))

    def test_data_steps_declare_their_fixtures(self, registry):
        """Test that steps reading common data or calling the API name those fixtures"""
        fixtures = registry.fixtures_for([
            'I am on the page "todoPage"',
            'I type data with key "todo.first" to input with locator "#new"',
            'I send a GET request to "/users"',
            'I expect that the text of data with key "todo.first" is visible',
            'I dance',
        ])

        assert fixtures == ["commonDataProvider", "apiClient"]

    def test_page_steps_declare_no_fixtures(self, registry):
        assert registry.fixtures_for(['I am on the page "todoPage"', 'I should see 2 todos in the list']) == []
