from . import api, common, todo
from .parameters import ParameterType, StepExpression, RegexExpression, parse_list_of_string
from .registry import StepDefinition, StepDefinitionRegistry, StepMatch, given, when, then, step

STEP_MODULES = (common, todo, api)


def build_registry(*extra_modules) -> StepDefinitionRegistry:
    """Registry holding the built-in steps plus those of extra_modules, frozen"""
    registry = StepDefinitionRegistry()
    for module in STEP_MODULES + extra_modules:
        registry.register_from_module(module)
    return registry.freeze()


__all__ = [
    'build_registry',
    'STEP_MODULES',
    'ParameterType',
    'StepExpression',
    'RegexExpression',
    'parse_list_of_string',
    'StepDefinition',
    'StepDefinitionRegistry',
    'StepMatch',
    'given',
    'when',
    'then',
    'step',
]
