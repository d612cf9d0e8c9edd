import re
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ..core.exceptions import (
    AmbiguousStepError,
    RegistryFrozenError,
    UndefinedStepError,
)
from .parameters import (
    BUILTIN_PARAMETER_TYPES,
    ParameterType,
    RegexExpression,
    StepExpression,
)

logger = logging.getLogger(__name__)


@dataclass
class StepDefinition:
    """Represents a step definition with its expression and handler"""
    keyword: str  # given, when, then or step
    expression: Union[StepExpression, RegexExpression]
    function: Callable
    description: str = ""
    fixtures: Tuple[str, ...] = ()  # fixture names the handler reads from the context

    @property
    def pattern(self) -> str:
        return self.expression.source

    async def execute(self, context: Any, args: List[Any]) -> Any:
        """Run the handler with already converted arguments (handles both sync and async)"""
        if inspect.iscoroutinefunction(self.function):
            return await self.function(context, *args)
        return self.function(context, *args)


@dataclass
class StepMatch:
    definition: StepDefinition
    args: List[Any]

    async def execute(self, context: Any) -> Any:
        return await self.definition.execute(context, self.args)


class StepDefinitionRegistry:
    """
    Registry for step definitions.

    Definitions are kept in registration order. Matching ignores the Gherkin
    keyword, so ``And``/``But`` steps resolve like any other. Registering an
    expression that is already bound to another handler raises
    AmbiguousStepError; so does a step text matched by more than one
    definition.
    """

    def __init__(self):
        self.definitions: List[StepDefinition] = []
        self.parameter_types: Dict[str, ParameterType] = {p.name: p for p in BUILTIN_PARAMETER_TYPES}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> "StepDefinitionRegistry":
        """Disallow further registration"""
        self._frozen = True
        logger.debug(f"Step registry frozen with {len(self.definitions)} definitions")
        return self

    def _check_mutable(self):
        if self._frozen:
            raise RegistryFrozenError("Step registry is frozen; register steps before execution starts")

    def define_parameter_type(self, name: str, regexp: str, transformer: Callable[[str], Any]) -> None:
        """Add a custom ``{name}`` placeholder. regexp must not contain capturing groups."""
        self._check_mutable()
        if re.compile(regexp).groups:
            raise ValueError(f"Parameter type '{name}' regexp must not contain capturing groups")
        self.parameter_types[name] = ParameterType(name, regexp, transformer)

    def add_definition(self, keyword: str, pattern: Union[str, "re.Pattern"], function: Callable,
                       description: str = "", fixtures: Sequence[str] = ()) -> StepDefinition:
        """Add a step definition to registry"""
        self._check_mutable()

        if isinstance(pattern, re.Pattern):
            expression = RegexExpression(pattern)
        else:
            expression = StepExpression(pattern, self.parameter_types)

        for existing in self.definitions:
            if existing.expression.source != expression.source:
                continue
            if existing.function is function:
                logger.debug(f"Step already registered: {expression.source}")
                return existing
            raise AmbiguousStepError(
                f"Step '{expression.source}' is already bound to "
                f"{existing.function.__module__}.{existing.function.__name__}; "
                f"cannot bind it to {function.__module__}.{function.__name__}"
            )

        definition = StepDefinition(
            keyword=keyword.lower(),
            expression=expression,
            function=function,
            description=description or (inspect.getdoc(function) or "").split('\n')[0],
            fixtures=tuple(fixtures)
        )

        self.definitions.append(definition)
        logger.debug(f"Registered step: {keyword} {expression.source}")
        return definition

    def _decorator(self, keyword: str, pattern, description: str, fixtures: Sequence[str]):
        def decorator(func):
            self.add_definition(keyword, pattern, func, description, fixtures)
            return func

        return decorator

    def given(self, pattern, description: str = "", fixtures: Sequence[str] = ()):
        """Decorator for Given steps"""
        return self._decorator('given', pattern, description, fixtures)

    def when(self, pattern, description: str = "", fixtures: Sequence[str] = ()):
        """Decorator for When steps"""
        return self._decorator('when', pattern, description, fixtures)

    def then(self, pattern, description: str = "", fixtures: Sequence[str] = ()):
        """Decorator for Then steps"""
        return self._decorator('then', pattern, description, fixtures)

    def step(self, pattern, description: str = "", fixtures: Sequence[str] = ()):
        """Decorator for any step type"""
        return self._decorator('step', pattern, description, fixtures)

    def find_matches(self, step_text: str) -> List[StepMatch]:
        matches = []
        for definition in self.definitions:
            args = definition.expression.match(step_text)
            if args is not None:
                matches.append(StepMatch(definition, args))
        return matches

    def match(self, step_text: str, keyword: str = "") -> StepMatch:
        """
        Resolve step text to exactly one definition.

        Raises:
            UndefinedStepError: nothing matches
            AmbiguousStepError: more than one definition matches
        """
        matches = self.find_matches(step_text)

        if not matches:
            message = f"No step definition found for: {keyword + ' ' if keyword else ''}{step_text}"
            logger.warning(message)
            raise UndefinedStepError(message)

        if len(matches) > 1:
            candidates = '\n'.join(f"  {m.definition.pattern}" for m in matches)
            raise AmbiguousStepError(f"Multiple step definitions match '{step_text}':\n{candidates}")

        logger.debug(f"Found matching step definition: {matches[0].definition.pattern}")
        return matches[0]

    def find_step_definition(self, keyword: str, step_text: str) -> Optional[StepDefinition]:
        """Matching definition for the step, or None when undefined"""
        try:
            return self.match(step_text, keyword).definition
        except UndefinedStepError:
            return None

    def fixtures_for(self, step_texts: Iterable[str]) -> List[str]:
        """
        Fixture names declared by the definitions the steps resolve to, in
        first-use order. Undefined and ambiguous steps contribute nothing;
        they fail later, when they run.
        """
        names: List[str] = []
        for step_text in step_texts:
            matches = self.find_matches(step_text)
            if len(matches) != 1:
                continue
            for name in matches[0].definition.fixtures:
                if name not in names:
                    names.append(name)
        return names

    def list_definitions(self) -> List[Dict[str, str]]:
        """List all registered step definitions"""
        return [
            {
                'keyword': defn.keyword,
                'pattern': defn.pattern,
                'description': defn.description,
                'function': defn.function.__name__
            }
            for defn in self.definitions
        ]

    def clear(self):
        """Clear all registered definitions"""
        self._check_mutable()
        self.definitions.clear()

    def register_from_module(self, module) -> int:
        """Register every function of module marked with the given/when/then markers"""
        count = 0
        for name, obj in inspect.getmembers(module, inspect.isfunction):
            if obj.__module__ != module.__name__:
                continue
            for step_info in getattr(obj, '_step_definitions', []):
                self.add_definition(
                    step_info['keyword'],
                    step_info['pattern'],
                    obj,
                    step_info.get('description', ''),
                    step_info.get('fixtures', ()),
                )
                count += 1
        return count


# Utility decorators for marking functions as step definitions.
# They only annotate the function; a registry collects them with register_from_module.
def _mark(keyword: str, pattern, description: str, fixtures: Sequence[str] = ()):
    def decorator(func):
        marks = list(getattr(func, '_step_definitions', []))
        marks.append({
            'keyword': keyword,
            'pattern': pattern,
            'description': description,
            'fixtures': tuple(fixtures)
        })
        func._step_definitions = marks
        return func

    return decorator


def given(pattern, description: str = "", fixtures: Sequence[str] = ()):
    """Mark function as a Given step"""
    return _mark('given', pattern, description, fixtures)


def when(pattern, description: str = "", fixtures: Sequence[str] = ()):
    """Mark function as a When step"""
    return _mark('when', pattern, description, fixtures)


def then(pattern, description: str = "", fixtures: Sequence[str] = ()):
    """Mark function as a Then step"""
    return _mark('then', pattern, description, fixtures)


def step(pattern, description: str = "", fixtures: Sequence[str] = ()):
    """Mark function as a step usable with any keyword"""
    return _mark('step', pattern, description, fixtures)
