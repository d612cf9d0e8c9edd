"""
Placeholder types usable in step expressions, e.g. ``I add a todo {string}``.
"""
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional


@dataclass(frozen=True)
class ParameterType:
    """A named placeholder: the regex it captures and how the capture is converted"""
    name: str
    regexp: str
    transformer: Callable[[str], Any]


def _unquote(value: str) -> str:
    return value[1:-1]


def parse_list_of_string(value: str) -> List[str]:
    """
    Convert a bracketed literal to a list of trimmed strings.

    >>> parse_list_of_string("[Feed cat, Read book]")
    ['Feed cat', 'Read book']
    """
    inner = value.strip()
    if inner.startswith('[') and inner.endswith(']'):
        inner = inner[1:-1]
    if not inner.strip():
        return []
    return [item.strip() for item in inner.split(',')]


BUILTIN_PARAMETER_TYPES = [
    ParameterType('string', r'"[^"]*"|\'[^\']*\'', _unquote),
    ParameterType('int', r'-?\d+', int),
    ParameterType('float', r'-?\d*\.\d+|-?\d+', float),
    ParameterType('word', r'[^\s]+', str),
    ParameterType('listOfString', r'\[[^\]]*\]', parse_list_of_string),
]

_PLACEHOLDER = re.compile(r'\{([A-Za-z_][A-Za-z0-9_]*)?\}')


class StepExpression:
    """
    Compiled step expression.

    Literal text must match verbatim; each ``{type}`` placeholder captures
    one value that is converted before the handler is called. ``{}`` is an
    alias for ``{word}``.
    """

    def __init__(self, expression: str, parameter_types: Optional[Dict[str, ParameterType]] = None):
        self.source = expression
        types = parameter_types or {p.name: p for p in BUILTIN_PARAMETER_TYPES}
        self.parameters: List[ParameterType] = []

        pattern = []
        position = 0
        for match in _PLACEHOLDER.finditer(expression):
            pattern.append(re.escape(expression[position:match.start()]))
            type_name = match.group(1) or 'word'
            if type_name not in types:
                raise ValueError(f"Unknown parameter type '{{{type_name}}}' in step: {expression}")
            parameter = types[type_name]
            self.parameters.append(parameter)
            pattern.append(f"({parameter.regexp})")
            position = match.end()
        pattern.append(re.escape(expression[position:]))

        self.regex = re.compile('^' + ''.join(pattern) + '$')

    def match(self, text: str) -> Optional[List[Any]]:
        """Typed arguments when text matches, else None"""
        found = self.regex.match(text.strip())
        if not found:
            return None
        return [
            parameter.transformer(raw)
            for parameter, raw in zip(self.parameters, found.groups())
        ]

    def __repr__(self):
        return f"StepExpression({self.source!r})"


class RegexExpression:
    """Raw regular expression; groups are passed to the handler as strings"""

    def __init__(self, pattern: "re.Pattern"):
        self.regex = pattern
        self.source = pattern.pattern

    def match(self, text: str) -> Optional[List[Any]]:
        found = self.regex.search(text.strip())
        if not found:
            return None
        return list(found.groups())

    def __repr__(self):
        return f"RegexExpression({self.source!r})"
