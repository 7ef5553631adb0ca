"""Runtime values for Quill.

Every value produced by the interpreter is one of the dataclasses below.
Primitive values (null, booleans, numbers, strings) compare structurally;
objects, arrays and functions compare by identity, since they are mutable
or capture an environment.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Union

if TYPE_CHECKING:
    from .ast import Stmt
    from .environment import Environment


class RuntimeVal:
    """Base class for all runtime values."""
    type = 'unknown'


@dataclass(frozen=True)
class NullVal(RuntimeVal):
    type = 'null'

    def __repr__(self) -> str:
        return 'null'


@dataclass(frozen=True)
class BooleanVal(RuntimeVal):
    value: bool
    type = 'boolean'


@dataclass(frozen=True)
class NumberVal(RuntimeVal):
    value: Union[int, float]
    type = 'number'


@dataclass(frozen=True)
class StringVal(RuntimeVal):
    value: str
    type = 'string'


@dataclass(eq=False)
class ObjectVal(RuntimeVal):
    properties: Dict[str, RuntimeVal] = field(default_factory=dict)
    type = 'object'


@dataclass(eq=False)
class ArrayVal(RuntimeVal):
    elements: List[RuntimeVal] = field(default_factory=list)
    type = 'array'


@dataclass(eq=False)
class FunctionVal(RuntimeVal):
    """A user-defined function.

    `declaration_scope` is the environment active where the function was
    declared; calls resolve free variables through it, so it stays alive for
    as long as the function value does.
    """
    name: str
    parameters: List[str]
    declaration_scope: 'Environment'
    body: List['Stmt']
    type = 'function'

    def __repr__(self) -> str:
        return f"<fn {self.name}>"


def make_null() -> NullVal:
    return NullVal()


def make_bool(value: bool = True) -> BooleanVal:
    return BooleanVal(bool(value))


def make_number(value: Union[int, float] = 0) -> NumberVal:
    # keep whole results as ints so 6 / 2 displays as 3
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return NumberVal(value)


def type_name(value: Any) -> str:
    """Return the Quill type name of a runtime value."""
    if isinstance(value, RuntimeVal):
        return value.type
    return type(value).__name__


def to_string(value: Any) -> str:
    """Convert a runtime value to the text shown to users.

    Strings are shown bare at the top level and quoted inside objects and
    arrays.
    """
    if isinstance(value, StringVal):
        return value.value
    return _repr_value(value)


def _repr_value(value: Any) -> str:
    if isinstance(value, NullVal):
        return 'null'
    if isinstance(value, BooleanVal):
        return 'true' if value.value else 'false'
    if isinstance(value, NumberVal):
        return str(value.value)
    if isinstance(value, StringVal):
        return f'"{value.value}"'
    if isinstance(value, ObjectVal):
        if not value.properties:
            return '{}'
        entries = ', '.join(f"{k}: {_repr_value(v)}" for k, v in value.properties.items())
        return '{ ' + entries + ' }'
    if isinstance(value, ArrayVal):
        return '[' + ', '.join(_repr_value(item) for item in value.elements) + ']'
    if isinstance(value, FunctionVal):
        return f"<fn {value.name}>"
    return str(value)
