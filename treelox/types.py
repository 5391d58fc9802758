"""Runtime values for the Lox interpreter.

Lox values map onto Python objects: numbers are `float`, strings are
`str` and booleans are `bool`. `nil` and the "declared but not yet
assigned" marker get their own singleton classes so they can never be
confused with each other or with Python's `None`. Functions are either
`NativeFunction` (see builtin_function.py) or `UserFunction`, which wraps
nothing but its declaration.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from .ast import FunctionDecl
from .builtin_function import NativeFunction


class NilVal:
    """Marker object for the Lox `nil` value."""
    def __repr__(self) -> str:
        return 'nil'


class UndefinedVal:
    """Marks a binding that was declared without an initializer."""
    def __repr__(self) -> str:
        return 'undefined'


NIL = NilVal()
UNDEFINED = UndefinedVal()


@dataclass
class UserFunction:
    """A function declared in Lox source.

    Only the declaration is kept. The scope a call runs in is built when
    the function is called, on top of the caller's environment.
    """
    declaration: FunctionDecl

    @property
    def name(self) -> str:
        return self.declaration.name.name

    @property
    def arity(self) -> int:
        return len(self.declaration.params)

    def __repr__(self) -> str:
        return f"<fn {self.name}>"


def is_number(value: Any) -> bool:
    # bool is a subclass of int, never of float
    return isinstance(value, float)


def type_name(value: Any) -> str:
    """Return the Lox type name of a runtime value."""
    if isinstance(value, bool):
        return 'Bool'
    if isinstance(value, float):
        return 'Number'
    if isinstance(value, str):
        return 'String'
    if isinstance(value, NilVal):
        return 'Nil'
    if isinstance(value, UndefinedVal):
        return 'Undefined'
    if isinstance(value, UserFunction):
        return 'Function'
    if isinstance(value, NativeFunction):
        return 'NativeFunction'
    return type(value).__name__


def format_number(value: float) -> str:
    if math.isnan(value):
        return 'NaN'
    if math.isinf(value):
        return 'inf' if value > 0 else '-inf'
    if value.is_integer():
        return str(int(value))
    return repr(value)


def to_string(value: Any) -> str:
    """Convert a Lox value to the text `print` writes."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, str):
        return value
    return repr(value)
