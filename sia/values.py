"""Runtime values for the Sia evaluator.

Values are plain Python objects: ``int`` (Integer), ``float`` (Float),
``str`` (String), ``bool`` (Boolean) and ``None`` (Null). ``bool`` is a
subclass of ``int``, so every kind check goes through ``kind_of``.
"""

from __future__ import annotations

from enum import Enum
from typing import Union

from sia.errors import TypeMismatchError
from sia.source_map import SourceSpan


Value = Union[int, float, str, bool, None]

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class ValueKind(Enum):
    """The closed set of runtime value kinds."""

    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    BOOLEAN = "boolean"
    NULL = "null"


NUMERIC_KINDS = frozenset({ValueKind.INTEGER, ValueKind.FLOAT})


def kind_of(value: Value) -> ValueKind:
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int):
        return ValueKind.INTEGER
    if isinstance(value, float):
        return ValueKind.FLOAT
    if isinstance(value, str):
        return ValueKind.STRING
    raise TypeError(f"{type(value).__name__} is not a Sia value")


def is_numeric(value: Value) -> bool:
    return kind_of(value) in NUMERIC_KINDS


def wrap_int(value: int) -> int:
    """Wrap an integer result into the signed 64-bit range."""
    if INT64_MIN <= value <= INT64_MAX:
        return value
    return (value - INT64_MIN) % 2**64 + INT64_MIN


def format_float(value: float) -> str:
    """Render a float in fixed notation with trailing zeros trimmed."""
    text = f"{value:f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def to_display(value: Value) -> str:
    """Stringify a value the way print and string concatenation do."""
    kind = kind_of(value)
    if kind == ValueKind.STRING:
        return value
    if kind == ValueKind.BOOLEAN:
        return "true" if value else "false"
    if kind == ValueKind.NULL:
        return "null"
    if kind == ValueKind.FLOAT:
        return format_float(value)
    return str(value)


def to_number(value: Value, span: SourceSpan | None, context: str) -> float:
    """Coerce an Integer or Float to a float, rejecting other kinds."""
    if not is_numeric(value):
        raise TypeMismatchError(
            f"{context} expects a number, got {kind_of(value).value}.",
            span=span,
            hint="Only integers and floats take part in arithmetic and ordering.",
        )
    return float(value)


def to_boolean(value: Value, span: SourceSpan | None, context: str) -> bool:
    """Apply the boolean coercion used by if, loop, and logical operators."""
    kind = kind_of(value)
    if kind == ValueKind.BOOLEAN:
        return value
    if kind in NUMERIC_KINDS:
        return value != 0
    raise TypeMismatchError(
        f"{context} expects a boolean condition, got {kind.value}.",
        span=span,
        hint="Strings and null have no truth value; compare them explicitly.",
    )
