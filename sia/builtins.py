"""Native functions available to every Sia program."""

from __future__ import annotations

import math
from typing import Callable, TextIO

from sia.errors import ArgumentCountMismatchError
from sia.source_map import SourceSpan
from sia.values import Value, to_display, to_number


NativeFunction = Callable[[list[Value], SourceSpan], Value]


def make_print(output: Callable[[], TextIO]) -> NativeFunction:
    """Build ``print``: display every argument, space separated, one line."""

    def native_print(args: list[Value], span: SourceSpan) -> Value:
        stream = output()
        stream.write(" ".join(to_display(arg) for arg in args) + "\n")
        return None

    return native_print


def native_pow(args: list[Value], span: SourceSpan) -> Value:
    if len(args) != 2:
        raise ArgumentCountMismatchError("pow", expected=2, actual=len(args), span=span)
    base = to_number(args[0], span, "pow base")
    exponent = to_number(args[1], span, "pow exponent")
    try:
        return math.pow(base, exponent)
    except OverflowError:
        return math.inf
    except ValueError:
        # Negative base with fractional exponent, or zero to a negative power.
        return math.inf if base == 0 else math.nan


def default_natives(output: Callable[[], TextIO]) -> dict[str, NativeFunction]:
    """Create the standard native table writing ``print`` output to output()."""
    return {
        "print": make_print(output),
        "pow": native_pow,
    }
