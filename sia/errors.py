"""Structured interpreter diagnostics and exception hierarchy for Sia."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sia.source_map import SourceSpan


@dataclass(frozen=True)
class Diagnostic:
    """Machine-readable diagnostic emitted by interpreter phases."""

    code: str
    message: str
    span: SourceSpan | None = None
    hint: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize the diagnostic for JSON output."""
        payload: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "hint": self.hint,
        }
        if self.span is not None:
            payload["span"] = self.span.to_dict()
        return payload


class SiaError(Exception):
    """Base interpreter error carrying a code and optional source span."""

    def __init__(self, code: str, message: str, span: SourceSpan | None = None, hint: str = "") -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.span = span
        self.hint = hint

    def to_diagnostic(self) -> Diagnostic:
        """Convert exception into serializable diagnostic."""
        return Diagnostic(code=self.code, message=self.message, span=self.span, hint=self.hint)

    def __str__(self) -> str:
        if self.span is None:
            return f"[{self.code}] {self.message}"
        return f"[{self.code}] {self.message} ({self.span})"


class LexError(SiaError):
    """Raised when no token rule matches the remaining input."""


class ParseError(SiaError):
    """Raised on an unexpected token or a premature end of input."""


class EvaluationError(SiaError):
    """Base class for failures raised while executing a program."""


class UndefinedVariableError(EvaluationError):
    """Raised when no frame of the scope chain defines a name."""

    def __init__(self, name: str, span: SourceSpan | None = None) -> None:
        super().__init__(
            code="RUN001",
            message=f"Undefined variable '{name}'.",
            span=span,
            hint="Assign the variable before reading it.",
        )
        self.name = name


class UndefinedFunctionError(EvaluationError):
    """Raised when a call names neither a native nor a defined function."""

    def __init__(self, name: str, span: SourceSpan | None = None) -> None:
        super().__init__(
            code="RUN002",
            message=f"Undefined function '{name}'.",
            span=span,
            hint="Define the function before calling it.",
        )
        self.name = name


class ArgumentCountMismatchError(EvaluationError):
    """Raised when a call passes the wrong number of arguments."""

    def __init__(self, name: str, expected: int, actual: int, span: SourceSpan | None = None) -> None:
        super().__init__(
            code="RUN003",
            message=f"Function '{name}' expects {expected} argument(s), got {actual}.",
            span=span,
            hint="Adjust call argument count.",
        )
        self.name = name
        self.expected = expected
        self.actual = actual


class TypeMismatchError(EvaluationError):
    """Raised when an operand has the wrong kind for an operator or native."""

    def __init__(self, message: str, span: SourceSpan | None = None, hint: str = "") -> None:
        super().__init__(code="RUN004", message=message, span=span, hint=hint)


class DivisionByZeroError(EvaluationError):
    """Raised by '/' with a zero divisor."""

    def __init__(self, span: SourceSpan | None = None) -> None:
        super().__init__(code="RUN005", message="Division by zero.", span=span)


class ModuloByZeroError(EvaluationError):
    """Raised by '%' with a zero divisor."""

    def __init__(self, span: SourceSpan | None = None) -> None:
        super().__init__(code="RUN006", message="Modulo by zero.", span=span)


class InvalidOperatorError(EvaluationError):
    """Raised when an operator reaches dispatch without a matching case."""

    def __init__(self, operator: str, span: SourceSpan | None = None) -> None:
        super().__init__(
            code="RUN007",
            message=f"Invalid operator '{operator}'.",
            span=span,
            hint="The parser produced an operator the evaluator does not know.",
        )
        self.operator = operator


class TopLevelReturnError(EvaluationError):
    """Raised by entry points when 'return' escapes the program body."""

    def __init__(self, span: SourceSpan | None = None) -> None:
        super().__init__(
            code="RUN008",
            message="Return statements are only valid inside functions.",
            span=span,
            hint="Move return into a function body or remove it.",
        )


class CLIError(SiaError):
    """Raised by CLI usage or file handling failures."""


def format_diagnostic(diag: Diagnostic) -> str:
    """Format diagnostic into a stable human-readable line."""
    if diag.span is None:
        suffix = ""
    else:
        suffix = f" {diag.span.file}:{diag.span.line}:{diag.span.column}"
    hint = f" Hint: {diag.hint}" if diag.hint else ""
    return f"{diag.code}{suffix}: {diag.message}{hint}"
