"""Source location utilities shared by the lexer, parser, and evaluator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class SourceSpan:
    """Represents a source range in 1-based coordinates."""

    file: str
    line: int
    column: int
    end_line: int
    end_column: int

    def merge(self, end: SourceSpan) -> SourceSpan:
        """Return a span running from the start of self to the end of end."""
        return SourceSpan(
            file=self.file,
            line=self.line,
            column=self.column,
            end_line=end.end_line,
            end_column=end.end_column,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize the span to a JSON-compatible mapping."""
        return {
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "end_line": self.end_line,
            "end_column": self.end_column,
        }

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"
