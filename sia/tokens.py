"""Token definitions for Sia lexical analysis."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from sia.source_map import SourceSpan


class TokenType(Enum):
    """Finite token categories used by lexer and parser."""

    IDENT = auto()
    NUMBER = auto()
    STRING = auto()

    FUNCTION = auto()
    RETURN = auto()
    LOOP = auto()
    IF = auto()
    ELSE = auto()
    TRUE = auto()
    FALSE = auto()
    AND = auto()  # and, &&
    OR = auto()  # or, ||

    ASSIGN = auto()  # =
    COMMA = auto()
    SEMICOLON = auto()
    LPAR = auto()
    RPAR = auto()
    LBRACE = auto()
    RBRACE = auto()

    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    PERCENT = auto()

    EQ = auto()  # ==
    NE = auto()  # !=
    LT = auto()
    LE = auto()
    GT = auto()
    GE = auto()

    EOF = auto()


KEYWORDS: dict[str, TokenType] = {
    "function": TokenType.FUNCTION,
    "return": TokenType.RETURN,
    "loop": TokenType.LOOP,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
    "and": TokenType.AND,
    "or": TokenType.OR,
}


@dataclass(frozen=True)
class Token:
    """A single lexical token with original source span."""

    kind: TokenType
    lexeme: str
    span: SourceSpan

    @property
    def line(self) -> int:
        return self.span.line

    @property
    def column(self) -> int:
        return self.span.column

    def describe(self) -> str:
        """Human-readable description used in parse diagnostics."""
        if self.kind == TokenType.EOF:
            return "end of input"
        if self.kind == TokenType.IDENT:
            return f"identifier '{self.lexeme}'"
        if self.kind == TokenType.NUMBER:
            return f"number {self.lexeme}"
        if self.kind == TokenType.STRING:
            return f"string {self.lexeme!r}"
        if self.lexeme in KEYWORDS:
            return f"keyword '{self.lexeme}'"
        return f"'{self.lexeme}'"

    def __str__(self) -> str:
        return f"{self.kind.name}({self.lexeme!r})@{self.span.line}:{self.span.column}"
