"""Sia lexical analyzer."""

from __future__ import annotations

import string
from collections.abc import Iterator
from typing import Final

from sia.errors import LexError
from sia.source_map import SourceSpan
from sia.tokens import KEYWORDS, Token, TokenType


_DIGITS: Final = frozenset(string.digits)
_IDENT_START: Final = frozenset(string.ascii_letters + "_")
_IDENT_PART: Final = _IDENT_START | _DIGITS
_WHITESPACE: Final = frozenset(" \t\r\n")

# Two-character operators are tried before single characters.
_OPERATORS: Final[dict[str, TokenType]] = {
    "==": TokenType.EQ,
    "!=": TokenType.NE,
    "<=": TokenType.LE,
    ">=": TokenType.GE,
    "&&": TokenType.AND,
    "||": TokenType.OR,
    ",": TokenType.COMMA,
    ";": TokenType.SEMICOLON,
    "(": TokenType.LPAR,
    ")": TokenType.RPAR,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "%": TokenType.PERCENT,
    "<": TokenType.LT,
    ">": TokenType.GT,
    "=": TokenType.ASSIGN,
}

_ESCAPES: Final[dict[str, str]] = {
    "n": "\n",
    "t": "\t",
    '"': '"',
    "\\": "\\",
}


class Lexer:
    """Converts Sia source text into a token stream.

    Only ASCII letters, digits and underscores form identifiers and numbers;
    any other character outside strings and comments is LEX001.
    """

    def __init__(self, source: str, filename: str = "<input>") -> None:
        self.source = source
        self.filename = filename
        self.index = 0
        self.line = 1
        self.column = 1
        self._start = (1, 1)

    def tokenize(self) -> list[Token]:
        """Tokenize full source and return the token stream."""
        return list(self.iter_tokens())

    def iter_tokens(self) -> Iterator[Token]:
        """Lazily yield tokens; the final token is always EOF."""
        while self._skip_trivia():
            self._mark()
            ch = self._peek()
            if ch in _IDENT_START:
                word = self._take_while(_IDENT_PART)
                yield self._emit(KEYWORDS.get(word, TokenType.IDENT), word)
            elif ch in _DIGITS:
                yield self._emit(TokenType.NUMBER, self._read_number())
            elif ch == '"':
                yield self._emit(TokenType.STRING, self._read_string())
            else:
                yield self._read_operator()

        self._mark()
        yield self._emit(TokenType.EOF, "")

    def _skip_trivia(self) -> bool:
        """Skip whitespace and comments; False once the input is exhausted."""
        while not self._is_eof():
            ch = self._peek()
            if ch in _WHITESPACE:
                self._advance()
            elif ch == "/" and self._peek(1) == "/":
                while not self._is_eof() and self._peek() != "\n":
                    self._advance()
            elif ch == "/" and self._peek(1) == "*":
                self._skip_block_comment()
            else:
                return True
        return False

    def _skip_block_comment(self) -> None:
        self._mark()
        self._advance(2)
        while not self._is_eof():
            if self._peek() == "*" and self._peek(1) == "/":
                self._advance(2)
                return
            self._advance()
        raise self._error("LEX003", "Unterminated block comment.", "Close the comment with '*/'.")

    def _read_number(self) -> str:
        digits = self._take_while(_DIGITS)
        # A dot belongs to the number only when a digit follows it.
        if self._peek() == "." and self._peek(1) in _DIGITS:
            self._advance()
            digits += "." + self._take_while(_DIGITS)
        return digits

    def _read_string(self) -> str:
        self._advance()
        chars: list[str] = []
        while not self._is_eof():
            ch = self._advance()
            if ch == '"':
                return "".join(chars)
            if ch == "\\" and not self._is_eof():
                escaped = self._advance()
                chars.append(_ESCAPES.get(escaped, escaped))
            elif ch != "\\":
                chars.append(ch)
        raise self._error("LEX002", "Unterminated string literal.", "Close the string with a double quote.")

    def _read_operator(self) -> Token:
        for width in (2, 1):
            lexeme = self.source[self.index : self.index + width]
            token_type = _OPERATORS.get(lexeme)
            if token_type is not None:
                self._advance(width)
                return self._emit(token_type, lexeme)
        self._advance()
        raise self._error(
            "LEX001",
            f"Unexpected character {self.source[self.index - 1]!r}.",
            "Remove the character or place it inside a string literal.",
        )

    def _take_while(self, allowed: frozenset[str]) -> str:
        start = self.index
        while not self._is_eof() and self._peek() in allowed:
            self._advance()
        return self.source[start : self.index]

    def _mark(self) -> None:
        self._start = (self.line, self.column)

    def _span_from_mark(self) -> SourceSpan:
        line, column = self._start
        return SourceSpan(self.filename, line, column, self.line, self.column)

    def _emit(self, kind: TokenType, lexeme: str) -> Token:
        return Token(kind=kind, lexeme=lexeme, span=self._span_from_mark())

    def _error(self, code: str, message: str, hint: str) -> LexError:
        return LexError(code=code, message=message, span=self._span_from_mark(), hint=hint)

    def _peek(self, offset: int = 0) -> str:
        idx = self.index + offset
        if idx >= len(self.source):
            return "\0"
        return self.source[idx]

    def _advance(self, count: int = 1) -> str:
        consumed = self.source[self.index : self.index + count]
        for ch in consumed:
            self.index += 1
            if ch == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        return consumed

    def _is_eof(self) -> bool:
        return self.index >= len(self.source)
