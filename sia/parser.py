"""Sia parser producing a typed AST."""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator
from typing import NoReturn

from sia.ast import (
    Assignment,
    BinaryOp,
    Block,
    BooleanLiteral,
    Expression,
    ExpressionStatement,
    FloatLiteral,
    FunctionCall,
    FunctionDef,
    IfElse,
    IntegerLiteral,
    Loop,
    Program,
    Return,
    Statement,
    StringLiteral,
    UnaryOp,
    Variable,
)
from sia.errors import ParseError
from sia.lexer import Lexer
from sia.source_map import SourceSpan
from sia.tokens import Token, TokenType
from sia.values import INT64_MAX, INT64_MIN


_PRECEDENCE: dict[TokenType, int] = {
    TokenType.OR: 1,
    TokenType.AND: 2,
    TokenType.EQ: 3,
    TokenType.NE: 3,
    TokenType.LT: 3,
    TokenType.LE: 3,
    TokenType.GT: 3,
    TokenType.GE: 3,
    TokenType.PLUS: 4,
    TokenType.MINUS: 4,
    TokenType.STAR: 5,
    TokenType.SLASH: 5,
    TokenType.PERCENT: 5,
}

# '&&' and '||' are spellings of 'and' and 'or'.
_OPERATOR_NAMES: dict[TokenType, str] = {
    TokenType.AND: "and",
    TokenType.OR: "or",
}


class Parser:
    """Recursive-descent + precedence-climbing parser for Sia.

    Tokens are pulled one at a time; the parser never looks further ahead
    than the current token.
    """

    def __init__(self, tokens: Iterable[Token]) -> None:
        self._tokens: Iterator[Token] = iter(tokens)
        # Start-of-input marker until the first token is consumed.
        self._last = Token(kind=TokenType.EOF, lexeme="", span=SourceSpan("<input>", 1, 1, 1, 1))
        self._current = self._pull()

    def parse_program(self) -> Program:
        """Parse full token stream into a program AST."""
        start = self._current.span
        statements: list[Statement] = []
        while not self._is_at_end():
            statements.append(self._parse_statement())

        if statements:
            span = statements[0].span.merge(statements[-1].span)
        else:
            span = start
        return Program(span=span, statements=tuple(statements))

    def _parse_statement(self) -> Statement:
        if self._match(TokenType.FUNCTION):
            return self._parse_function_def(self._previous())
        if self._match(TokenType.LOOP):
            return self._parse_loop(self._previous())
        if self._match(TokenType.IF):
            return self._parse_if_else(self._previous())
        if self._match(TokenType.RETURN):
            return self._parse_return(self._previous())
        if self._check(TokenType.LBRACE):
            return self._parse_block()
        if self._match(TokenType.IDENT):
            return self._parse_identifier_statement(self._previous())

        tok = self._current
        if tok.kind == TokenType.EOF:
            raise self._end_of_input("Expected a statement.")
        raise ParseError(
            code="PAR004",
            message=f"Unexpected {tok.describe()} at start of statement.",
            span=tok.span,
            hint="Statements start with 'function', 'loop', 'if', 'return', '{', or an identifier.",
        )

    def _parse_identifier_statement(self, name_tok: Token) -> Statement:
        if self._match(TokenType.ASSIGN):
            value = self._parse_expression()
            end_tok = self._consume(TokenType.SEMICOLON, "Expected ';' after assignment.")
            return Assignment(span=name_tok.span.merge(end_tok.span), name=name_tok.lexeme, value=value)

        if self._check(TokenType.LPAR):
            call = self._parse_call(name_tok)
            span = call.span
            if self._match(TokenType.SEMICOLON):
                span = span.merge(self._previous().span)
            return ExpressionStatement(span=span, expr=call)

        self._fail(f"Expected '=' or '(' after identifier '{name_tok.lexeme}'.")

    def _parse_function_def(self, fn_token: Token) -> FunctionDef:
        name_tok = self._consume(TokenType.IDENT, "Expected function name after 'function'.")
        self._consume(TokenType.LPAR, "Expected '(' after function name.")
        params: list[str] = []

        if not self._check(TokenType.RPAR):
            while True:
                param_tok = self._consume(TokenType.IDENT, "Expected parameter name.")
                params.append(param_tok.lexeme)
                if not self._match(TokenType.COMMA):
                    break

        self._consume(TokenType.RPAR, "Expected ')' after function parameters.")
        body = self._parse_block()
        return FunctionDef(
            span=fn_token.span.merge(body.span),
            name=name_tok.lexeme,
            params=tuple(params),
            body=body,
        )

    def _parse_loop(self, loop_token: Token) -> Loop:
        condition = self._parse_condition("loop")
        body = self._parse_block()
        return Loop(span=loop_token.span.merge(body.span), condition=condition, body=body)

    def _parse_if_else(self, if_token: Token) -> IfElse:
        condition = self._parse_condition("if")
        if_block = self._parse_block()
        else_block: Block | None = None
        end_span = if_block.span

        if self._match(TokenType.ELSE):
            if self._match(TokenType.IF):
                nested = self._parse_if_else(self._previous())
                else_block = Block(span=nested.span, statements=(nested,))
            else:
                else_block = self._parse_block()
            end_span = else_block.span

        return IfElse(
            span=if_token.span.merge(end_span),
            condition=condition,
            if_block=if_block,
            else_block=else_block,
        )

    def _parse_condition(self, keyword: str) -> Expression | None:
        self._consume(TokenType.LPAR, f"Expected '(' after '{keyword}'.")
        condition: Expression | None = None
        if not self._check(TokenType.RPAR):
            condition = self._parse_expression()
        self._consume(TokenType.RPAR, f"Expected ')' after {keyword} condition.")
        return condition

    def _parse_return(self, ret_token: Token) -> Return:
        value: Expression | None = None
        if not self._check(TokenType.SEMICOLON):
            value = self._parse_expression()
        end_tok = self._consume(TokenType.SEMICOLON, "Expected ';' after return.")
        return Return(span=ret_token.span.merge(end_tok.span), value=value)

    def _parse_block(self) -> Block:
        lbrace = self._consume(TokenType.LBRACE, "Expected '{' to start block.")
        statements: list[Statement] = []

        while not self._check(TokenType.RBRACE) and not self._is_at_end():
            statements.append(self._parse_statement())

        rbrace = self._consume(TokenType.RBRACE, "Expected '}' to close block.")
        return Block(span=lbrace.span.merge(rbrace.span), statements=tuple(statements))

    def _parse_expression(self, min_prec: int = 1) -> Expression:
        expr = self._parse_unary()

        while True:
            prec = _PRECEDENCE.get(self._current.kind)
            if prec is None or prec < min_prec:
                break

            op = self._advance()
            right = self._parse_expression(prec + 1)
            expr = BinaryOp(
                span=expr.span.merge(right.span),
                operator=_OPERATOR_NAMES.get(op.kind, op.lexeme),
                left=expr,
                right=right,
            )

        return expr

    def _parse_unary(self) -> Expression:
        if self._match(TokenType.MINUS):
            op = self._previous()
            if self._check(TokenType.NUMBER) and _is_int64_min_magnitude(self._current.lexeme):
                tok = self._advance()
                return IntegerLiteral(span=op.span.merge(tok.span), value=INT64_MIN)
            operand = self._parse_unary()
            return UnaryOp(span=op.span.merge(operand.span), operator=op.lexeme, operand=operand)
        return self._parse_primary()

    def _parse_primary(self) -> Expression:
        if self._match(TokenType.NUMBER):
            return self._number_literal(self._previous())

        if self._match(TokenType.STRING):
            tok = self._previous()
            return StringLiteral(span=tok.span, value=tok.lexeme)

        if self._match(TokenType.TRUE):
            return BooleanLiteral(span=self._previous().span, value=True)

        if self._match(TokenType.FALSE):
            return BooleanLiteral(span=self._previous().span, value=False)

        if self._match(TokenType.IDENT):
            tok = self._previous()
            if self._check(TokenType.LPAR):
                return self._parse_call(tok)
            return Variable(span=tok.span, name=tok.lexeme)

        if self._match(TokenType.LPAR):
            expr = self._parse_expression()
            self._consume(TokenType.RPAR, "Expected ')' to close grouped expression.")
            return expr

        tok = self._current
        if tok.kind == TokenType.EOF:
            raise self._end_of_input("Expected an expression.")
        raise ParseError(
            code="PAR001",
            message=f"Unexpected {tok.describe()} in expression.",
            span=tok.span,
            hint="Use literals, identifiers, calls, or parenthesized expressions.",
        )

    def _parse_call(self, name_tok: Token) -> FunctionCall:
        self._consume(TokenType.LPAR, "Expected '(' after function name.")
        args: list[Expression] = []
        if not self._check(TokenType.RPAR):
            while True:
                args.append(self._parse_expression())
                if not self._match(TokenType.COMMA):
                    break
        rpar = self._consume(TokenType.RPAR, "Expected ')' after call arguments.")
        return FunctionCall(span=name_tok.span.merge(rpar.span), name=name_tok.lexeme, args=tuple(args))

    @staticmethod
    def _number_literal(tok: Token) -> Expression:
        if "." in tok.lexeme:
            value = float(tok.lexeme)
            if math.isinf(value):
                raise ParseError(
                    code="PAR005",
                    message=f"Float literal {tok.lexeme} is out of range.",
                    span=tok.span,
                    hint="Float literals must be finite.",
                )
            return FloatLiteral(span=tok.span, value=value)
        value = int(tok.lexeme)
        if value > INT64_MAX:
            raise ParseError(
                code="PAR005",
                message=f"Integer literal {tok.lexeme} does not fit in 64 bits.",
                span=tok.span,
                hint=f"Integers range from {INT64_MIN} to {INT64_MAX}; use a float literal for larger magnitudes.",
            )
        return IntegerLiteral(span=tok.span, value=value)

    def _consume(self, token_type: TokenType, message: str) -> Token:
        if self._check(token_type):
            return self._advance()
        self._fail(message)

    def _fail(self, message: str) -> NoReturn:
        tok = self._current
        if tok.kind == TokenType.EOF:
            raise self._end_of_input(message)
        raise ParseError(
            code="PAR002",
            message=f"{message} Found {tok.describe()}.",
            span=tok.span,
            hint="Adjust token order to match grammar.",
        )

    def _end_of_input(self, message: str) -> ParseError:
        return ParseError(
            code="PAR003",
            message=f"Unexpected end of input. {message}",
            span=self._current.span,
            hint="The program ended before the construct was complete.",
        )

    def _match(self, *token_types: TokenType) -> bool:
        for token_type in token_types:
            if self._check(token_type):
                self._advance()
                return True
        return False

    def _check(self, token_type: TokenType) -> bool:
        return self._current.kind == token_type

    def _advance(self) -> Token:
        tok = self._current
        if not self._is_at_end():
            self._last = tok
            self._current = self._pull()
        return tok

    def _previous(self) -> Token:
        return self._last

    def _is_at_end(self) -> bool:
        return self._current.kind == TokenType.EOF

    def _pull(self) -> Token:
        tok = next(self._tokens, None)
        if tok is not None:
            return tok
        # Streams without a trailing EOF end at the last position seen.
        anchor = self._last.span
        span = SourceSpan(anchor.file, anchor.end_line, anchor.end_column, anchor.end_line, anchor.end_column)
        return Token(kind=TokenType.EOF, lexeme="", span=span)


def _is_int64_min_magnitude(lexeme: str) -> bool:
    """True for the one integer literal that is only in range once negated."""
    return "." not in lexeme and int(lexeme) == -INT64_MIN


def parse(source: str, filename: str = "<input>") -> Program:
    """Tokenize and parse source text into a Program."""
    return Parser(Lexer(source, filename=filename).iter_tokens()).parse_program()
