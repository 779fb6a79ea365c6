"""Render a Sia AST back to canonical source text."""

from __future__ import annotations

import math
from decimal import Decimal

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


_STRING_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\t": "\\t",
}


class Formatter:
    """Emits source that parses back to a structurally identical AST.

    Binary operations are always parenthesized, so precedence never has to be
    reconstructed.
    """

    def __init__(self, unit: str = "    ") -> None:
        self.unit = unit

    def format_program(self, program: Program) -> str:
        lines: list[str] = []
        for stmt in program.statements:
            lines.extend(self._emit_stmt(stmt, indent=0))
        return "\n".join(lines) + "\n" if lines else ""

    def _emit_stmt(self, stmt: Statement, indent: int) -> list[str]:
        prefix = self.unit * indent

        if isinstance(stmt, Assignment):
            return [f"{prefix}{stmt.name} = {self.format_expression(stmt.value)};"]

        if isinstance(stmt, ExpressionStatement):
            return [f"{prefix}{self.format_expression(stmt.expr)};"]

        if isinstance(stmt, Return):
            if stmt.value is None:
                return [f"{prefix}return;"]
            return [f"{prefix}return {self.format_expression(stmt.value)};"]

        if isinstance(stmt, FunctionDef):
            header = f"{prefix}function {stmt.name}({', '.join(stmt.params)}) "
            return self._emit_block(header, stmt.body, indent)

        if isinstance(stmt, Loop):
            header = f"{prefix}loop ({self._format_optional(stmt.condition)}) "
            return self._emit_block(header, stmt.body, indent)

        if isinstance(stmt, IfElse):
            return self._emit_if_else(stmt, indent, prefix)

        if isinstance(stmt, Block):
            return self._emit_block(prefix, stmt, indent)

        raise ValueError(f"Unsupported statement type '{type(stmt).__name__}'.")

    def _emit_if_else(self, stmt: IfElse, indent: int, header_prefix: str) -> list[str]:
        header = f"{header_prefix}if ({self._format_optional(stmt.condition)}) "
        lines = self._emit_block(header, stmt.if_block, indent)
        else_block = stmt.else_block
        if else_block is None:
            return lines

        closing = lines.pop()
        nested = else_block.statements
        if len(nested) == 1 and isinstance(nested[0], IfElse):
            lines.extend(self._emit_if_else(nested[0], indent, f"{closing} else "))
        else:
            lines.extend(self._emit_block(f"{closing} else ", else_block, indent))
        return lines

    def _emit_block(self, header: str, block: Block, indent: int) -> list[str]:
        if not block.statements:
            return [header + "{}"]
        lines = [header + "{"]
        for stmt in block.statements:
            lines.extend(self._emit_stmt(stmt, indent + 1))
        lines.append(self.unit * indent + "}")
        return lines

    def _format_optional(self, expr: Expression | None) -> str:
        return "" if expr is None else self.format_expression(expr)

    def format_expression(self, expr: Expression) -> str:
        if isinstance(expr, IntegerLiteral):
            return str(expr.value)

        if isinstance(expr, FloatLiteral):
            return format_float_literal(expr.value)

        if isinstance(expr, StringLiteral):
            escaped = "".join(_STRING_ESCAPES.get(ch, ch) for ch in expr.value)
            return f'"{escaped}"'

        if isinstance(expr, BooleanLiteral):
            return "true" if expr.value else "false"

        if isinstance(expr, Variable):
            return expr.name

        if isinstance(expr, FunctionCall):
            args = ", ".join(self.format_expression(arg) for arg in expr.args)
            return f"{expr.name}({args})"

        if isinstance(expr, UnaryOp):
            return f"{expr.operator}{self.format_expression(expr.operand)}"

        if isinstance(expr, BinaryOp):
            left = self.format_expression(expr.left)
            right = self.format_expression(expr.right)
            return f"({left} {expr.operator} {right})"

        raise ValueError(f"Unsupported expression type '{type(expr).__name__}'.")


def format_float_literal(value: float) -> str:
    """Spell a float so the lexer reads it back as the same float literal."""
    if not math.isfinite(value):
        raise ValueError(f"Float literal {value!r} has no source spelling.")
    text = repr(value)
    if "e" in text or "E" in text:
        text = format(Decimal(text), "f")
    if text.endswith("."):
        text += "0"
    if "." not in text:
        text += ".0"
    return text


def format_program(program: Program) -> str:
    """Render a program with the default four-space indentation."""
    return Formatter().format_program(program)
