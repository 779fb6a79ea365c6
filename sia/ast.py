"""AST model for Sia source programs.

The node set is closed: every statement is one of the classes in
``Statement`` and every expression one of the classes in ``Expression``.
Nodes are frozen and hold tuples, so a parsed tree is read-only.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from sia.source_map import SourceSpan


@dataclass(frozen=True)
class AstNode:
    """Base class for AST nodes with provenance span."""

    span: SourceSpan


@dataclass(frozen=True)
class Program(AstNode):
    """Root AST node representing a full Sia script."""

    statements: tuple[Statement, ...] = ()


@dataclass(frozen=True)
class Block(AstNode):
    """Braced sequence of statements."""

    statements: tuple[Statement, ...] = ()


@dataclass(frozen=True)
class Assignment(AstNode):
    """Binds an identifier in the current frame: ``name = value;``"""

    name: str
    value: Expression


@dataclass(frozen=True)
class FunctionDef(AstNode):
    """Function definition: ``function name(params) { ... }``"""

    name: str
    params: tuple[str, ...]
    body: Block


@dataclass(frozen=True)
class ExpressionStatement(AstNode):
    """Expression evaluated for its effect."""

    expr: Expression


@dataclass(frozen=True)
class Return(AstNode):
    """Return statement, optionally returning a value."""

    value: Expression | None = None


@dataclass(frozen=True)
class Loop(AstNode):
    """Counted or conditional loop: ``loop (condition) { ... }``"""

    condition: Expression | None
    body: Block


@dataclass(frozen=True)
class IfElse(AstNode):
    """Conditional with optional else block.

    ``else if`` is stored as an else block holding a single nested IfElse.
    """

    condition: Expression | None
    if_block: Block
    else_block: Block | None = None


@dataclass(frozen=True)
class BinaryOp(AstNode):
    """Binary operator expression."""

    operator: str
    left: Expression
    right: Expression


@dataclass(frozen=True)
class UnaryOp(AstNode):
    """Unary operator expression."""

    operator: str
    operand: Expression


@dataclass(frozen=True)
class Variable(AstNode):
    """Identifier reference expression."""

    name: str


@dataclass(frozen=True)
class FunctionCall(AstNode):
    """Call of a native or user-defined function by name."""

    name: str
    args: tuple[Expression, ...] = ()


@dataclass(frozen=True)
class StringLiteral(AstNode):
    value: str


@dataclass(frozen=True)
class IntegerLiteral(AstNode):
    value: int


@dataclass(frozen=True)
class FloatLiteral(AstNode):
    value: float


@dataclass(frozen=True)
class BooleanLiteral(AstNode):
    value: bool


Literal = Union[StringLiteral, IntegerLiteral, FloatLiteral, BooleanLiteral]

Expression = Union[BinaryOp, UnaryOp, Variable, FunctionCall, Literal]

Statement = Union[Block, Assignment, FunctionDef, ExpressionStatement, Return, Loop, IfElse]
