"""Tree-walking evaluator for Sia programs."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import TextIO, Union

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
from sia.builtins import NativeFunction, default_natives
from sia.errors import (
    ArgumentCountMismatchError,
    DivisionByZeroError,
    EvaluationError,
    InvalidOperatorError,
    ModuloByZeroError,
    TypeMismatchError,
    UndefinedFunctionError,
)
from sia.scope import ScopeChain
from sia.source_map import SourceSpan
from sia.values import (
    NUMERIC_KINDS,
    Value,
    ValueKind,
    kind_of,
    to_boolean,
    to_display,
    to_number,
    wrap_int,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Completed:
    """Statement ran to its end; value is the last expression result or Null."""

    value: Value = None


@dataclass(frozen=True)
class Returning:
    """A return statement fired and is travelling to the nearest call boundary."""

    value: Value = None
    span: SourceSpan | None = None


ExecResult = Union[Completed, Returning]


@dataclass(frozen=True)
class UserFunction:
    """Function table entry; the body is shared with the AST."""

    name: str
    params: tuple[str, ...]
    body: Block


_COMPARISONS = {
    "<": lambda a, b: a < b,
    ">": lambda a, b: a > b,
    "<=": lambda a, b: a <= b,
    ">=": lambda a, b: a >= b,
}

_FLOAT_ARITHMETIC = {
    "-": lambda a, b: a - b,
    "*": lambda a, b: a * b,
}


class Evaluator:
    """Executes Sia ASTs against a persistent scope chain and function table.

    One instance holds the state of one program run or one REPL session.
    """

    def __init__(
        self,
        output: TextIO | None = None,
        natives: dict[str, NativeFunction] | None = None,
    ) -> None:
        self.output = output
        self.scopes = ScopeChain()
        self.functions: dict[str, UserFunction] = {}
        self.natives: dict[str, NativeFunction] = default_natives(self._output_stream)
        for name, fn in (natives or {}).items():
            self.register_native(name, fn)

    def _output_stream(self) -> TextIO:
        return self.output if self.output is not None else sys.stdout

    def register_native(self, name: str, fn: NativeFunction) -> None:
        """Register or replace a native function."""
        if name in self.natives:
            logger.debug("Overwriting native %s", name)
        self.natives[name] = fn

    def evaluate(self, program: Program) -> ExecResult:
        """Run a program's statements in the global frame.

        A Returning result means a return statement escaped the program body;
        entry points decide whether that is acceptable.
        """
        result: ExecResult = Completed()
        for stmt in program.statements:
            result = self.execute(stmt)
            if isinstance(result, Returning):
                return result
        return result

    # ---------- statements ----------

    def execute(self, stmt: Statement) -> ExecResult:
        if isinstance(stmt, Assignment):
            value = self.evaluate_expression(stmt.value)
            self.scopes.set(stmt.name, value)
            return Completed(value)

        if isinstance(stmt, ExpressionStatement):
            return Completed(self.evaluate_expression(stmt.expr))

        if isinstance(stmt, Block):
            with self.scopes.frame():
                return self._execute_statements(stmt.statements)

        if isinstance(stmt, FunctionDef):
            if stmt.name in self.functions:
                logger.debug("Redefining function %s", stmt.name)
            elif stmt.name in self.natives:
                logger.debug("Function %s is shadowed by a native of the same name", stmt.name)
            else:
                logger.debug("Defining function %s/%d", stmt.name, len(stmt.params))
            self.functions[stmt.name] = UserFunction(name=stmt.name, params=stmt.params, body=stmt.body)
            return Completed()

        if isinstance(stmt, Return):
            value = self.evaluate_expression(stmt.value) if stmt.value is not None else None
            return Returning(value, span=stmt.span)

        if isinstance(stmt, Loop):
            return self._execute_loop(stmt)

        if isinstance(stmt, IfElse):
            condition = self._evaluate_optional(stmt.condition)
            if to_boolean(condition, stmt.span, "if"):
                return self._execute_statements(stmt.if_block.statements)
            if stmt.else_block is not None:
                return self._execute_statements(stmt.else_block.statements)
            return Completed()

        raise EvaluationError(
            code="RUN099",
            message=f"Unsupported statement type '{type(stmt).__name__}'.",
            span=getattr(stmt, "span", None),
            hint="Extend the evaluator for this statement kind.",
        )

    def _execute_statements(self, statements: tuple[Statement, ...]) -> ExecResult:
        """Run statements in the current frame, stopping at a return."""
        result: ExecResult = Completed()
        for stmt in statements:
            result = self.execute(stmt)
            if isinstance(result, Returning):
                return result
        return Completed(result.value)

    def _execute_loop(self, stmt: Loop) -> ExecResult:
        condition = self._evaluate_optional(stmt.condition)
        kind = kind_of(condition)

        if kind == ValueKind.INTEGER:
            for _ in range(condition):
                result = self._execute_statements(stmt.body.statements)
                if isinstance(result, Returning):
                    return result
            return Completed()

        if kind == ValueKind.BOOLEAN:
            while condition:
                result = self._execute_statements(stmt.body.statements)
                if isinstance(result, Returning):
                    return result
                condition = to_boolean(self._evaluate_optional(stmt.condition), stmt.span, "loop")
            return Completed()

        raise TypeMismatchError(
            f"Loop expected integer count or boolean condition, got {kind.value}.",
            span=stmt.span,
            hint="Use an integer to repeat a fixed number of times or a comparison to loop while true.",
        )

    # ---------- expressions ----------

    def evaluate_expression(self, expr: Expression) -> Value:
        if isinstance(expr, IntegerLiteral):
            return expr.value

        if isinstance(expr, FloatLiteral):
            return expr.value

        if isinstance(expr, StringLiteral):
            return expr.value

        if isinstance(expr, BooleanLiteral):
            return expr.value

        if isinstance(expr, Variable):
            return self.scopes.get(expr.name, span=expr.span)

        if isinstance(expr, BinaryOp):
            left = self.evaluate_expression(expr.left)
            right = self.evaluate_expression(expr.right)
            return self.apply_binary(expr.operator, left, right, expr.span)

        if isinstance(expr, UnaryOp):
            operand = self.evaluate_expression(expr.operand)
            return self.apply_unary(expr.operator, operand, expr.span)

        if isinstance(expr, FunctionCall):
            return self.call(expr)

        raise EvaluationError(
            code="RUN098",
            message=f"Unsupported expression type '{type(expr).__name__}'.",
            span=getattr(expr, "span", None),
            hint="Extend the evaluator for this expression kind.",
        )

    def _evaluate_optional(self, expr: Expression | None) -> Value:
        if expr is None:
            return None
        return self.evaluate_expression(expr)

    def call(self, expr: FunctionCall) -> Value:
        native = self.natives.get(expr.name)
        if native is not None:
            args = [self.evaluate_expression(arg) for arg in expr.args]
            return native(args, expr.span)

        function = self.functions.get(expr.name)
        if function is None:
            raise UndefinedFunctionError(expr.name, span=expr.span)
        if len(expr.args) != len(function.params):
            raise ArgumentCountMismatchError(
                expr.name,
                expected=len(function.params),
                actual=len(expr.args),
                span=expr.span,
            )

        # Arguments see the caller's frames only.
        args = [self.evaluate_expression(arg) for arg in expr.args]
        with self.scopes.frame():
            for param, value in zip(function.params, args):
                if self.scopes.contains(param):
                    logger.debug("Parameter %s of %s shadows a visible binding", param, function.name)
                self.scopes.set(param, value)
            result = self._execute_statements(function.body.statements)

        if isinstance(result, Returning):
            return result.value
        return None

    def apply_binary(self, operator: str, left: Value, right: Value, span: SourceSpan) -> Value:
        """Apply a binary operator to two evaluated operands."""
        if operator in ("and", "or"):
            left_bool = to_boolean(left, span, f"'{operator}'")
            right_bool = to_boolean(right, span, f"'{operator}'")
            return (left_bool and right_bool) if operator == "and" else (left_bool or right_bool)

        if operator in _COMPARISONS:
            context = f"'{operator}'"
            return _COMPARISONS[operator](to_number(left, span, context), to_number(right, span, context))

        if operator in ("==", "!="):
            equal = self._values_equal(left, right, operator, span)
            return equal if operator == "==" else not equal

        if operator == "+":
            return self._add(left, right, span)

        if operator in _FLOAT_ARITHMETIC:
            context = f"'{operator}'"
            return _FLOAT_ARITHMETIC[operator](to_number(left, span, context), to_number(right, span, context))

        if operator == "/":
            dividend = to_number(left, span, "'/'")
            divisor = to_number(right, span, "'/'")
            if divisor == 0:
                raise DivisionByZeroError(span=span)
            return dividend / divisor

        if operator == "%":
            return self._modulo(left, right, span)

        raise InvalidOperatorError(operator, span=span)

    def apply_unary(self, operator: str, operand: Value, span: SourceSpan) -> Value:
        if operator != "-":
            raise InvalidOperatorError(operator, span=span)
        kind = kind_of(operand)
        if kind == ValueKind.INTEGER:
            return wrap_int(-operand)
        if kind == ValueKind.FLOAT:
            return -operand
        raise TypeMismatchError(
            f"Unary '-' expects a number, got {kind.value}.",
            span=span,
            hint="Negate integers or floats only.",
        )

    @staticmethod
    def _add(left: Value, right: Value, span: SourceSpan) -> Value:
        left_kind, right_kind = kind_of(left), kind_of(right)
        if ValueKind.STRING in (left_kind, right_kind):
            return to_display(left) + to_display(right)
        if left_kind == ValueKind.INTEGER and right_kind == ValueKind.INTEGER:
            return wrap_int(left + right)
        if left_kind in NUMERIC_KINDS and right_kind in NUMERIC_KINDS:
            return float(left) + float(right)
        raise TypeMismatchError(
            f"Operator '+' cannot combine {left_kind.value} and {right_kind.value}.",
            span=span,
            hint="Add numbers, or include a string to concatenate.",
        )

    @staticmethod
    def _modulo(left: Value, right: Value, span: SourceSpan) -> Value:
        left_kind, right_kind = kind_of(left), kind_of(right)
        if left_kind != ValueKind.INTEGER or right_kind != ValueKind.INTEGER:
            raise TypeMismatchError(
                f"Operator '%' expects two integers, got {left_kind.value} and {right_kind.value}.",
                span=span,
                hint="Modulo is defined for integers only.",
            )
        if right == 0:
            raise ModuloByZeroError(span=span)
        # Remainder takes the sign of the dividend, as 64-bit integer division does.
        remainder = abs(left) % abs(right)
        return -remainder if left < 0 else remainder

    @staticmethod
    def _values_equal(left: Value, right: Value, operator: str, span: SourceSpan) -> bool:
        left_kind, right_kind = kind_of(left), kind_of(right)
        if left_kind in NUMERIC_KINDS and right_kind in NUMERIC_KINDS:
            if left_kind == ValueKind.INTEGER and right_kind == ValueKind.INTEGER:
                return left == right
            return float(left) == float(right)
        if left_kind == right_kind and left_kind in (ValueKind.STRING, ValueKind.BOOLEAN):
            return left == right
        raise TypeMismatchError(
            f"Operator '{operator}' cannot compare {left_kind.value} with {right_kind.value}.",
            span=span,
            hint="Compare strings with strings, numbers with numbers, booleans with booleans.",
        )
