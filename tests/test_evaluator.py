from __future__ import annotations

import io
import unittest

from sia.errors import (
    ArgumentCountMismatchError,
    DivisionByZeroError,
    InvalidOperatorError,
    ModuloByZeroError,
    TopLevelReturnError,
    TypeMismatchError,
    UndefinedFunctionError,
    UndefinedVariableError,
)
from sia.evaluator import Completed, Evaluator, Returning
from sia.main import run_source
from sia.parser import parse
from sia.source_map import SourceSpan


SPAN = SourceSpan('<test>', 1, 1, 1, 1)


def run(source: str) -> str:
    out = io.StringIO()
    run_source(source, output=out)
    return out.getvalue()


def run_with(source: str) -> tuple[Evaluator, str]:
    out = io.StringIO()
    evaluator = run_source(source, output=out)
    return evaluator, out.getvalue()


class ProgramBehaviourTests(unittest.TestCase):
    def test_counted_loop_updates_enclosing_frame(self) -> None:
        self.assertEqual(run('x = 1; loop (3) { x = x + 1; } print(x);'), '4\n')

    def test_function_call_and_arity(self) -> None:
        source = 'function add(a, b) { return a + b; } print(add(2, 3));'
        self.assertEqual(run(source), '5\n')
        with self.assertRaises(ArgumentCountMismatchError) as ctx:
            run('function add(a, b) { return a + b; } add(2);')
        self.assertEqual(ctx.exception.code, 'RUN003')
        self.assertEqual((ctx.exception.expected, ctx.exception.actual), (2, 1))

    def test_division_promotes_and_addition_preserves_integers(self) -> None:
        self.assertEqual(run('print(1 / 2);'), '0.5\n')
        self.assertEqual(run('print(1 + 2);'), '3\n')

    def test_string_concatenation_and_modulo_by_zero(self) -> None:
        self.assertEqual(run('print("a" + 1);'), 'a1\n')
        with self.assertRaises(ModuloByZeroError):
            run('print(5 % 0);')

    def test_integer_zero_is_falsy_and_strings_are_not_conditions(self) -> None:
        self.assertEqual(run('if (0) { print("a"); } else { print("b"); }'), 'b\n')
        with self.assertRaises(TypeMismatchError):
            run('if ("x") { }')

    def test_callee_assignment_shadows_caller_binding(self) -> None:
        source = '''
        x = 1;
        function f() {
            print(x);
            x = 2;
            print(x);
        }
        f();
        print(x);
        '''
        self.assertEqual(run(source), '1\n2\n1\n')

    def test_callee_sees_caller_locals(self) -> None:
        source = '''
        function show() { print(secret); }
        function outer() {
            secret = 42;
            show();
        }
        outer();
        '''
        self.assertEqual(run(source), '42\n')
        with self.assertRaises(UndefinedVariableError) as ctx:
            run(source + 'show();')
        self.assertEqual(ctx.exception.name, 'secret')

    def test_arguments_are_evaluated_in_caller_scope(self) -> None:
        source = 'a = 10; function f(a, b) { return b; } print(f(1, a));'
        self.assertEqual(run(source), '10\n')

    def test_return_propagates_out_of_loops_and_branches(self) -> None:
        source = '''
        function find() {
            i = 0;
            loop (true) {
                i = i + 1;
                if (i == 3) { return i; }
            }
        }
        print(find());
        '''
        self.assertEqual(run(source), '3\n')

    def test_falling_off_function_yields_null(self) -> None:
        self.assertEqual(run('function f() { x = 1; } print(f());'), 'null\n')
        self.assertEqual(run('function g() { return; } print(g());'), 'null\n')

    def test_recursion(self) -> None:
        source = '''
        function fib(n) {
            if (n < 2) { return n; }
            return fib(n - 1) + fib(n - 2);
        }
        print(fib(15));
        '''
        # '-' always produces floats, so fib(n - 1) receives 14.0.
        self.assertEqual(run(source), '610\n')

    def test_function_redefinition_overwrites(self) -> None:
        source = 'function f() { return 1; } function f() { return 2; } print(f());'
        self.assertEqual(run(source), '2\n')

    def test_function_defined_after_use_site_in_source_order(self) -> None:
        with self.assertRaises(UndefinedFunctionError) as ctx:
            run('later(); function later() { }')
        self.assertEqual(ctx.exception.name, 'later')

    def test_natives_shadow_user_functions(self) -> None:
        self.assertEqual(run('function print(a) { return 1; } print("hi");'), 'hi\n')


class ScopingTests(unittest.TestCase):
    def test_if_body_bindings_outlive_the_branch(self) -> None:
        self.assertEqual(run('if (true) { y = 5; } print(y);'), '5\n')

    def test_loop_body_bindings_outlive_the_loop(self) -> None:
        self.assertEqual(run('loop (2) { z = 7; } print(z);'), '7\n')

    def test_nested_block_has_its_own_frame(self) -> None:
        with self.assertRaises(UndefinedVariableError):
            run('{ z = 1; } print(z);')
        self.assertEqual(run('z = 1; { print(z); z = 2; } print(z);'), '1\n1\n')

    def test_function_frame_is_popped_after_call(self) -> None:
        evaluator, _ = run_with('function f(p) { local = p; } f(3);')
        self.assertEqual(evaluator.scopes.depth, 1)
        self.assertNotIn('local', evaluator.scopes.globals)
        self.assertNotIn('p', evaluator.scopes.globals)

    def test_frame_is_popped_when_call_fails(self) -> None:
        evaluator = Evaluator(output=io.StringIO())
        with self.assertRaises(DivisionByZeroError):
            run_source('function f() { return 1 / 0; } f();', evaluator=evaluator)
        self.assertEqual(evaluator.scopes.depth, 1)

    def test_state_persists_across_runs_on_one_evaluator(self) -> None:
        out = io.StringIO()
        evaluator = Evaluator(output=out)
        run_source('function twice(n) { return n + n; } x = 4;', evaluator=evaluator)
        run_source('print(twice(x));', evaluator=evaluator)
        self.assertEqual(out.getvalue(), '8\n')

    def test_evaluators_are_independent(self) -> None:
        first, _ = run_with('x = 1;')
        second = Evaluator(output=io.StringIO())
        self.assertIn('x', first.scopes.globals)
        self.assertNotIn('x', second.scopes.globals)


class LoopTests(unittest.TestCase):
    def test_zero_and_negative_counts_skip_the_body(self) -> None:
        self.assertEqual(run('loop (0) { print("x"); } loop (-2) { print("y"); } print("done");'), 'done\n')

    def test_count_is_evaluated_once(self) -> None:
        self.assertEqual(run('n = 3; c = 0; loop (n) { n = 0; c = c + 1; } print(c);'), '3\n')

    def test_boolean_condition_is_reevaluated(self) -> None:
        self.assertEqual(run('i = 0; loop (i < 3) { i = i + 1; } print(i);'), '3\n')

    def test_float_condition_is_rejected(self) -> None:
        with self.assertRaises(TypeMismatchError) as ctx:
            run('loop (2.0) { }')
        self.assertIn('integer count or boolean condition', ctx.exception.message)

    def test_string_and_missing_conditions_are_rejected(self) -> None:
        with self.assertRaises(TypeMismatchError):
            run('loop ("3") { }')
        with self.assertRaises(TypeMismatchError):
            run('loop () { }')


class OperatorTests(unittest.TestCase):
    def test_integer_addition_keeps_kind(self) -> None:
        evaluator, _ = run_with('x = 1 + 2; y = 1 + 2.0;')
        x = evaluator.scopes.get('x')
        y = evaluator.scopes.get('y')
        self.assertIs(type(x), int)
        self.assertEqual(x, 3)
        self.assertIs(type(y), float)
        self.assertEqual(y, 3.0)

    def test_subtraction_and_multiplication_produce_floats(self) -> None:
        evaluator, out = run_with('a = 3 - 1; b = 2 * 3; print(a, b);')
        self.assertIs(type(evaluator.scopes.get('a')), float)
        self.assertIs(type(evaluator.scopes.get('b')), float)
        self.assertEqual(out, '2 6\n')

    def test_float_display(self) -> None:
        self.assertEqual(run('print(10 / 4, 0.1 + 0.2, 2.50);'), '2.5 0.3 2.5\n')

    def test_division_by_zero(self) -> None:
        with self.assertRaises(DivisionByZeroError):
            run('x = 1 / 0;')
        with self.assertRaises(DivisionByZeroError):
            run('x = 1.5 / 0.0;')

    def test_modulo(self) -> None:
        self.assertEqual(run('print(7 % 3, -7 % 3, 7 % -3);'), '1 -1 1\n')
        with self.assertRaises(TypeMismatchError):
            run('x = 5.0 % 2;')

    def test_integer_overflow_wraps(self) -> None:
        self.assertEqual(run('print(9223372036854775807 + 1);'), '-9223372036854775808\n')
        self.assertEqual(run('print(-9223372036854775808 + -1);'), '9223372036854775807\n')
        self.assertEqual(run('print(--9223372036854775808);'), '-9223372036854775808\n')

    def test_relational_operators_compare_numerically(self) -> None:
        self.assertEqual(run('print(1 < 2.5, 3 >= 3, 2 <= 1, 5 > 4.5);'), 'true true false true\n')
        with self.assertRaises(TypeMismatchError):
            run('x = "a" < "b";')
        with self.assertRaises(TypeMismatchError):
            run('x = true > 0;')

    def test_equality(self) -> None:
        self.assertEqual(
            run('print(1 == 1.0, "a" == "a", "a" != "b", true != false, 2 == 3);'),
            'true true true true false\n',
        )
        with self.assertRaises(TypeMismatchError):
            run('x = "a" == true;')
        with self.assertRaises(TypeMismatchError):
            run('x = 1 == true;')

    def test_logical_operators_evaluate_both_sides(self) -> None:
        source = '''
        function side() { print("called"); return true; }
        x = false and side();
        y = 1 or 0;
        print(x, y);
        '''
        self.assertEqual(run(source), 'called\nfalse true\n')
        with self.assertRaises(TypeMismatchError):
            run('x = true and "s";')

    def test_plus_rejects_non_numeric_non_string(self) -> None:
        with self.assertRaises(TypeMismatchError):
            run('x = true + 1;')

    def test_unary_minus(self) -> None:
        self.assertEqual(run('print(-3, --3, -1.5, -(1 + 2));'), '-3 3 -1.5 -3\n')
        with self.assertRaises(TypeMismatchError):
            run('x = -"a";')
        with self.assertRaises(TypeMismatchError):
            run('x = -true;')

    def test_unknown_operators_are_internal_errors(self) -> None:
        evaluator = Evaluator(output=io.StringIO())
        with self.assertRaises(InvalidOperatorError):
            evaluator.apply_binary('^', 1, 2, SPAN)
        with self.assertRaises(InvalidOperatorError):
            evaluator.apply_unary('+', 1, SPAN)


class NativeTests(unittest.TestCase):
    def test_print_joins_arguments(self) -> None:
        source = 'function nothing() { } print("a", 1, 2.5, true, nothing());'
        self.assertEqual(run(source), 'a 1 2.5 true null\n')
        self.assertEqual(run('print();'), '\n')

    def test_pow(self) -> None:
        evaluator, out = run_with('r = pow(2, 10); print(r, pow(4, 0.5));')
        self.assertIs(type(evaluator.scopes.get('r')), float)
        self.assertEqual(out, '1024 2\n')
        with self.assertRaises(ArgumentCountMismatchError):
            run('pow(2);')
        with self.assertRaises(TypeMismatchError):
            run('pow("a", 2);')

    def test_custom_native(self) -> None:
        out = io.StringIO()
        evaluator = Evaluator(output=out, natives={'double': lambda args, span: args[0] * 2})
        run_source('print(double(21));', evaluator=evaluator)
        self.assertEqual(out.getvalue(), '42\n')


class ErrorReportingTests(unittest.TestCase):
    def test_undefined_variable_names_variable_and_position(self) -> None:
        with self.assertRaises(UndefinedVariableError) as ctx:
            run('x = 1;\nprint(missing);')
        err = ctx.exception
        self.assertEqual(err.code, 'RUN001')
        self.assertIn('missing', err.message)
        self.assertEqual((err.span.line, err.span.column), (2, 7))

    def test_undefined_function(self) -> None:
        with self.assertRaises(UndefinedFunctionError) as ctx:
            run('nope(1);')
        self.assertIn('nope', str(ctx.exception))

    def test_error_stops_the_run(self) -> None:
        out = io.StringIO()
        with self.assertRaises(DivisionByZeroError):
            run_source('print(1); x = 1 / 0; print(2);', output=out)
        self.assertEqual(out.getvalue(), '1\n')

    def test_top_level_return_is_rejected_by_entry_point(self) -> None:
        out = io.StringIO()
        with self.assertRaises(TopLevelReturnError) as ctx:
            run_source('print(1); return; print(2);', output=out)
        self.assertEqual(ctx.exception.code, 'RUN008')
        self.assertEqual(out.getvalue(), '1\n')

    def test_evaluate_reports_return_as_result_not_error(self) -> None:
        evaluator = Evaluator(output=io.StringIO())
        result = evaluator.evaluate(parse('return 5;'))
        self.assertIsInstance(result, Returning)
        self.assertEqual(result.value, 5)
        self.assertIsInstance(evaluator.evaluate(parse('x = 1;')), Completed)


if __name__ == '__main__':
    unittest.main()
