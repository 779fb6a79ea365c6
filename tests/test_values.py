from __future__ import annotations

import math
import unittest

from sia.builtins import native_pow
from sia.errors import TypeMismatchError, UndefinedVariableError
from sia.scope import ScopeChain
from sia.source_map import SourceSpan
from sia.values import (
    INT64_MAX,
    INT64_MIN,
    ValueKind,
    format_float,
    kind_of,
    to_boolean,
    to_display,
    to_number,
    wrap_int,
)


SPAN = SourceSpan('<test>', 1, 1, 1, 1)


class ValueTests(unittest.TestCase):
    def test_kind_of_separates_booleans_from_integers(self) -> None:
        self.assertEqual(kind_of(True), ValueKind.BOOLEAN)
        self.assertEqual(kind_of(1), ValueKind.INTEGER)
        self.assertEqual(kind_of(1.0), ValueKind.FLOAT)
        self.assertEqual(kind_of('1'), ValueKind.STRING)
        self.assertEqual(kind_of(None), ValueKind.NULL)
        with self.assertRaises(TypeError):
            kind_of([1])

    def test_wrap_int(self) -> None:
        self.assertEqual(wrap_int(INT64_MAX + 1), INT64_MIN)
        self.assertEqual(wrap_int(INT64_MIN - 1), INT64_MAX)
        self.assertEqual(wrap_int(-5), -5)

    def test_format_float(self) -> None:
        self.assertEqual(format_float(2.5), '2.5')
        self.assertEqual(format_float(3.0), '3')
        self.assertEqual(format_float(-0.125), '-0.125')
        self.assertEqual(format_float(1e-7), '0')
        self.assertEqual(format_float(math.inf), 'inf')

    def test_to_display(self) -> None:
        self.assertEqual(to_display(True), 'true')
        self.assertEqual(to_display(None), 'null')
        self.assertEqual(to_display(-12), '-12')
        self.assertEqual(to_display('text'), 'text')

    def test_to_number(self) -> None:
        self.assertEqual(to_number(3, SPAN, 'test'), 3.0)
        with self.assertRaises(TypeMismatchError) as ctx:
            to_number(False, SPAN, "'*'")
        self.assertIn('boolean', ctx.exception.message)

    def test_to_boolean(self) -> None:
        self.assertFalse(to_boolean(0, SPAN, 'if'))
        self.assertFalse(to_boolean(0.0, SPAN, 'if'))
        self.assertTrue(to_boolean(-1, SPAN, 'if'))
        self.assertTrue(to_boolean(True, SPAN, 'if'))
        for value in ['', 'x', None]:
            with self.subTest(value=value):
                with self.assertRaises(TypeMismatchError):
                    to_boolean(value, SPAN, 'if')


class PowTests(unittest.TestCase):
    def test_pow_returns_float(self) -> None:
        result = native_pow([3, 2], SPAN)
        self.assertIsInstance(result, float)
        self.assertEqual(result, 9.0)

    def test_pow_domain_and_range_edges(self) -> None:
        self.assertTrue(math.isnan(native_pow([-8, 0.5], SPAN)))
        self.assertEqual(native_pow([0, -1], SPAN), math.inf)
        self.assertEqual(native_pow([10.0, 400], SPAN), math.inf)


class ScopeChainTests(unittest.TestCase):
    def test_lookup_walks_all_frames(self) -> None:
        scopes = ScopeChain()
        scopes.set('a', 1)
        scopes.push()
        scopes.set('b', 2)
        self.assertEqual(scopes.get('a'), 1)
        self.assertEqual(scopes.get('b'), 2)
        self.assertTrue(scopes.contains('a'))

    def test_assignment_writes_top_frame_and_shadows(self) -> None:
        scopes = ScopeChain()
        scopes.set('a', 1)
        with scopes.frame() as frame:
            scopes.set('a', 2)
            self.assertEqual(frame, {'a': 2})
            self.assertEqual(scopes.get('a'), 2)
        self.assertEqual(scopes.get('a'), 1)

    def test_frame_is_popped_on_error(self) -> None:
        scopes = ScopeChain()
        with self.assertRaises(UndefinedVariableError):
            with scopes.frame():
                scopes.get('missing', span=SPAN)
        self.assertEqual(scopes.depth, 1)

    def test_global_frame_cannot_be_popped(self) -> None:
        scopes = ScopeChain()
        with self.assertRaises(RuntimeError):
            scopes.pop()

    def test_frames_snapshot_is_detached(self) -> None:
        scopes = ScopeChain()
        scopes.set('a', 1)
        snapshot = scopes.frames
        snapshot[0]['a'] = 99
        self.assertEqual(scopes.get('a'), 1)


if __name__ == '__main__':
    unittest.main()
