# tests/test_classifier.py
"""
Tests for the untyped-constant classifier.

Expressions are built by hand; the package scope lookup is injected,
so no dump is involved.
"""

import logging
from unittest.mock import MagicMock

import pytest

from untypedconst import ast as A
from untypedconst.classifier import (
    COMPARISON_OPERATORS,
    UNTYPED_IDENT_NAMES,
    UNTYPED_NUMERIC_BUILTINS,
    is_untyped_const_expr,
)
from untypedconst.types import UNIVERSE, Const, Func, Var, basic
from untypedconst.typesinfo import Mode, TypeAndValue, TypesInfo
from tests.conftest import make_lit


def _classify(expr, lookup=None, info=None):
    return is_untyped_const_expr(expr, info or TypesInfo(), lookup or (lambda name: None))


def _ident(name):
    return A.Ident(name)


class TestLookupTables:

    def test_untyped_ident_names(self):
        assert UNTYPED_IDENT_NAMES == {"true", "false", "iota"}

    def test_comparison_operators(self):
        assert COMPARISON_OPERATORS == {"==", "!=", "<", "<=", ">", ">="}

    def test_numeric_builtins(self):
        assert UNTYPED_NUMERIC_BUILTINS == {"complex", "real", "imag"}


class TestLiterals:

    @pytest.mark.parametrize("kind,text", [
        (A.LitKind.INT, "5"),
        (A.LitKind.INT, "0x1F"),
        (A.LitKind.FLOAT, "2.5"),
        (A.LitKind.IMAG, "3i"),
        (A.LitKind.CHAR, "'a'"),
        (A.LitKind.STRING, "`m`"),
    ])
    def test_basic_literal_is_untyped(self, kind, text):
        assert _classify(make_lit(text, kind))

    def test_parenthesised_literal(self):
        expr = A.ParenExpr(A.ParenExpr(make_lit()))
        assert _classify(expr)


class TestIdentifiers:

    @pytest.mark.parametrize("name", ["true", "false", "iota"])
    def test_predeclared_untyped(self, name):
        lookup = MagicMock(return_value=None)
        assert _classify(_ident(name), lookup=lookup)
        lookup.assert_not_called()

    def test_untyped_package_constant(self, units_pkg, untyped_const):
        assert _classify(_ident("Ten"), lookup=units_pkg.scope.lookup)

    def test_typed_package_constant(self, units_pkg, typed_const):
        assert not _classify(_ident("TenM"), lookup=units_pkg.scope.lookup)

    def test_constant_of_basic_type_is_typed(self, units_pkg):
        units_pkg.scope.insert(Const("Max", basic("int64"), units_pkg, 9))
        assert not _classify(_ident("Max"), lookup=units_pkg.scope.lookup)

    def test_unresolved_identifier_is_typed_and_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="untypedconst.classifier"):
            assert not _classify(_ident("local"))
        assert "local" in caplog.text

    def test_identifier_naming_a_variable_is_typed(self, units_pkg):
        units_pkg.scope.insert(Var("v", basic("int"), units_pkg))
        assert not _classify(_ident("v"), lookup=units_pkg.scope.lookup)


class TestOperators:

    def test_unary_follows_operand(self, units_pkg, untyped_const, typed_const):
        lookup = units_pkg.scope.lookup
        assert _classify(A.UnaryExpr("-", make_lit()), lookup=lookup)
        assert _classify(A.UnaryExpr("^", _ident("Ten")), lookup=lookup)
        assert not _classify(A.UnaryExpr("-", _ident("TenM")), lookup=lookup)

    def test_unary_of_parenthesised_typed_operand(self, units_pkg, typed_const):
        expr = A.UnaryExpr("-", A.ParenExpr(_ident("TenM")))
        assert not _classify(expr, lookup=units_pkg.scope.lookup)

    @pytest.mark.parametrize("op", sorted(COMPARISON_OPERATORS))
    def test_comparison_of_typed_operands_is_untyped(self, op, units_pkg, typed_const):
        expr = A.BinaryExpr(op, _ident("TenM"), _ident("TenM"))
        assert _classify(expr, lookup=units_pkg.scope.lookup)

    def test_both_operands_untyped(self, units_pkg, untyped_const):
        expr = A.BinaryExpr("*", make_lit("2"), _ident("Ten"))
        assert _classify(expr, lookup=units_pkg.scope.lookup)

    @pytest.mark.parametrize("swap", [False, True])
    def test_one_typed_operand_makes_expression_typed(self, swap, units_pkg, typed_const):
        x, y = make_lit("3"), _ident("TenM")
        if swap:
            x, y = y, x
        expr = A.BinaryExpr("+", x, y)
        assert not _classify(expr, lookup=units_pkg.scope.lookup)

    def test_nested_comparison_inside_logical_and(self, units_pkg, typed_const):
        cmp = A.BinaryExpr("<", _ident("TenM"), _ident("TenM"))
        expr = A.BinaryExpr("&&", cmp, _ident("true"))
        assert _classify(expr, lookup=units_pkg.scope.lookup)


class TestCalls:

    def _builtin_call(self, name, *args):
        info = TypesInfo()
        fun = _ident(name)
        info.uses[fun] = UNIVERSE.lookup(name)
        info.record(fun, TypeAndValue(type=None, mode=Mode.BUILTIN))
        return A.CallExpr(fun, tuple(args)), info

    @pytest.mark.parametrize("name", sorted(UNTYPED_NUMERIC_BUILTINS))
    def test_numeric_builtin_of_untyped_args(self, name):
        args = (make_lit("1"), make_lit("2")) if name == "complex" else (make_lit("1i", A.LitKind.IMAG),)
        call, info = self._builtin_call(name, *args)
        assert _classify(call, info=info)

    def test_numeric_builtin_of_typed_arg(self, units_pkg, typed_const):
        call, info = self._builtin_call("complex", make_lit("1"), _ident("TenM"))
        assert not _classify(call, lookup=units_pkg.scope.lookup, info=info)

    def test_other_builtin_is_typed(self):
        call, info = self._builtin_call("len", make_lit('"abc"', A.LitKind.STRING))
        assert not _classify(call, info=info)

    def test_conversion_is_typed(self, meters):
        info = TypesInfo()
        fun = _ident("Meters")
        info.uses[fun] = meters.obj
        info.record(fun, TypeAndValue(type=meters, mode=Mode.TYPE))
        assert not _classify(A.CallExpr(fun, (make_lit(),)), info=info)

    def test_function_call_is_typed(self, units_pkg):
        info = TypesInfo()
        fun = _ident("complex")
        info.uses[fun] = Func("complex", pkg=units_pkg)  # shadows the builtin
        assert not _classify(A.CallExpr(fun, (make_lit(),)), info=info)


class TestImpossibleShapes:

    @pytest.mark.parametrize("expr", [
        A.IndexExpr(A.Ident("a"), make_lit("0")),
        A.SelectorExpr(A.Ident("pkg"), A.Ident("C")),
        A.StarExpr(A.Ident("p")),
        A.TypeExpr("[]int"),
    ], ids=["index", "selector", "star", "type"])
    def test_falls_back_to_typed_with_warning(self, expr, caplog):
        with caplog.at_level(logging.WARNING, logger="untypedconst.classifier"):
            assert not _classify(expr)
        assert "unexpected node type" in caplog.text
