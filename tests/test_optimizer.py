"""Tests for the IR optimizer."""

from __future__ import annotations

import logging

from tests.helpers import analyze
from yeoldedragon import ir
from yeoldedragon.optimizer import Optimizer, optimize
from yeoldedragon.symbols import Variable
from yeoldedragon.types import BOOLEAN, FLOAT, INT


def optimized(source: str) -> list:
    """Helper: analyze and optimize source, returning the statements."""
    return optimize(analyze(source)).statements


def value_of(source: str):
    """Helper: optimize ``proclaim <source>;`` and return the printed expression."""
    (stmt,) = optimized(f"thine x: int = 5;\nthine y: float = 2.0;\nthine b: bool = shall;\n"
                        f"proclaim {source};")[3:]
    return stmt.expression


class TestConstantFolding:
    """Test folding of literal operands."""

    def test_integer_arithmetic(self):
        e = value_of("2 + 3 * 4")
        assert isinstance(e, ir.Literal)
        assert (e.value, e.type) == (14, INT)

    def test_integer_division_truncates(self):
        assert value_of("7 / 2").value == 3
        assert value_of("-7 / 2").value == -3

    def test_float_arithmetic(self):
        e = value_of("1.5 * 2.0")
        assert (e.value, e.type) == (3.0, FLOAT)

    def test_power(self):
        assert value_of("2 ** 10").value == 1024

    def test_comparison(self):
        e = value_of("3 < 4")
        assert (e.value, e.type) == (True, BOOLEAN)

    def test_boolean_equality(self):
        assert value_of("shall == shant").value is False

    def test_division_by_zero_left_alone(self):
        e = value_of("1 / 0")
        assert isinstance(e, ir.BinaryExpression)

    def test_negative_integer_exponent_left_alone(self):
        assert isinstance(value_of("2 ** -1"), ir.BinaryExpression)

    def test_unsafe_integer_left_alone(self):
        assert isinstance(value_of("2 ** 60"), ir.BinaryExpression)

    def test_float_overflow_left_alone(self):
        assert isinstance(value_of("1.0e308 * 10.0"), ir.BinaryExpression)

    def test_unary_folding(self):
        assert value_of("-(3)").value == -3
        assert value_of("ne shall").value is False


class TestIdentities:
    """Test algebraic identities."""

    def test_additive(self):
        assert isinstance(value_of("x + 0"), Variable)
        assert isinstance(value_of("0 + x"), Variable)
        assert isinstance(value_of("x - 0"), Variable)

    def test_zero_minus(self):
        e = value_of("0 - x")
        assert isinstance(e, ir.UnaryExpression) and e.op == "-"

    def test_multiplicative(self):
        assert isinstance(value_of("x * 1"), Variable)
        assert isinstance(value_of("1 * x"), Variable)
        assert isinstance(value_of("y / 1.0"), Variable)

    def test_multiply_by_zero(self):
        assert value_of("x * 0").value == 0
        assert value_of("0 * x").value == 0

    def test_zero_divided(self):
        assert value_of("0 / x").value == 0

    def test_power_zero(self):
        e = value_of("x ** 0")
        assert (e.value, e.type) == (1, INT)
        assert value_of("y ** 0.0").value == 1.0

    def test_double_negation(self):
        assert isinstance(value_of("-(-x)"), Variable)

    def test_nested_identities(self):
        assert isinstance(value_of("(x + 0) * 1"), Variable)


class TestLogical:
    """Test short-circuiting of boolean operators."""

    def test_and(self):
        assert isinstance(value_of("shall && b"), Variable)
        assert isinstance(value_of("b && shall"), Variable)
        assert value_of("shant && b").value is False

    def test_or(self):
        assert isinstance(value_of("shant || b"), Variable)
        assert isinstance(value_of("b || shant"), Variable)
        assert value_of("shall || b").value is True

    def test_non_literal_kept(self):
        assert isinstance(value_of("b && b"), ir.BinaryExpression)


class TestStatements:
    """Test dead code and self-assignment removal."""

    def test_self_assignment_removed(self):
        stmts = optimized("thine x: int = 1;\nx = x;")
        assert len(stmts) == 1

    def test_if_true_keeps_consequent(self):
        stmts = optimized("perchance shall { proclaim 1; } else { proclaim 2; }")
        assert len(stmts) == 1
        assert stmts[0].expression.value == 1

    def test_if_false_keeps_alternate(self):
        stmts = optimized("perchance 1 > 2 { proclaim 1; } else { proclaim 2; }")
        assert [s.expression.value for s in stmts] == [2]

    def test_if_false_without_else_removed(self):
        assert optimized("perchance shant { proclaim 1; }") == []

    def test_else_if_chain_collapses(self):
        stmts = optimized(
            "thine b: bool = shall;\n"
            "perchance shant { proclaim 1; } else perchance b { proclaim 2; }"
        )
        assert isinstance(stmts[1], ir.ShortIfStatement)

    def test_empty_alternate_becomes_short_if(self):
        stmts = optimized("thine b: bool = shall;\nperchance b { proclaim 1; } else { }")
        assert isinstance(stmts[1], ir.ShortIfStatement)

    def test_while_false_removed(self):
        assert optimized("whilst shant { proclaim 1; }") == []

    def test_repeat_zero_removed(self):
        assert optimized("repeateth 0 { proclaim 1; }") == []
        assert optimized("repeateth 1 - 3 { proclaim 1; }") == []

    def test_empty_ranges_removed(self):
        assert optimized("fortill i in 5 ... 4 { proclaim i; }") == []
        assert optimized("fortill i in 3 ..< 3 { proclaim i; }") == []

    def test_non_empty_range_kept(self):
        stmts = optimized("fortill i in 3 ... 3 { proclaim i; }")
        assert isinstance(stmts[0], ir.ForRangeStatement)

    def test_for_each_empty_list_removed(self):
        assert optimized("fortill x in [] { }") == []

    def test_function_bodies_optimized(self):
        decl = optimized("don f() -> int { return 2 * 3; }")[0]
        assert decl.function.body[0].expression.value == 6

    def test_guild_fields_and_methods_optimized(self):
        decl = optimized(
            "guild G { a: int; forge() { mine.a = 1 + 1; }\n"
            "  don m() -> int { return mine.a * 1; } }"
        )[0]
        assert decl.type.fields[0].value.value == 2
        assert isinstance(decl.type.methods[0].body[0].expression, ir.MemberExpression)


class TestExpressions:
    """Test ternary, coalescing and nested rewrites."""

    def test_ternary(self):
        assert value_of("shall ? 1 : 2").value == 1
        assert value_of("1 > 2 ? 1 : 2").value == 2

    def test_nil_coalescing(self):
        assert value_of("naught int ?? 3").value == 3
        assert value_of("some 4 ?? 3").value == 4

    def test_nested_in_calls_and_lists(self):
        e = value_of("[1 + 1, 2 * 2][0]")
        assert [el.value for el in e.collection.elements] == [2, 4]

    def test_string_interpolation_parts(self):
        e = value_of('"v=${1 + 2}"')
        assert e.parts[1].value == 3


class TestOptimizerProperties:
    """Test that the optimizer is idempotent and safe."""

    def test_idempotent(self):
        program = analyze(
            "thine x: int = 2 * 3 + 0;\n"
            "perchance x > 1 && shall { proclaim -(-x); } else { proclaim x ** 0; }\n"
        )
        once = Optimizer().optimize(program)
        twice = Optimizer().optimize(once)
        assert twice == once

    def test_never_raises_on_unsafe_folds(self):
        optimized("proclaim 0.0 / 0.0;\nproclaim 10 ** 100;\nproclaim 1 / 0;")

    def test_logs_removals(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="yeoldedragon.optimizer"):
            optimized("whilst shant { }")
        assert "condition is shant" in caplog.text
