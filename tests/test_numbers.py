from __future__ import annotations

import itertools
import math

import pytest

from iona_lang.runtime.numbers import (
    DBL_MAX, INT64_MAX, INT64_MIN,
    ArithmeticOp, Float, Integer, NumericKind,
    float_equals, integer_show, saturating, saturating_add, saturating_div,
    saturating_div_float, saturating_mul, saturating_sub,
)

EDGE_INTS = [INT64_MIN, INT64_MIN + 1, -(2**32), -2, -1, 0, 1, 2, 2**32, INT64_MAX - 1, INT64_MAX]


def test_integer_add_saturates_at_both_ends():
    assert saturating_add(Integer(INT64_MAX), Integer(1)) == Integer(INT64_MAX)
    assert saturating_add(Integer(INT64_MIN), Integer(-1)) == Integer(INT64_MIN)
    assert saturating_add(Integer(40), Integer(2)) == Integer(42)


def test_integer_sub_saturates():
    assert saturating_sub(Integer(INT64_MIN), Integer(1)) == Integer(INT64_MIN)
    assert saturating_sub(Integer(INT64_MAX), Integer(-1)) == Integer(INT64_MAX)
    assert saturating_sub(Integer(0), Integer(INT64_MIN)) == Integer(INT64_MAX)


def test_integer_mul_saturates_by_sign():
    assert saturating_mul(Integer(INT64_MIN), Integer(-1)) == Integer(INT64_MAX)
    assert saturating_mul(Integer(INT64_MAX), Integer(2)) == Integer(INT64_MAX)
    assert saturating_mul(Integer(INT64_MAX), Integer(-2)) == Integer(INT64_MIN)
    assert saturating_mul(Integer(-2), Integer(2**62)) == Integer(INT64_MIN)
    assert saturating_mul(Integer(-(2**31)), Integer(2**32)) == Integer(INT64_MIN)


def test_integer_div_truncates_toward_zero():
    assert saturating_div(Integer(7), Integer(2)) == Integer(3)
    assert saturating_div(Integer(-7), Integer(2)) == Integer(-3)
    assert saturating_div(Integer(7), Integer(-2)) == Integer(-3)


def test_integer_div_by_zero_keyed_by_dividend_sign():
    assert saturating_div(Integer(5), Integer(0)) == Integer(INT64_MAX)
    assert saturating_div(Integer(0), Integer(0)) == Integer(INT64_MAX)
    assert saturating_div(Integer(-5), Integer(0)) == Integer(INT64_MIN)
    assert saturating_div(Integer(INT64_MIN), Integer(-1)) == Integer(INT64_MAX)


@pytest.mark.parametrize("op", list(ArithmeticOp))
def test_integer_results_stay_in_range_and_match_clamped_math(op):
    for a, b in itertools.product(EDGE_INTS, repeat=2):
        result = saturating(op, Integer(a), Integer(b)).value
        assert INT64_MIN <= result <= INT64_MAX
        if op is ArithmeticOp.DIV:
            continue
        exact = {ArithmeticOp.ADD: a + b, ArithmeticOp.SUB: a - b, ArithmeticOp.MUL: a * b}[op]
        assert result == max(INT64_MIN, min(INT64_MAX, exact))


def test_integer_rejects_out_of_range_construction():
    with pytest.raises(ValueError):
        Integer(INT64_MAX + 1)
    with pytest.raises(TypeError):
        Integer(1.5)


def test_mixing_kinds_is_a_type_error():
    with pytest.raises(TypeError):
        saturating(ArithmeticOp.ADD, Integer(1), Float(1.0))


def test_float_division_by_zero():
    assert saturating_div_float(Float(1.0), Float(0.0)) == Float(DBL_MAX)
    assert saturating_div_float(Float(-1.0), Float(0.0)) == Float(-DBL_MAX)
    assert saturating_div_float(Float(0.0), Float(0.0)) == Float(DBL_MAX)
    assert saturating_div_float(Float(-0.0), Float(-0.0)) == Float(DBL_MAX)


def test_float_results_are_clamped_to_finite_range():
    values = [-DBL_MAX, -1e308, -1.5, -0.0, 0.0, 2.5, 1e308, DBL_MAX]
    for op in ArithmeticOp:
        for a, b in itertools.product(values, repeat=2):
            result = saturating(op, Float(a), Float(b)).value
            assert -DBL_MAX <= result <= DBL_MAX
    assert (Float(DBL_MAX) + Float(DBL_MAX)).value == DBL_MAX
    assert (Float(-DBL_MAX) * Float(2.0)).value == -DBL_MAX


def test_float_nan_propagates():
    assert math.isnan((Float(math.nan) + Float(1.0)).value)
    assert math.isnan((Float(math.nan) / Float(0.0)).value)
    assert math.isnan((Float(-math.nan) / Float(-0.0)).value)


def test_float_equality_uses_relative_tolerance():
    assert float_equals(Float(0.1 + 0.2), Float(0.3))
    assert float_equals(Float(1e20), Float(1e20 + 1e4))
    assert not float_equals(Float(1.0), Float(-1.0))
    assert not float_equals(Float(1.0), Float(1.001))
    assert not float_equals(Float(math.nan), Float(math.nan))
    assert float_equals(Float(math.inf), Float(math.inf))
    assert not float_equals(Float(math.inf), Float(DBL_MAX))


def test_rendering():
    assert integer_show(Integer(INT64_MIN)) == "-9223372036854775808"
    assert Float(0.1).show() == "0.10000000000000001"
    assert Float(1.0).show() == "1"
    assert float(Float(1 / 3).show()) == 1 / 3


def test_op_symbols_match_runtime_names():
    assert ArithmeticOp.ADD.symbol(NumericKind.INTEGER) == "saturating_add"
    assert ArithmeticOp.DIV.symbol(NumericKind.FLOAT) == "saturating_div_float"
