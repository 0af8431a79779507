"""
Fixed-width numeric values with saturating arithmetic.

Reference implementation of `runtime/c/numbers.h`. Every operation here has
the exact policy of its C counterpart:

- Integer add/sub/mul clamp to INT64_MAX/INT64_MIN using boundary checks made
  before the operation, never by computing the result and looking at it.
- Integer division truncates toward zero. Dividing by zero gives INT64_MAX for
  a non-negative dividend and INT64_MIN otherwise; INT64_MIN / -1 gives
  INT64_MAX.
- Float results are clamped into [-DBL_MAX, DBL_MAX] after the IEEE
  operation. Dividing by zero gives +/-DBL_MAX keyed by the dividend's sign,
  where a zero dividend counts as non-negative. NaN passes through every
  operation, division by zero included.
"""

from __future__ import annotations
import math
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Union

INT64_MAX = 2**63 - 1
INT64_MIN = -(2**63)
DBL_MAX = sys.float_info.max
DBL_EPSILON = sys.float_info.epsilon


class NumericKind(Enum):
    INTEGER = "Integer"
    FLOAT = "Float"

    def __str__(self) -> str:
        return self.value


class ArithmeticOp(Enum):
    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    DIV = "div"

    def __str__(self) -> str:
        return self.value

    def symbol(self, kind: NumericKind) -> str:
        """Name of the C runtime function implementing this op for `kind`."""
        base = f"saturating_{self.value}"
        return base if kind is NumericKind.INTEGER else f"{base}_float"


def _trunc_div(a: int, b: int) -> int:
    """C99 integer division (rounds toward zero)."""
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def _clamp(value: float) -> float:
    if value < -DBL_MAX:
        return -DBL_MAX
    if value > DBL_MAX:
        return DBL_MAX
    return value


@dataclass(frozen=True)
class Integer:
    """64-bit signed integer."""
    value: int

    kind = NumericKind.INTEGER

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"Integer needs an int, got {type(self.value).__name__}")
        if not INT64_MIN <= self.value <= INT64_MAX:
            raise ValueError(f"{self.value} is outside the signed 64-bit range")

    def add(self, other: Integer) -> Integer:
        a, b = self.value, _same_kind(self, other).value
        if a > 0:
            if b > INT64_MAX - a:
                return Integer(INT64_MAX)
        elif b < INT64_MIN - a:
            return Integer(INT64_MIN)
        return Integer(a + b)

    def sub(self, other: Integer) -> Integer:
        a, b = self.value, _same_kind(self, other).value
        if b < 0:
            if a > INT64_MAX + b:
                return Integer(INT64_MAX)
        elif a < INT64_MIN + b:
            return Integer(INT64_MIN)
        return Integer(a - b)

    def mul(self, other: Integer) -> Integer:
        a, b = self.value, _same_kind(self, other).value
        if a > 0:
            if b > 0 and a > _trunc_div(INT64_MAX, b):
                return Integer(INT64_MAX)
            if b < 0 and b < _trunc_div(INT64_MIN, a):
                return Integer(INT64_MIN)
        elif a < 0:
            if b > 0 and a < _trunc_div(INT64_MIN, b):
                return Integer(INT64_MIN)
            if b < 0 and a < _trunc_div(INT64_MAX, b):
                return Integer(INT64_MAX)
        return Integer(a * b)

    def div(self, other: Integer) -> Integer:
        a, b = self.value, _same_kind(self, other).value
        if b == 0:
            return Integer(INT64_MAX if a >= 0 else INT64_MIN)
        if a == INT64_MIN and b == -1:
            return Integer(INT64_MAX)
        return Integer(_trunc_div(a, b))

    def equals(self, other: Integer) -> bool:
        return self.value == _same_kind(self, other).value

    def show(self) -> str:
        return str(self.value)

    __add__ = add
    __sub__ = sub
    __mul__ = mul
    __truediv__ = div

    def __str__(self) -> str:
        return self.show()


@dataclass(frozen=True)
class Float:
    """64-bit IEEE-754 double."""
    value: float

    kind = NumericKind.FLOAT

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
            raise TypeError(f"Float needs a float, got {type(self.value).__name__}")
        # Store a real double even when built from an int literal
        object.__setattr__(self, "value", float(self.value))

    def add(self, other: Float) -> Float:
        return Float(_clamp(self.value + _same_kind(self, other).value))

    def sub(self, other: Float) -> Float:
        return Float(_clamp(self.value - _same_kind(self, other).value))

    def mul(self, other: Float) -> Float:
        return Float(_clamp(self.value * _same_kind(self, other).value))

    def div(self, other: Float) -> Float:
        b = _same_kind(self, other).value
        if b == 0.0:
            if math.isnan(self.value):
                return self
            return Float(DBL_MAX if self.value >= 0.0 else -DBL_MAX)
        return Float(_clamp(self.value / b))

    def equals(self, other: Float) -> bool:
        """Exact match, else a relative tolerance of one DBL_EPSILON.

        Two finite values are equal when |a - b| <= DBL_EPSILON * max(1, |a|, |b|).
        Infinities only equal themselves and NaN equals nothing.
        """
        a, b = self.value, _same_kind(self, other).value
        if a == b:
            return True
        if not (math.isfinite(a) and math.isfinite(b)):
            return False
        return abs(a - b) <= DBL_EPSILON * max(1.0, abs(a), abs(b))

    def show(self) -> str:
        return format(self.value, ".17g")

    __add__ = add
    __sub__ = sub
    __mul__ = mul
    __truediv__ = div

    def __str__(self) -> str:
        return self.show()


NumericValue = Union[Integer, Float]


def _same_kind(a: NumericValue, b: NumericValue) -> NumericValue:
    if type(a) is not type(b):
        raise TypeError(f"cannot combine {a.kind} with {getattr(b, 'kind', type(b).__name__)}")
    return b


def saturating(op: ArithmeticOp, a: NumericValue, b: NumericValue) -> NumericValue:
    """Apply `op` to two values of the same kind with saturating semantics."""
    _same_kind(a, b)
    match op:
        case ArithmeticOp.ADD:
            return a.add(b)
        case ArithmeticOp.SUB:
            return a.sub(b)
        case ArithmeticOp.MUL:
            return a.mul(b)
        case ArithmeticOp.DIV:
            return a.div(b)
    raise ValueError(f"unknown arithmetic op {op!r}")


# Names matching the C runtime symbols, for callers that mirror generated code.

def integer_from(value: int) -> Integer:
    return Integer(value)

def float_from(value: float) -> Float:
    return Float(value)

def integer_show(num: Integer) -> str:
    return num.show()

def float_show(num: Float) -> str:
    return num.show()

def integer_equals(a: Integer, b: Integer) -> bool:
    return a.equals(b)

def float_equals(a: Float, b: Float) -> bool:
    return a.equals(b)

def saturating_add(a: Integer, b: Integer) -> Integer:
    return a.add(b)

def saturating_sub(a: Integer, b: Integer) -> Integer:
    return a.sub(b)

def saturating_mul(a: Integer, b: Integer) -> Integer:
    return a.mul(b)

def saturating_div(a: Integer, b: Integer) -> Integer:
    return a.div(b)

def saturating_add_float(a: Float, b: Float) -> Float:
    return a.add(b)

def saturating_sub_float(a: Float, b: Float) -> Float:
    return a.sub(b)

def saturating_mul_float(a: Float, b: Float) -> Float:
    return a.mul(b)

def saturating_div_float(a: Float, b: Float) -> Float:
    return a.div(b)
