"""Runtime values — a tagged union over the numeric tower plus bools and objects.

Arithmetic is defined only between values of the same kind, except `**`,
which widens to Float or Complex. Nothing else is coerced implicitly.
"""

from __future__ import annotations

import math
import operator
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from . import constants
from .errors import ArithmeticFault, OperandTypeError


class ValueKind(str, Enum):
    BOOL = "bool"
    INTEGER = "integer"
    FLOAT = "float"
    COMPLEX = "complex"
    OBJECT = "object"


NUMERIC_KINDS: frozenset[ValueKind] = frozenset(
    {ValueKind.INTEGER, ValueKind.FLOAT, ValueKind.COMPLEX}
)


class BinaryOperator(str, Enum):
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    INT_DIVIDE = "//"
    EXPONENT = "**"
    EQUAL = "=="
    NOT_EQUAL = "!="
    LESS = "<"
    LESS_EQUAL = "<="
    GREATER = ">"
    GREATER_EQUAL = ">="


@dataclass(frozen=True)
class ObjRef:
    """Stable index of an object in the VM's heap registry."""

    index: int

    def __str__(self) -> str:
        return f"<obj #{self.index}>"


@dataclass(frozen=True)
class Value:
    kind: ValueKind
    payload: Any

    @classmethod
    def of_bool(cls, flag: bool) -> Value:
        return cls(ValueKind.BOOL, bool(flag))

    @classmethod
    def of_int(cls, number: int) -> Value:
        return cls(ValueKind.INTEGER, _checked_int(number))

    @classmethod
    def of_float(cls, number: float) -> Value:
        return cls(ValueKind.FLOAT, float(number))

    @classmethod
    def of_complex(cls, number: complex) -> Value:
        return cls(ValueKind.COMPLEX, complex(number))

    @classmethod
    def of_object(cls, ref: ObjRef) -> Value:
        return cls(ValueKind.OBJECT, ref)

    @property
    def is_number(self) -> bool:
        return self.kind in NUMERIC_KINDS

    def to_python(self) -> Any:
        return self.payload

    def __str__(self) -> str:
        return str(self.payload)


TRUE = Value.of_bool(True)
FALSE = Value.of_bool(False)


def _checked_int(number: int) -> int:
    if not constants.INT_MIN <= number <= constants.INT_MAX:
        raise ArithmeticFault(f"integer overflow: {number} does not fit in 32 bits")
    return number


def _truncating_int_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return -quotient if (a < 0) != (b < 0) else quotient


def _real_pow(base: float, exponent: float) -> float:
    try:
        return math.pow(base, exponent)
    except (ValueError, OverflowError) as exc:
        raise ArithmeticFault(f"cannot raise {base} to {exponent}: {exc}") from exc


def _complex_pow(base: complex, exponent: complex) -> complex:
    try:
        return base**exponent
    except (ZeroDivisionError, OverflowError) as exc:
        raise ArithmeticFault(f"cannot raise {base} to {exponent}: {exc}") from exc


def _require_nonzero(divisor: Any):
    if divisor == 0:
        raise ArithmeticFault("division by zero")


# ── per-kind arithmetic ──────────────────────────────────────────


def _int_arith(op: BinaryOperator, a: int, b: int) -> Value:
    if op == BinaryOperator.ADD:
        return Value.of_int(a + b)
    if op == BinaryOperator.SUBTRACT:
        return Value.of_int(a - b)
    if op == BinaryOperator.MULTIPLY:
        return Value.of_int(a * b)
    if op == BinaryOperator.DIVIDE:
        _require_nonzero(b)
        return Value.of_float(a / b)
    _require_nonzero(b)
    return Value.of_int(_truncating_int_div(a, b))


def _float_arith(op: BinaryOperator, a: float, b: float) -> Value:
    if op == BinaryOperator.ADD:
        return Value.of_float(a + b)
    if op == BinaryOperator.SUBTRACT:
        return Value.of_float(a - b)
    if op == BinaryOperator.MULTIPLY:
        return Value.of_float(a * b)
    if op == BinaryOperator.DIVIDE:
        _require_nonzero(b)
        return Value.of_float(a / b)
    _require_nonzero(b)
    quotient = a / b
    # Stays a Float holding the truncated quotient.
    return Value.of_float(math.trunc(quotient) if math.isfinite(quotient) else quotient)


def _complex_arith(op: BinaryOperator, a: complex, b: complex) -> Value:
    if op == BinaryOperator.ADD:
        return Value.of_complex(a + b)
    if op == BinaryOperator.SUBTRACT:
        return Value.of_complex(a - b)
    if op == BinaryOperator.MULTIPLY:
        return Value.of_complex(a * b)
    if op == BinaryOperator.DIVIDE:
        _require_nonzero(b)
        return Value.of_complex(a / b)
    raise OperandTypeError("'//' is not defined for complex operands")


_ARITHMETIC: dict[ValueKind, Callable[[BinaryOperator, Any, Any], Value]] = {
    ValueKind.INTEGER: _int_arith,
    ValueKind.FLOAT: _float_arith,
    ValueKind.COMPLEX: _complex_arith,
}

_COMPARISONS: dict[BinaryOperator, Callable[[Any, Any], bool]] = {
    BinaryOperator.EQUAL: operator.eq,
    BinaryOperator.NOT_EQUAL: operator.ne,
    BinaryOperator.LESS: operator.lt,
    BinaryOperator.LESS_EQUAL: operator.le,
    BinaryOperator.GREATER: operator.gt,
    BinaryOperator.GREATER_EQUAL: operator.ge,
}

_EQUALITY = frozenset({BinaryOperator.EQUAL, BinaryOperator.NOT_EQUAL})


def _exponent(lhs: Value, rhs: Value) -> Value:
    # Never an exact integer: Complex if either side is Complex, else Float.
    if ValueKind.COMPLEX in (lhs.kind, rhs.kind):
        return Value.of_complex(_complex_pow(complex(lhs.payload), complex(rhs.payload)))
    return Value.of_float(_real_pow(float(lhs.payload), float(rhs.payload)))


def binary_op(op: BinaryOperator, lhs: Value, rhs: Value) -> Value:
    """Apply *op* to two numeric values.

    Only `**` accepts operands of different kinds; every other operator
    requires both sides to share a kind.
    """
    if not (lhs.is_number and rhs.is_number):
        raise OperandTypeError("both operands must be numbers")
    if op == BinaryOperator.EXPONENT:
        return _exponent(lhs, rhs)
    if lhs.kind != rhs.kind:
        raise OperandTypeError(
            f"unsupported operand kinds for '{op.value}': "
            f"{lhs.kind.value} and {rhs.kind.value}"
        )

    compare = _COMPARISONS.get(op)
    if compare is not None:
        if lhs.kind == ValueKind.COMPLEX and op not in _EQUALITY:
            raise OperandTypeError(f"'{op.value}' is not defined for complex operands")
        return Value.of_bool(compare(lhs.payload, rhs.payload))

    return _ARITHMETIC[lhs.kind](op, lhs.payload, rhs.payload)


def negate(value: Value) -> Value:
    if value.kind == ValueKind.INTEGER:
        return Value.of_int(-value.payload)
    if value.kind == ValueKind.FLOAT:
        return Value.of_float(-value.payload)
    if value.kind == ValueKind.COMPLEX:
        return Value.of_complex(-value.payload)
    raise OperandTypeError("operand must be a number")


def logical_not(value: Value) -> Value:
    if value.kind != ValueKind.BOOL:
        raise OperandTypeError("operand must be a bool")
    return Value.of_bool(not value.payload)


def is_truthy(value: Value) -> bool:
    if value.kind == ValueKind.BOOL:
        return value.payload
    if value.is_number:
        return value.payload != 0
    return True
