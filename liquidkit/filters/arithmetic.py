"""
Math filters.

Non-numeric input or arguments count as 0. Results stay integers when
every operand is an integer; division and modulo by zero raise FilterError.
"""

from __future__ import annotations

import functools
import re
from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP, Decimal, DecimalException

from ..errors import FilterError
from ..values import DecimalValue, IntegerValue, StringValue, Value, number_value, to_integer
from .base import FilterGroup

math_filters = FilterGroup("math")

_INTEGER_TEXT = re.compile(r'\s*[+-]?\d+\s*')


def _number(value: Value) -> Decimal:
    number = value.to_number()
    if number is None or not number.is_finite():
        return Decimal(0)
    return number


def _is_integral(value: Value) -> bool:
    if isinstance(value, DecimalValue):
        return False
    if isinstance(value, StringValue) and value.to_number() is not None:
        return bool(_INTEGER_TEXT.fullmatch(value.value))
    return True


def _result(number: Decimal, *operands: Value) -> Value:
    return number_value(number, all(_is_integral(operand) for operand in operands))


def _decimal_guard(func):
    """Reports overflow and precision failures of the decimal context as FilterError."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DecimalException as e:
            raise FilterError(f"arithmetic error: {type(e).__name__}") from e
    return wrapper


@math_filters.register("abs")
@_decimal_guard
def abs_(value):
    return _result(abs(_number(value)), value)


@math_filters.register("plus")
@_decimal_guard
def plus(value, operand):
    return _result(_number(value) + _number(operand), value, operand)


@math_filters.register("minus")
@_decimal_guard
def minus(value, operand):
    return _result(_number(value) - _number(operand), value, operand)


@math_filters.register("times")
@_decimal_guard
def times(value, operand):
    return _result(_number(value) * _number(operand), value, operand)


@math_filters.register("divided_by")
@_decimal_guard
def divided_by(value, divisor):
    """Integer operands divide with flooring, like `7 | divided_by: 2` == 3."""
    left, right = _number(value), _number(divisor)
    if right == 0:
        raise FilterError("divided by 0")
    if _is_integral(value) and _is_integral(divisor):
        return IntegerValue(int(left) // int(right))
    return DecimalValue(left / right)


@math_filters.register("modulo")
@_decimal_guard
def modulo(value, divisor):
    """The result takes the sign of the divisor."""
    left, right = _number(value), _number(divisor)
    if right == 0:
        raise FilterError("divided by 0")
    if _is_integral(value) and _is_integral(divisor):
        return IntegerValue(int(left) % int(right))
    return DecimalValue(left - right * (left / right).to_integral_value(rounding=ROUND_FLOOR))


@math_filters.register("round")
@_decimal_guard
def round_(value, digits=None):
    places = (to_integer(digits) or 0) if digits is not None else 0
    number = _number(value)
    if places <= 0:
        return IntegerValue(int(number.quantize(Decimal(1), rounding=ROUND_HALF_UP)))
    return DecimalValue(number.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP))


@math_filters.register("ceil")
@_decimal_guard
def ceil(value):
    return IntegerValue(int(_number(value).to_integral_value(rounding=ROUND_CEILING)))


@math_filters.register("floor")
@_decimal_guard
def floor(value):
    return IntegerValue(int(_number(value).to_integral_value(rounding=ROUND_FLOOR)))


@math_filters.register("at_least")
@_decimal_guard
def at_least(value, minimum):
    left, right = _number(value), _number(minimum)
    if left >= right:
        return _result(left, value)
    return _result(right, minimum)


@math_filters.register("at_most")
@_decimal_guard
def at_most(value, maximum):
    left, right = _number(value), _number(maximum)
    if left <= right:
        return _result(left, value)
    return _result(right, maximum)
