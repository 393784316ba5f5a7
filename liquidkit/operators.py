"""
Binary operators.

Each operator is registered in the environment under its identifier and
applied to two already evaluated operands.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from .values import (
    ArrayValue,
    BoolValue,
    DecimalValue,
    IntegerValue,
    StringValue,
    Value,
    bool_value,
)


class Operator(ABC):
    """Base interface for binary operators."""

    identifier: str = ""

    @abstractmethod
    def apply(self, lhs: Value, rhs: Value) -> Value:
        pass


class FunctionOperator(Operator):
    """Operator backed by a plain function `(lhs, rhs) -> Value`."""

    def __init__(self, identifier: str, func: Callable[[Value, Value], Value]):
        self.identifier = identifier
        self.func = func

    def apply(self, lhs: Value, rhs: Value) -> Value:
        return self.func(lhs, rhs)

    def __repr__(self) -> str:
        return f"FunctionOperator({self.identifier!r})"


def _ordering(lhs: Value, rhs: Value) -> Optional[int]:
    """Comparison result for comparable pairs (number/number, string/string), else None."""
    if lhs.is_numeric and rhs.is_numeric:
        return lhs.compare(rhs)
    if isinstance(lhs, StringValue) and isinstance(rhs, StringValue):
        return lhs.compare(rhs)
    return None


def _ordering_operator(identifier: str, accept: Callable[[int], bool]) -> Operator:
    def apply(lhs: Value, rhs: Value) -> Value:
        result = _ordering(lhs, rhs)
        return bool_value(result is not None and accept(result))
    return FunctionOperator(identifier, apply)


def _searchable_text(value: Value) -> Optional[str]:
    if isinstance(value, (StringValue, IntegerValue, DecimalValue)):
        return value.to_display_string()
    return None


def contains(lhs: Value, rhs: Value) -> BoolValue:
    """
    Substring test on strings, element test on arrays.

    Both sides compare as text, so `[1, 2] contains "2"` holds. Any other
    left operand, or a non-scalar right operand, gives false.
    """
    needle = _searchable_text(rhs)
    if needle is None:
        return bool_value(False)

    if isinstance(lhs, StringValue):
        return bool_value(needle in lhs.value)
    if isinstance(lhs, ArrayValue):
        return bool_value(any(_searchable_text(item) == needle for item in lhs))
    return bool_value(False)


def builtin_operators() -> List[Operator]:
    return [
        FunctionOperator("==", lambda lhs, rhs: bool_value(lhs.equals(rhs))),
        FunctionOperator("!=", lambda lhs, rhs: bool_value(not lhs.equals(rhs))),
        FunctionOperator("<>", lambda lhs, rhs: bool_value(not lhs.equals(rhs))),
        _ordering_operator("<", lambda result: result < 0),
        _ordering_operator(">", lambda result: result > 0),
        _ordering_operator("<=", lambda result: result <= 0),
        _ordering_operator(">=", lambda result: result >= 0),
        FunctionOperator("contains", contains),
        FunctionOperator("and", lambda lhs, rhs: bool_value(lhs.is_truthy() and rhs.is_truthy())),
        FunctionOperator("or", lambda lhs, rhs: bool_value(lhs.is_truthy() or rhs.is_truthy())),
    ]


__all__ = ["Operator", "FunctionOperator", "contains", "builtin_operators"]
