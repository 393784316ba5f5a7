"""
Runtime value model.

Every value seen by templates is one of a closed set of immutable variants:
Nil, Bool, String, Integer, Decimal, Array, Dictionary and Range.
Each variant implements the full set of coercions (truthiness, display
string, numeric view, ordering, equality) so that callers never need to
special-case a variant they forgot about.
"""

from __future__ import annotations

import enum
import math
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, is_dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Any, ClassVar, Iterator, Optional, Tuple


class ValueKind(enum.Enum):
    """Variant tags of the value model."""
    NIL = "nil"
    BOOL = "bool"
    STRING = "string"
    INTEGER = "integer"
    DECIMAL = "decimal"
    ARRAY = "array"
    DICTIONARY = "dictionary"
    RANGE = "range"


# Cross-type ordering: Nil < Bool < Numeric < String < Array < Dictionary < Range
_RANK = {
    ValueKind.NIL: 0,
    ValueKind.BOOL: 1,
    ValueKind.INTEGER: 2,
    ValueKind.DECIMAL: 2,
    ValueKind.STRING: 3,
    ValueKind.ARRAY: 4,
    ValueKind.DICTIONARY: 5,
    ValueKind.RANGE: 6,
}

_NUMERIC_KINDS = frozenset({ValueKind.INTEGER, ValueKind.DECIMAL})

_NUMBER_RE = re.compile(r'[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?')


def _sign(delta: Any) -> int:
    return (delta > 0) - (delta < 0)


def _compare_numbers(left: Decimal, right: Decimal) -> int:
    # NaN sorts after every other number and equals itself
    if left.is_nan() or right.is_nan():
        return left.is_nan() - right.is_nan()
    if left == right:
        return 0
    return -1 if left < right else 1


def format_decimal(number: Decimal) -> str:
    """Canonical text of a decimal: fixed-point, at least one fractional digit."""
    if not number.is_finite():
        return "nan" if number.is_nan() else ("-inf" if number < 0 else "inf")
    text = format(number, "f")
    if "." in text:
        text = text.rstrip("0")
        if text.endswith("."):
            text += "0"
    else:
        text += ".0"
    return text


class Value(ABC):
    """
    Base class of all runtime values.

    Subclasses are frozen dataclasses. Equality and hashing are defined here
    in terms of `equals()` so that Integer(1) == Decimal(1.0) holds everywhere,
    including as dictionary keys.
    """

    kind: ClassVar[ValueKind]

    @abstractmethod
    def is_truthy(self) -> bool:
        """Only Nil and Bool(false) are falsy."""

    @abstractmethod
    def to_display_string(self) -> str:
        """Text emitted when the value is output."""

    @abstractmethod
    def to_python(self) -> Any:
        """Plain Python representation of the value."""

    def to_number(self) -> Optional[Decimal]:
        """Numeric view of the value, or None when it is not numeric."""
        return None

    @property
    def is_numeric(self) -> bool:
        return self.kind in _NUMERIC_KINDS

    def compare(self, other: Value) -> int:
        """
        Total order over all values.

        Returns:
            -1, 0 or 1
        """
        left_rank, right_rank = _RANK[self.kind], _RANK[other.kind]
        if left_rank != right_rank:
            return -1 if left_rank < right_rank else 1
        if self.is_numeric:
            return _compare_numbers(self.to_number(), other.to_number())
        return self._compare_same(other)

    @abstractmethod
    def _compare_same(self, other: Value) -> int:
        """Compares with a value of the same kind."""

    def equals(self, other: Value) -> bool:
        """Structural equality; numbers compare by numeric value."""
        if self.is_numeric and other.is_numeric:
            return _compare_numbers(self.to_number(), other.to_number()) == 0
        if self.kind is not other.kind:
            return False
        return self._compare_same(other) == 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        return self.equals(other)

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __lt__(self, other: Value) -> bool:
        return self.compare(other) < 0

    def __le__(self, other: Value) -> bool:
        return self.compare(other) <= 0

    def __gt__(self, other: Value) -> bool:
        return self.compare(other) > 0

    def __ge__(self, other: Value) -> bool:
        return self.compare(other) >= 0

    def __hash__(self) -> int:
        return hash((self.kind, self.to_python_key()))

    def to_python_key(self) -> Any:
        return self.to_python()

    def __str__(self) -> str:
        return self.to_display_string()


@dataclass(frozen=True, eq=False)
class NilValue(Value):
    kind: ClassVar[ValueKind] = ValueKind.NIL

    def is_truthy(self) -> bool:
        return False

    def to_display_string(self) -> str:
        return ""

    def to_python(self) -> Any:
        return None

    def _compare_same(self, other: Value) -> int:
        return 0


@dataclass(frozen=True, eq=False)
class BoolValue(Value):
    value: bool
    kind: ClassVar[ValueKind] = ValueKind.BOOL

    def is_truthy(self) -> bool:
        return self.value

    def to_display_string(self) -> str:
        return "true" if self.value else "false"

    def to_python(self) -> Any:
        return self.value

    def _compare_same(self, other: Value) -> int:
        return _sign(int(self.value) - int(other.value))


@dataclass(frozen=True, eq=False)
class StringValue(Value):
    value: str
    kind: ClassVar[ValueKind] = ValueKind.STRING

    def is_truthy(self) -> bool:
        return True

    def to_display_string(self) -> str:
        return self.value

    def to_python(self) -> Any:
        return self.value

    def to_number(self) -> Optional[Decimal]:
        text = self.value.strip()
        if not _NUMBER_RE.fullmatch(text):
            return None
        try:
            return Decimal(text)
        except InvalidOperation:
            return None

    def _compare_same(self, other: Value) -> int:
        if self.value == other.value:
            return 0
        return -1 if self.value < other.value else 1


@dataclass(frozen=True, eq=False)
class IntegerValue(Value):
    value: int
    kind: ClassVar[ValueKind] = ValueKind.INTEGER

    def is_truthy(self) -> bool:
        return True

    def to_display_string(self) -> str:
        return str(self.value)

    def to_python(self) -> Any:
        return self.value

    def to_number(self) -> Optional[Decimal]:
        return Decimal(self.value)

    def _compare_same(self, other: Value) -> int:
        return _sign(self.value - other.value)

    def __hash__(self) -> int:
        return hash(Decimal(self.value))


@dataclass(frozen=True, eq=False)
class DecimalValue(Value):
    value: Decimal
    kind: ClassVar[ValueKind] = ValueKind.DECIMAL

    def __post_init__(self):
        if not isinstance(self.value, Decimal):
            object.__setattr__(self, "value", Decimal(str(self.value)))

    def is_truthy(self) -> bool:
        return True

    def to_display_string(self) -> str:
        return format_decimal(self.value)

    def to_python(self) -> Any:
        return self.value

    def to_number(self) -> Optional[Decimal]:
        return self.value

    def _compare_same(self, other: Value) -> int:
        return _compare_numbers(self.value, other.value)

    def __hash__(self) -> int:
        return hash(self.value)


@dataclass(frozen=True, eq=False)
class ArrayValue(Value):
    items: Tuple[Value, ...] = ()
    kind: ClassVar[ValueKind] = ValueKind.ARRAY

    def __post_init__(self):
        if not isinstance(self.items, tuple):
            object.__setattr__(self, "items", tuple(self.items))

    def is_truthy(self) -> bool:
        return True

    def to_display_string(self) -> str:
        return "[" + ", ".join(item.to_display_string() for item in self.items) + "]"

    def to_python(self) -> Any:
        return [item.to_python() for item in self.items]

    def to_python_key(self) -> Any:
        return self.items

    def _compare_same(self, other: Value) -> int:
        for left, right in zip(self.items, other.items):
            result = left.compare(right)
            if result:
                return result
        return _sign(len(self.items) - len(other.items))

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Value]:
        return iter(self.items)

    def at(self, index: int) -> Value:
        """Element at a non-negative index, Nil when out of range."""
        if 0 <= index < len(self.items):
            return self.items[index]
        return NIL


@dataclass(frozen=True, eq=False)
class DictionaryValue(Value):
    entries: Mapping = field(default_factory=dict)
    kind: ClassVar[ValueKind] = ValueKind.DICTIONARY

    def __post_init__(self):
        if not isinstance(self.entries, MappingProxyType):
            object.__setattr__(self, "entries", MappingProxyType(dict(self.entries)))

    def is_truthy(self) -> bool:
        return True

    def to_display_string(self) -> str:
        return "{}"

    def to_python(self) -> Any:
        return {key: value.to_python() for key, value in self.entries.items()}

    def to_python_key(self) -> Any:
        return frozenset(self.entries.items())

    def _compare_same(self, other: Value) -> int:
        left = sorted(self.entries.items(), key=lambda item: item[0])
        right = sorted(other.entries.items(), key=lambda item: item[0])
        for (left_key, left_value), (right_key, right_value) in zip(left, right):
            if left_key != right_key:
                return -1 if left_key < right_key else 1
            result = left_value.compare(right_value)
            if result:
                return result
        return _sign(len(left) - len(right))

    def get(self, key: str) -> Value:
        return self.entries.get(key, NIL)

    def __contains__(self, key: object) -> bool:
        return key in self.entries

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True, eq=False)
class RangeValue(Value):
    start: int
    stop: int  # inclusive
    kind: ClassVar[ValueKind] = ValueKind.RANGE

    def is_truthy(self) -> bool:
        return True

    def to_display_string(self) -> str:
        return f"{self.start}..{self.stop}"

    def to_python(self) -> Any:
        return range(self.start, self.stop + 1)

    def to_python_key(self) -> Any:
        return (self.start, self.stop)

    def _compare_same(self, other: Value) -> int:
        return _sign(self.start - other.start) or _sign(self.stop - other.stop)

    def __len__(self) -> int:
        return max(0, self.stop - self.start + 1)

    def __iter__(self) -> Iterator[Value]:
        return (IntegerValue(number) for number in range(self.start, self.stop + 1))

    def at(self, index: int) -> Value:
        """Element at a position inside the inclusive bounds, Nil when out of range."""
        if 0 <= index < len(self):
            return IntegerValue(self.start + index)
        return NIL


NIL = NilValue()
TRUE = BoolValue(True)
FALSE = BoolValue(False)
EMPTY_STRING = StringValue("")


def bool_value(flag: bool) -> BoolValue:
    return TRUE if flag else FALSE


def number_value(number: Decimal, integral: bool) -> Value:
    """Wraps a computed number, as Integer when `integral` and the number has no fraction."""
    if integral and number.is_finite() and number == number.to_integral_value():
        return IntegerValue(int(number))
    return DecimalValue(number)


def to_integer(value: Value) -> Optional[int]:
    """Integer view of a value (fractions truncate), None when not numeric."""
    number = value.to_number()
    if number is None or not number.is_finite():
        return None
    return int(number)


def iterate(value: Value) -> Tuple[Value, ...]:
    """
    Materializes a value as a sequence.

    Array → its items, Range → its integers, Dictionary → [key, value] pairs,
    Nil → nothing, anything else → a single item.
    """
    if isinstance(value, ArrayValue):
        return value.items
    if isinstance(value, RangeValue):
        return tuple(value)
    if isinstance(value, DictionaryValue):
        return tuple(
            ArrayValue((StringValue(key), item)) for key, item in value.entries.items()
        )
    if isinstance(value, NilValue):
        return ()
    return (value,)


def to_value(obj: Any) -> Value:
    """
    Converts host Python data into the value model.

    Args:
        obj: Any Python object; nested containers are converted recursively

    Returns:
        The corresponding Value
    """
    if isinstance(obj, Value):
        return obj
    if obj is None:
        return NIL
    if isinstance(obj, bool):
        return bool_value(obj)
    if isinstance(obj, int):
        return IntegerValue(obj)
    if isinstance(obj, float):
        if math.isnan(obj) or math.isinf(obj):
            return DecimalValue(Decimal(obj))
        return DecimalValue(Decimal(repr(obj)))
    if isinstance(obj, Decimal):
        return DecimalValue(obj)
    if isinstance(obj, str):
        return StringValue(obj)
    if isinstance(obj, range):
        if obj.step == 1:
            return RangeValue(obj.start, obj.stop - 1)
        return ArrayValue(tuple(IntegerValue(number) for number in obj))
    if isinstance(obj, (datetime, date)):
        return StringValue(obj.isoformat())
    if hasattr(obj, "to_liquid"):
        return to_value(obj.to_liquid())
    if isinstance(obj, Mapping):
        return DictionaryValue({str(key): to_value(item) for key, item in obj.items()})
    if is_dataclass(obj) and not isinstance(obj, type):
        return to_value(asdict(obj))
    if isinstance(obj, (list, tuple, set, frozenset)):
        return ArrayValue(tuple(to_value(item) for item in obj))
    return StringValue(str(obj))


__all__ = [
    "ValueKind",
    "Value",
    "NilValue",
    "BoolValue",
    "StringValue",
    "IntegerValue",
    "DecimalValue",
    "ArrayValue",
    "DictionaryValue",
    "RangeValue",
    "NIL",
    "TRUE",
    "FALSE",
    "EMPTY_STRING",
    "bool_value",
    "number_value",
    "to_integer",
    "iterate",
    "to_value",
    "format_decimal",
]
