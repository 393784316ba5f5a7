"""
Array filters.

Non-array input is treated as a one-element array (Nil as an empty one);
ranges expand to their integers. These filters never fail except on a
missing required argument.
"""

from __future__ import annotations

from typing import Optional, Tuple

from ..context import get_item
from ..values import NIL, ArrayValue, IntegerValue, NilValue, RangeValue, StringValue, Value
from .base import FilterGroup

array_filters = FilterGroup("array")


def _items(value: Value) -> Tuple[Value, ...]:
    if isinstance(value, ArrayValue):
        return value.items
    if isinstance(value, RangeValue):
        return tuple(value)
    if isinstance(value, NilValue):
        return ()
    return (value,)


def _key(item: Value, prop: Optional[Value]) -> Value:
    if prop is None:
        return item
    return get_item(item, prop)


def _matches(item: Value, prop: Value, target: Optional[Value]) -> bool:
    found = get_item(item, prop)
    if target is None:
        return found.is_truthy()
    return found.equals(target)


@array_filters.register("join")
def join(value, separator=None):
    glue = separator.to_display_string() if separator is not None else " "
    return glue.join(item.to_display_string() for item in _items(value))


@array_filters.register("first")
def first(value):
    items = _items(value)
    return items[0] if items else NIL


@array_filters.register("last")
def last(value):
    items = _items(value)
    return items[-1] if items else NIL


@array_filters.register("reverse")
def reverse(value):
    """Reverses an array; a string is reversed character by character."""
    if isinstance(value, StringValue):
        return StringValue(value.value[::-1])
    return ArrayValue(tuple(reversed(_items(value))))


@array_filters.register("sort")
def sort(value, prop=None):
    """Sorts by the total value order; Nil keys go last."""
    def sort_key(item):
        key = _key(item, prop)
        return (key is NIL, key)
    return ArrayValue(tuple(sorted(_items(value), key=sort_key)))


@array_filters.register("sort_natural")
def sort_natural(value, prop=None):
    """Case-insensitive sort by display text; Nil keys go last."""
    def sort_key(item):
        key = _key(item, prop)
        return (key is NIL, key.to_display_string().casefold())
    return ArrayValue(tuple(sorted(_items(value), key=sort_key)))


@array_filters.register("uniq")
def uniq(value, prop=None):
    seen = set()
    result = []
    for item in _items(value):
        key = _key(item, prop)
        if key in seen:
            continue
        seen.add(key)
        result.append(item)
    return ArrayValue(tuple(result))


@array_filters.register("compact")
def compact(value, prop=None):
    return ArrayValue(tuple(item for item in _items(value) if _key(item, prop) is not NIL))


@array_filters.register("concat")
def concat(value, other):
    return ArrayValue(_items(value) + _items(other))


@array_filters.register("map")
def map_(value, prop):
    return ArrayValue(tuple(get_item(item, prop) for item in _items(value)))


@array_filters.register("where")
def where(value, prop, target=None):
    """Items whose property equals the target, or is truthy when no target is given."""
    return ArrayValue(tuple(item for item in _items(value) if _matches(item, prop, target)))


@array_filters.register("reject")
def reject(value, prop, target=None):
    return ArrayValue(tuple(item for item in _items(value) if not _matches(item, prop, target)))


@array_filters.register("find")
def find(value, prop, target=None):
    for item in _items(value):
        if _matches(item, prop, target):
            return item
    return NIL


@array_filters.register("find_index")
def find_index(value, prop, target=None):
    for index, item in enumerate(_items(value)):
        if _matches(item, prop, target):
            return IntegerValue(index)
    return NIL
