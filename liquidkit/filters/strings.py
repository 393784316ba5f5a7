"""
String filters.

Input and arguments are coerced with `to_display_string`. These filters
never fail except on a missing required argument.
"""

from __future__ import annotations

import re

from ..values import (
    ArrayValue,
    DictionaryValue,
    IntegerValue,
    RangeValue,
    StringValue,
    to_integer,
)
from .base import FilterGroup

string_filters = FilterGroup("string")

_HTML_BLOCKS = re.compile(r'<script.*?</script>|<style.*?</style>|<!--.*?-->', re.DOTALL | re.IGNORECASE)
_HTML_TAGS = re.compile(r'<.*?>', re.DOTALL)


def _text(value) -> str:
    return value.to_display_string()


def _int_arg(value, default: int) -> int:
    if value is None:
        return default
    number = to_integer(value)
    return default if number is None else number


@string_filters.register("append")
def append(value, suffix):
    return _text(value) + _text(suffix)


@string_filters.register("prepend")
def prepend(value, prefix):
    return _text(prefix) + _text(value)


@string_filters.register("capitalize")
def capitalize(value):
    text = _text(value)
    return text[:1].upper() + text[1:].lower()


@string_filters.register("downcase")
def downcase(value):
    return _text(value).lower()


@string_filters.register("upcase")
def upcase(value):
    return _text(value).upper()


@string_filters.register("strip")
def strip(value):
    return _text(value).strip()


@string_filters.register("lstrip")
def lstrip(value):
    return _text(value).lstrip()


@string_filters.register("rstrip")
def rstrip(value):
    return _text(value).rstrip()


@string_filters.register("strip_newlines")
def strip_newlines(value):
    return _text(value).replace("\r\n", "").replace("\n", "")


@string_filters.register("newline_to_br")
def newline_to_br(value):
    return _text(value).replace("\r\n", "\n").replace("\n", "<br />\n")


@string_filters.register("strip_html")
def strip_html(value):
    return _HTML_TAGS.sub("", _HTML_BLOCKS.sub("", _text(value)))


@string_filters.register("remove")
def remove(value, target):
    return _text(value).replace(_text(target), "")


@string_filters.register("remove_first")
def remove_first(value, target):
    return _text(value).replace(_text(target), "", 1)


@string_filters.register("remove_last")
def remove_last(value, target):
    return replace_last(value, target, StringValue(""))


@string_filters.register("replace")
def replace(value, target, replacement=None):
    return _text(value).replace(_text(target), _text(replacement) if replacement is not None else "")


@string_filters.register("replace_first")
def replace_first(value, target, replacement=None):
    return _text(value).replace(_text(target), _text(replacement) if replacement is not None else "", 1)


@string_filters.register("replace_last")
def replace_last(value, target, replacement=None):
    text, needle = _text(value), _text(target)
    index = text.rfind(needle)
    if index == -1:
        return text
    substitute = _text(replacement) if replacement is not None else ""
    return text[:index] + substitute + text[index + len(needle):]


@string_filters.register("split")
def split(value, separator):
    """
    Splits into an array of strings.

    A single space splits on whitespace runs; an empty separator splits into
    characters. Trailing empty items are dropped.
    """
    text, sep = _text(value), _text(separator)
    if sep == " ":
        parts = text.split()
    elif sep == "":
        parts = list(text)
    else:
        parts = text.split(sep)
        while parts and parts[-1] == "":
            parts.pop()
    return ArrayValue(tuple(StringValue(part) for part in parts))


@string_filters.register("slice")
def slice_(value, start, length=None):
    """Substring (or sub-array) from `start`; a negative start counts from the end."""
    offset = _int_arg(start, 0)
    count = _int_arg(length, 1)
    if isinstance(value, ArrayValue):
        sequence = value.items
    else:
        sequence = _text(value)

    if offset < 0:
        offset += len(sequence)
        if offset < 0:
            count += offset
            offset = 0
    if count <= 0:
        return ArrayValue(()) if isinstance(value, ArrayValue) else ""

    chunk = sequence[offset:offset + count]
    if isinstance(value, ArrayValue):
        return ArrayValue(chunk)
    return chunk


@string_filters.register("truncate")
def truncate(value, length=None, ellipsis=None):
    text = _text(value)
    limit = _int_arg(length, 50)
    suffix = _text(ellipsis) if ellipsis is not None else "..."
    if len(text) <= limit:
        return text
    return text[:max(limit - len(suffix), 0)] + suffix


@string_filters.register("truncatewords")
def truncatewords(value, count=None, ellipsis=None):
    text = _text(value)
    limit = max(_int_arg(count, 15), 1)
    suffix = _text(ellipsis) if ellipsis is not None else "..."
    words = text.split()
    if len(words) <= limit:
        return text
    return " ".join(words[:limit]) + suffix


@string_filters.register("size")
def size(value):
    """Length of a string, array, dictionary or range; 0 for anything else."""
    if isinstance(value, StringValue):
        return IntegerValue(len(value.value))
    if isinstance(value, (ArrayValue, DictionaryValue, RangeValue)):
        return IntegerValue(len(value))
    return IntegerValue(0)
