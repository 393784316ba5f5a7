"""
Miscellaneous filters: default and date.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Mapping, Optional, Sequence

from ..values import (
    ArrayValue,
    BoolValue,
    DecimalValue,
    DictionaryValue,
    IntegerValue,
    NilValue,
    StringValue,
    Value,
)
from .base import Filter, FilterGroup

logger = logging.getLogger(__name__)

misc_filters = FilterGroup("misc")

_DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d %B %Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%a, %d %b %Y %H:%M:%S %z",
)


def _is_empty(value: Value) -> bool:
    if isinstance(value, NilValue):
        return True
    if isinstance(value, StringValue):
        return value.value == ""
    if isinstance(value, (ArrayValue, DictionaryValue)):
        return len(value) == 0
    return False


@misc_filters.register("default")
def default(value, fallback=None, *, allow_false=None):
    """
    Returns the fallback for nil, false and empty values.

    With `allow_false: true` a false input is kept.
    """
    if fallback is None:
        fallback = StringValue("")
    keep_false = allow_false is not None and allow_false.is_truthy()
    if isinstance(value, BoolValue) and not value.value:
        return value if keep_false else fallback
    if _is_empty(value):
        return fallback
    return value


def _from_timestamp(number: Decimal) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(float(number), tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def parse_date(value: Value) -> Optional[datetime]:
    """
    Interprets a value as a point in time.

    Accepts `now`/`today`, unix timestamps (numbers or numeric strings),
    ISO 8601 text and a few common human formats. Returns None when the
    value is not a date. Timestamps and `now` are in UTC.
    """
    if isinstance(value, (IntegerValue, DecimalValue)):
        return _from_timestamp(value.value)
    if not isinstance(value, StringValue):
        return None

    text = value.value.strip()
    if text.lower() in ("now", "today"):
        return datetime.now(tz=timezone.utc)
    number = value.to_number()
    if number is not None:
        return _from_timestamp(number)

    iso_text = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        return datetime.fromisoformat(iso_text)
    except ValueError:
        pass
    for pattern in _DATE_FORMATS:
        try:
            return datetime.strptime(text, pattern)
        except ValueError:
            continue
    return None


class DateFilter(Filter):
    """
    `date: format` formats a date with strftime directives.

    Without a format the environment's default format is used; when there is
    none, or the input is not a date, the input is returned unchanged.
    """

    identifier = "date"

    def __init__(self, default_format: Optional[str] = None):
        self.default_format = default_format

    def evaluate(self, value: Value, args: Sequence[Value], options: Optional[Mapping[str, Value]] = None) -> Value:
        fmt = args[0].to_display_string() if args else self.default_format
        if not fmt:
            return value

        moment = parse_date(value)
        if moment is None:
            logger.debug("date: cannot interpret %r as a date", value.to_display_string())
            return value
        return StringValue(moment.strftime(fmt))

    def __repr__(self) -> str:
        return f"DateFilter({self.default_format!r})"


misc_filters.add(DateFilter())


__all__ = ["misc_filters", "DateFilter", "parse_date", "default"]
