"""
Built-in filters, grouped by category.
"""

from __future__ import annotations

from typing import List

from .arithmetic import math_filters
from .arrays import array_filters
from .base import Filter, FilterGroup, FunctionFilter
from .encoding import encoding_filters
from .misc import DateFilter, misc_filters
from .strings import string_filters

FILTER_GROUPS = (math_filters, string_filters, array_filters, encoding_filters, misc_filters)


def builtin_filters() -> List[Filter]:
    """One instance of every built-in filter."""
    result: List[Filter] = []
    for group in FILTER_GROUPS:
        result.extend(group.filters())
    return result


__all__ = [
    "Filter",
    "FunctionFilter",
    "FilterGroup",
    "DateFilter",
    "FILTER_GROUPS",
    "builtin_filters",
]
