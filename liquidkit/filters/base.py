"""
Filter interface and registration helpers.

A filter is a named transformation `(value, args) -> value`. Keyword
arguments (`default: x, allow_false: true`) arrive as options. Filters
signal bad input by raising FilterError; the renderer wraps it with the
filter name and source position.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from ..errors import FilterError
from ..values import Value, to_value


class Filter(ABC):
    """Base interface for filters."""

    identifier: str = ""

    @abstractmethod
    def evaluate(self, value: Value, args: Sequence[Value], options: Optional[Mapping[str, Value]] = None) -> Value:
        """
        Applies the filter.

        Args:
            value: Input value (result of the previous pipeline step)
            args: Evaluated positional arguments
            options: Evaluated keyword arguments

        Raises:
            FilterError: On invalid input or arguments
        """
        pass


class FunctionFilter(Filter):
    """
    Filter backed by a plain function `func(value, *args, **options)`.

    The arity is taken from the function signature: missing required
    arguments raise FilterError, surplus positional arguments and unknown
    options are ignored. Non-Value results are converted with `to_value`.
    """

    def __init__(self, identifier: str, func: Callable[..., Any]):
        self.identifier = identifier
        self.func = func

        parameters = list(inspect.signature(func).parameters.values())[1:]
        positional = [
            p for p in parameters
            if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
        ]
        self._required = sum(1 for p in positional if p.default is inspect.Parameter.empty)
        self._max_args: Optional[int] = len(positional)
        if any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in parameters):
            self._max_args = None
        self._options = {p.name for p in parameters if p.kind is inspect.Parameter.KEYWORD_ONLY}
        self._any_options = any(p.kind is inspect.Parameter.VAR_KEYWORD for p in parameters)

    def evaluate(self, value: Value, args: Sequence[Value], options: Optional[Mapping[str, Value]] = None) -> Value:
        if len(args) < self._required:
            raise FilterError(
                f"'{self.identifier}' expects at least {self._required} argument(s), got {len(args)}"
            )
        if self._max_args is not None:
            args = args[:self._max_args]

        kwargs: Dict[str, Value] = {}
        for key, item in (options or {}).items():
            if self._any_options or key in self._options:
                kwargs[key] = item

        return to_value(self.func(value, *args, **kwargs))

    def __repr__(self) -> str:
        return f"FunctionFilter({self.identifier!r})"


class FilterGroup:
    """
    Named collection of filters, filled with the `register` decorator.

    Example:
        string_filters = FilterGroup("string")

        @string_filters.register("upcase")
        def upcase(value): ...
    """

    def __init__(self, name: str):
        self.name = name
        self._filters: List[Filter] = []

    def register(self, identifier: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._filters.append(FunctionFilter(identifier, func))
            return func
        return decorator

    def add(self, filter_: Filter) -> None:
        self._filters.append(filter_)

    def filters(self) -> List[Filter]:
        return list(self._filters)


__all__ = ["Filter", "FunctionFilter", "FilterGroup"]
