"""
Environment: filter, tag and operator registries plus engine settings.

The registries are built once at construction and exposed as read-only
mappings, so an environment can be shared between threads and renders.
"""

from __future__ import annotations

import logging
import threading
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, TypeVar, Union

from .config import EngineConfig
from .filters import DateFilter, Filter, FunctionFilter, builtin_filters
from .operators import FunctionOperator, Operator, builtin_operators
from .tags import TagDefinition, builtin_tags

logger = logging.getLogger(__name__)

T = TypeVar("T")

FilterSpec = Union[Iterable[Filter], Mapping[str, Union[Filter, Callable[..., Any]]]]
OperatorSpec = Union[Iterable[Operator], Mapping[str, Union[Operator, Callable[..., Any]]]]

_default_environment: Optional[Environment] = None
_default_lock = threading.Lock()


def _build_registry(
    kind: str,
    builtin: Iterable[T],
    extra: Optional[Iterable[T]],
    key: Callable[[T], str],
) -> Dict[str, T]:
    """Indexes built-in entries by key, then layers extra entries on top."""
    registry: Dict[str, T] = {key(item): item for item in builtin}
    builtin_keys = set(registry)
    for item in extra or ():
        name = key(item)
        if name in builtin_keys:
            logger.warning("Overriding built-in %s '%s'", kind, name)
        registry[name] = item
    return registry


def _normalize_filters(filters: Optional[FilterSpec]) -> Optional[Iterable[Filter]]:
    if filters is None or not isinstance(filters, Mapping):
        return filters
    result = []
    for name, item in filters.items():
        if isinstance(item, Filter):
            result.append(item)
        else:
            result.append(FunctionFilter(name, item))
    return result


def _normalize_operators(operators: Optional[OperatorSpec]) -> Optional[Iterable[Operator]]:
    if operators is None or not isinstance(operators, Mapping):
        return operators
    result = []
    for name, item in operators.items():
        if isinstance(item, Operator):
            result.append(item)
        else:
            result.append(FunctionOperator(name, item))
    return result


class Environment:
    """
    Registries and settings used to compile and render templates.

    Args:
        filters: Extra filters, as Filter instances or a mapping of name to
            Filter or plain function
        tags: Extra tag definitions
        operators: Extra operators, as Operator instances or a mapping of
            name to Operator or function
        config: Engine settings

    Entries with the name of a built-in replace it (with a warning).
    """

    def __init__(
        self,
        filters: Optional[FilterSpec] = None,
        tags: Optional[Iterable[TagDefinition]] = None,
        operators: Optional[OperatorSpec] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.config = config or EngineConfig()

        builtin_filter_list = builtin_filters()
        if self.config.date_format:
            builtin_filter_list = [
                f for f in builtin_filter_list if f.identifier != "date"
            ] + [DateFilter(self.config.date_format)]

        self._extra_filters = list(_normalize_filters(filters) or ())
        self._extra_tags = list(tags or ())
        self._extra_operators = list(_normalize_operators(operators) or ())

        self.filters: Mapping[str, Filter] = MappingProxyType(_build_registry(
            "filter", builtin_filter_list, self._extra_filters, lambda f: f.identifier
        ))
        self.tags: Mapping[str, TagDefinition] = MappingProxyType(_build_registry(
            "tag", builtin_tags(), self._extra_tags, lambda t: t.name
        ))
        self.operators: Mapping[str, Operator] = MappingProxyType(_build_registry(
            "operator", builtin_operators(), self._extra_operators, lambda o: o.identifier
        ))

    @classmethod
    def default(cls) -> Environment:
        """Shared environment with the built-in registries and default settings."""
        global _default_environment
        if _default_environment is None:
            with _default_lock:
                if _default_environment is None:
                    _default_environment = cls()
        return _default_environment

    def extend(
        self,
        filters: Optional[FilterSpec] = None,
        tags: Optional[Iterable[TagDefinition]] = None,
        operators: Optional[OperatorSpec] = None,
        config: Optional[EngineConfig] = None,
    ) -> Environment:
        """New environment with this one's extra entries plus the given ones."""
        return Environment(
            filters=self._extra_filters + list(_normalize_filters(filters) or ()),
            tags=self._extra_tags + list(tags or ()),
            operators=self._extra_operators + list(_normalize_operators(operators) or ()),
            config=config or self.config,
        )

    def compile(self, source: str):
        """Compiles template source in this environment (see `compile_template`)."""
        from .template import compile_template
        return compile_template(source, self)

    def __repr__(self) -> str:
        return (
            f"Environment(filters={len(self.filters)}, tags={len(self.tags)}, "
            f"operators={len(self.operators)})"
        )


__all__ = ["Environment"]
