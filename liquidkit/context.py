"""
Variable-resolution context for a single render.

Holds a stack of frames: frame 0 contains the caller's data together with
globals written by `assign`, `capture` and the counters; loops push a frame
for their variables. Lookups go from the innermost frame outwards.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Mapping, Optional, Sequence, Union

from .values import (
    NIL,
    ArrayValue,
    DictionaryValue,
    IntegerValue,
    RangeValue,
    StringValue,
    Value,
    to_value,
)

if TYPE_CHECKING:
    from .environment import Environment

Key = Union[str, int, Value]
Frame = Dict[str, Value]


def get_item(container: Value, key: Key) -> Value:
    """
    Applies one accessor step to a value.

    String keys read dictionary fields; integer keys index arrays and
    ranges. `size`, `first` and `last` are available on arrays and ranges,
    `size` also on dictionaries without such a field. Any other combination
    yields Nil.
    """
    if isinstance(key, Value):
        if isinstance(key, StringValue):
            key = key.value
        elif isinstance(key, IntegerValue):
            key = key.value
        else:
            return NIL

    if isinstance(key, bool):
        return NIL

    if isinstance(key, int):
        if isinstance(container, (ArrayValue, RangeValue)):
            return container.at(key)
        return NIL

    if isinstance(container, DictionaryValue):
        if key in container:
            return container.get(key)
        if key == "size":
            return IntegerValue(len(container))
        return NIL

    if isinstance(container, (ArrayValue, RangeValue)):
        if key == "size":
            return IntegerValue(len(container))
        if key == "first":
            return container.at(0)
        if key == "last":
            return container.at(len(container) - 1)

    return NIL


class Context:
    """
    Render context with scoped variable frames.

    One instance per render; not shared between renders or threads.
    """

    def __init__(self, data: Optional[Mapping[str, Any]] = None, environment: Optional[Environment] = None):
        """
        Args:
            data: Caller data; values are converted with `to_value`
            environment: Environment the render runs in
        """
        self.environment = environment
        global_frame: Frame = {}
        for name, item in (data or {}).items():
            global_frame[str(name)] = to_value(item)
        self.frames: List[Frame] = [global_frame]

        self._counters: Dict[str, int] = {}
        self._cycles: Dict[str, int] = {}

    @property
    def globals(self) -> Frame:
        return self.frames[0]

    # Resolution

    def lookup(self, name: str) -> Value:
        """Value of a root identifier, Nil when no frame defines it."""
        for frame in reversed(self.frames):
            if name in frame:
                return frame[name]
        return NIL

    def resolve(self, root: str, keys: Sequence[Key] = ()) -> Value:
        """
        Resolves a variable path.

        Args:
            root: Root identifier
            keys: Accessor keys applied in order

        Returns:
            The resolved value; Nil for any miss
        """
        value = self.lookup(root)
        for key in keys:
            if value is NIL:
                break
            value = get_item(value, key)
        return value

    # Frames

    def push_frame(self, values: Optional[Mapping[str, Value]] = None) -> None:
        self.frames.append(dict(values or {}))

    def pop_frame(self) -> Frame:
        """
        Removes the innermost frame.

        Raises:
            RuntimeError: When only the global frame is left
        """
        if len(self.frames) == 1:
            raise RuntimeError("Cannot pop the global frame")
        return self.frames.pop()

    @contextmanager
    def scope(self, values: Optional[Mapping[str, Value]] = None) -> Iterator[Frame]:
        """Pushes a frame for the duration of the block, released even on error."""
        self.push_frame(values)
        try:
            yield self.frames[-1]
        finally:
            self.pop_frame()

    # Mutation

    def assign(self, name: str, value: Value) -> None:
        """Writes a variable into the global frame."""
        self.globals[name] = value

    def set_local(self, name: str, value: Value) -> None:
        """Writes a variable into the innermost frame."""
        self.frames[-1][name] = value

    def increment(self, name: str) -> int:
        """
        Increments a counter (starting at 0) and publishes it as a global variable.

        Returns:
            The new counter value
        """
        value = self._counters.get(name, 0) + 1
        self._counters[name] = value
        self.globals[name] = IntegerValue(value)
        return value

    def decrement(self, name: str) -> int:
        """Decrements a counter (starting at 0) and publishes it as a global variable."""
        value = self._counters.get(name, 0) - 1
        self._counters[name] = value
        self.globals[name] = IntegerValue(value)
        return value

    def cycle(self, key: str, count: int) -> int:
        """
        Position for the next step of a cycle group.

        Returns:
            Index into the group's values, wrapping around after `count`
        """
        position = self._cycles.get(key, 0)
        self._cycles[key] = position + 1
        return position % count


__all__ = ["Context", "get_item"]
