"""
Tag definitions.

`builtin_tags()` returns one instance of every built-in tag; `raw` and
`comment` are handled by the lexer and have no definition.
"""

from __future__ import annotations

from typing import List

from .base import BlockBranch, TagBlock, TagDefinition
from .conditionals import CaseTag, IfTag, UnlessTag
from .loops import BreakTag, ContinueTag, CycleTag, ForTag, TablerowTag
from .variables import AssignTag, CaptureTag, DecrementTag, EchoTag, IncrementTag


def builtin_tags() -> List[TagDefinition]:
    return [
        IfTag(),
        UnlessTag(),
        CaseTag(),
        ForTag(),
        TablerowTag(),
        BreakTag(),
        ContinueTag(),
        CycleTag(),
        AssignTag(),
        CaptureTag(),
        IncrementTag(),
        DecrementTag(),
        EchoTag(),
    ]


__all__ = [
    "BlockBranch",
    "TagBlock",
    "TagDefinition",
    "builtin_tags",
    "IfTag",
    "UnlessTag",
    "CaseTag",
    "ForTag",
    "TablerowTag",
    "BreakTag",
    "ContinueTag",
    "CycleTag",
    "AssignTag",
    "CaptureTag",
    "IncrementTag",
    "DecrementTag",
    "EchoTag",
]
