"""
Variable tags: assign, capture, increment, decrement and echo.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from ..expressions import parse_filter_chain
from ..nodes import AssignNode, CaptureNode, DecrementNode, EchoNode, IncrementNode
from .base import TagBlock, TagDefinition

if TYPE_CHECKING:
    from ..compiler import TemplateCompiler

_ASSIGN_RE = re.compile(r'([A-Za-z_][\w-]*)\s*=\s*(.*)', re.DOTALL)
_NAME_RE = re.compile(r'[A-Za-z_][\w-]*')


def _variable_name(block: TagBlock) -> str:
    name = block.args.strip("'\"")
    if not _NAME_RE.fullmatch(name):
        raise block.error(f"Expected a variable name in '{block.name}' tag")
    return name


class AssignTag(TagDefinition):
    """{% assign name = value | filters %}: writes a global variable."""

    name = "assign"

    def compile(self, block: TagBlock, compiler: TemplateCompiler) -> AssignNode:
        match = _ASSIGN_RE.fullmatch(block.args)
        if not match or not match.group(2).strip():
            raise block.error("Expected 'name = value' in 'assign' tag")
        return AssignNode(
            name=match.group(1),
            expression=parse_filter_chain(match.group(2)),
            line=block.token.line,
            column=block.token.column,
        )


class CaptureTag(TagDefinition):
    """{% capture name %}...{% endcapture %}: renders the body into a global variable."""

    name = "capture"
    end_name = "endcapture"

    def compile(self, block: TagBlock, compiler: TemplateCompiler) -> CaptureNode:
        return CaptureNode(name=_variable_name(block), body=block.body)


class IncrementTag(TagDefinition):
    name = "increment"

    def compile(self, block: TagBlock, compiler: TemplateCompiler) -> IncrementNode:
        return IncrementNode(name=_variable_name(block))


class DecrementTag(TagDefinition):
    name = "decrement"

    def compile(self, block: TagBlock, compiler: TemplateCompiler) -> DecrementNode:
        return DecrementNode(name=_variable_name(block))


class EchoTag(TagDefinition):
    """{% echo value | filters %}: same as an output, usable inside tags."""

    name = "echo"

    def compile(self, block: TagBlock, compiler: TemplateCompiler) -> EchoNode:
        if not block.args:
            raise block.error("Missing expression in 'echo' tag")
        return EchoNode(
            expression=parse_filter_chain(block.args),
            line=block.token.line,
            column=block.token.column,
        )


__all__ = ["AssignTag", "CaptureTag", "IncrementTag", "DecrementTag", "EchoTag"]
