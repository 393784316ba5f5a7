"""
Compiled template tree.

Immutable node classes produced by the compiler. Block nodes hold their
children in tuples, so a compiled tree can be shared between renders and
threads.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple

from .expressions import Expr


@dataclass(frozen=True)
class Node:
    """Base class for all compiled template nodes."""
    pass


# Alias for a sequence of nodes (a compiled body)
NodeTree = Tuple[Node, ...]


@dataclass(frozen=True)
class TextNode(Node):
    """Static text emitted as is."""
    text: str


@dataclass(frozen=True)
class OutputNode(Node):
    """
    Output `{{ expression | filters }}`.

    The filter chain is part of the expression (see `Filtered`).
    """
    expression: Expr
    line: int = 0
    column: int = 0


@dataclass(frozen=True)
class ConditionalBranch:
    """One `if`/`elsif` (or `unless`) branch. `negate` inverts the condition."""
    condition: Expr
    body: NodeTree
    negate: bool = False


@dataclass(frozen=True)
class IfNode(Node):
    """
    Conditional block {% if %}...{% elsif %}...{% else %}...{% endif %}.

    Also represents `unless`, whose first branch is negated.
    """
    branches: Tuple[ConditionalBranch, ...]
    else_body: Optional[NodeTree] = None
    line: int = 0
    column: int = 0


@dataclass(frozen=True)
class WhenClause:
    """`{% when a, b %}`: the body runs when the subject equals any value."""
    values: Tuple[Expr, ...]
    body: NodeTree


@dataclass(frozen=True)
class CaseNode(Node):
    subject: Expr
    whens: Tuple[WhenClause, ...]
    else_body: Optional[NodeTree] = None
    line: int = 0
    column: int = 0


@dataclass(frozen=True)
class ForNode(Node):
    """
    Loop {% for variable in iterable limit:n offset:n reversed %}.

    Modifiers apply in the order offset, limit, reversed. The else body runs
    when the sliced collection is empty.
    """
    variable: str
    iterable: Expr
    body: NodeTree
    else_body: Optional[NodeTree] = None
    limit: Optional[Expr] = None
    offset: Optional[Expr] = None
    reversed: bool = False
    line: int = 0
    column: int = 0


@dataclass(frozen=True)
class TablerowNode(Node):
    """HTML table rows {% tablerow variable in iterable cols:n limit:n offset:n %}."""
    variable: str
    iterable: Expr
    body: NodeTree
    cols: Optional[Expr] = None
    limit: Optional[Expr] = None
    offset: Optional[Expr] = None
    line: int = 0
    column: int = 0


@dataclass(frozen=True)
class BreakNode(Node):
    pass


@dataclass(frozen=True)
class ContinueNode(Node):
    pass


@dataclass(frozen=True)
class CycleNode(Node):
    """
    {% cycle [group:] a, b, c %}

    Without a group the cycle is keyed by its values' source text.
    """
    values: Tuple[Expr, ...]
    group: Optional[Expr] = None
    line: int = 0
    column: int = 0


@dataclass(frozen=True)
class CaptureNode(Node):
    """Renders the body into a string variable instead of the output."""
    name: str
    body: NodeTree


@dataclass(frozen=True)
class AssignNode(Node):
    name: str
    expression: Expr
    line: int = 0
    column: int = 0


@dataclass(frozen=True)
class EchoNode(Node):
    """{% echo expression %}, equivalent to an output."""
    expression: Expr
    line: int = 0
    column: int = 0


@dataclass(frozen=True)
class IncrementNode(Node):
    name: str


@dataclass(frozen=True)
class DecrementNode(Node):
    name: str


@dataclass(frozen=True)
class CustomNode(Node):
    """
    Node of a user-registered tag.

    The payload is whatever the tag's compile step produced; rendering is
    delegated back to the tag definition.
    """
    tag_name: str
    payload: Any = None
    children: NodeTree = ()
    line: int = 0
    column: int = 0


__all__ = [
    "Node",
    "NodeTree",
    "TextNode",
    "OutputNode",
    "ConditionalBranch",
    "IfNode",
    "WhenClause",
    "CaseNode",
    "ForNode",
    "TablerowNode",
    "BreakNode",
    "ContinueNode",
    "CycleNode",
    "CaptureNode",
    "AssignNode",
    "EchoNode",
    "IncrementNode",
    "DecrementNode",
    "CustomNode",
]
