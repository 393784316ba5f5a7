"""
Base interface for tag definitions.

A tag definition describes how the compiler recognises a tag (its name,
the optional end tag and the branch tags allowed inside it) and how a
collected block turns into a node. Custom tags implement this interface
and are registered in the environment; the compiler never needs to know
about them in advance.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Tuple

from ..errors import TemplateSyntaxError
from ..expressions import ExpressionParser
from ..lexer import Token
from ..nodes import Node, NodeTree

if TYPE_CHECKING:
    from ..compiler import TemplateCompiler
    from ..context import Context
    from ..nodes import CustomNode
    from ..renderer import Renderer


@dataclass(frozen=True)
class BlockBranch:
    """
    One section of a block tag.

    The first branch is named after the tag itself and carries the tag's
    arguments; later ones start at a branch tag (`elsif`, `when`, `else`, …).
    """
    name: str
    args: str
    body: NodeTree
    token: Token


@dataclass(frozen=True)
class TagBlock:
    """
    Everything the compiler collected for one tag occurrence.

    Attributes:
        token: The opening tag token
        args: Raw argument text of the opening tag
        branches: Compiled branches in source order (empty for standalone tags)
        tokens: Raw token stream between the opening and the end tag
    """
    token: Token
    args: str
    branches: Tuple[BlockBranch, ...] = ()
    tokens: Tuple[Token, ...] = ()

    @property
    def name(self) -> str:
        return self.token.name

    @property
    def body(self) -> NodeTree:
        """Body of the first branch."""
        return self.branches[0].body if self.branches else ()

    def parser(self, source: Optional[str] = None) -> ExpressionParser:
        """Expression parser over the tag arguments (or the given text)."""
        return ExpressionParser(self.args if source is None else source)

    def error(self, message: str) -> TemplateSyntaxError:
        return TemplateSyntaxError(message, self.token.line, self.token.column)


class TagDefinition(ABC):
    """
    Base interface for tags.

    Class attributes:
        name: Tag keyword
        end_name: Closing tag keyword; None for standalone tags
        branch_names: Branch tags allowed inside the block
        is_loop: Whether `break`/`continue` are valid in the main body
    """

    name: str = ""
    end_name: Optional[str] = None
    branch_names: Tuple[str, ...] = ()
    is_loop: bool = False

    @property
    def is_block(self) -> bool:
        return self.end_name is not None

    @abstractmethod
    def compile(self, block: TagBlock, compiler: TemplateCompiler) -> Node:
        """
        Builds the node for a collected block.

        Raises:
            TemplateSyntaxError: On malformed arguments or branch layout
        """
        pass

    def render(self, node: CustomNode, renderer: Renderer, context: Context, buffer: List[str]) -> None:
        """
        Renders a CustomNode produced by this tag, appending to the buffer.

        Built-in tags compile to dedicated nodes and never reach this hook.
        """
        raise NotImplementedError(f"Tag '{self.name}' does not render custom nodes")


__all__ = ["BlockBranch", "TagBlock", "TagDefinition"]
