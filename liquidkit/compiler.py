"""
Tag/node compiler.

Turns the flat token stream into a tree of nodes in a single forward pass,
keeping an explicit stack of open blocks. Every block must be closed by its
end tag; branch tags are only accepted inside the block that declares them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Sequence, Tuple

from .errors import TemplateSyntaxError
from .expressions import parse_output_expression
from .lexer import Token, TokenType
from .nodes import Node, NodeTree, OutputNode, TextNode
from .tags.base import BlockBranch, TagBlock, TagDefinition

if TYPE_CHECKING:
    from .environment import Environment

logger = logging.getLogger(__name__)


@dataclass
class BlockBuilder:
    """Open block on the compiler stack."""
    definition: TagDefinition
    token: Token
    branches: List[BlockBranch] = field(default_factory=list)
    tokens: List[Token] = field(default_factory=list)

    # Branch currently being filled
    branch_name: str = ""
    branch_args: str = ""
    branch_token: Token = field(init=False)
    body: List[Node] = field(default_factory=list)

    def __post_init__(self):
        self.branch_name = self.definition.name
        self.branch_args = self.token.value
        self.branch_token = self.token

    def start_branch(self, token: Token) -> None:
        if self.branch_name == "else":
            raise TemplateSyntaxError(
                f"Unexpected '{token.name}' after 'else' in '{self.definition.name}' block",
                token.line, token.column
            )
        self._close_branch()
        self.branch_name = token.name
        self.branch_args = token.value
        self.branch_token = token

    def finish(self) -> TagBlock:
        self._close_branch()
        return TagBlock(
            token=self.token,
            args=self.token.value,
            branches=tuple(self.branches),
            tokens=tuple(self.tokens),
        )

    def _close_branch(self) -> None:
        self.branches.append(BlockBranch(
            name=self.branch_name,
            args=self.branch_args,
            body=tuple(self.body),
            token=self.branch_token,
        ))
        self.body = []


class TemplateCompiler:
    """
    Compiles tokens into a node tree.

    Tag lookups go through the environment's tag registry, so the compiler
    itself knows no tag except through its definition.
    """

    def __init__(self, environment: Environment):
        self.environment = environment
        self._stack: List[BlockBuilder] = []
        self._root: List[Node] = []

    def compile(self, tokens: Sequence[Token]) -> NodeTree:
        """
        Compiles a token stream.

        Returns:
            Root node tree

        Raises:
            TemplateSyntaxError: On unknown tags, unbalanced blocks or malformed arguments
        """
        self._stack = []
        self._root = []

        for token in tokens:
            for builder in self._stack:
                builder.tokens.append(token)

            if token.type is TokenType.TEXT:
                self._append(TextNode(token.value))
            elif token.type is TokenType.OUTPUT:
                self._append(self._compile_output(token))
            else:
                self._compile_tag(token)

        if self._stack:
            builder = self._stack[-1]
            raise TemplateSyntaxError(
                f"'{builder.definition.name}' tag was never closed, expected '{builder.definition.end_name}'",
                builder.token.line, builder.token.column
            )

        logger.debug("Compiled %d tokens into %d root nodes", len(tokens), len(self._root))
        return tuple(self._root)

    def in_loop(self) -> bool:
        """Whether the current position is inside the body of a loop tag."""
        return any(
            builder.definition.is_loop and builder.branch_name == builder.definition.name
            for builder in self._stack
        )

    # Helpers

    def _append(self, node: Node) -> None:
        if self._stack:
            self._stack[-1].body.append(node)
        else:
            self._root.append(node)

    def _compile_output(self, token: Token) -> OutputNode:
        if not token.value:
            raise TemplateSyntaxError("Empty output", token.line, token.column)
        with _located(token):
            expression = parse_output_expression(token.value)
        return OutputNode(expression, line=token.line, column=token.column)

    def _compile_tag(self, token: Token) -> None:
        name = token.name
        if not name:
            raise TemplateSyntaxError("Malformed tag, missing tag name", token.line, token.column)

        top = self._stack[-1] if self._stack else None

        if top is not None and name == top.definition.end_name:
            self._stack.pop()
            # The end tag belongs to the enclosing blocks only
            top.tokens.pop()
            block = top.finish()
            with _located(token):
                node = top.definition.compile(block, self)
            self._append(node)
            return

        if top is not None and name in top.definition.branch_names:
            top.start_branch(token)
            return

        definition = self.environment.tags.get(name)
        if definition is None:
            self._raise_unknown(token)

        if definition.is_block:
            self._stack.append(BlockBuilder(definition=definition, token=token))
            return

        with _located(token):
            node = definition.compile(TagBlock(token=token, args=token.value), self)
        self._append(node)

    def _raise_unknown(self, token: Token) -> None:
        name = token.name
        for definition in self.environment.tags.values():
            if name == definition.end_name:
                raise TemplateSyntaxError(
                    f"Unexpected '{name}' without matching '{definition.name}'",
                    token.line, token.column
                )
            if name in definition.branch_names:
                raise TemplateSyntaxError(
                    f"Unexpected '{name}' outside of a '{definition.name}' block",
                    token.line, token.column
                )
        raise TemplateSyntaxError(f"Unknown tag '{name}'", token.line, token.column)


class _located:
    """Attaches the token position to syntax errors raised without one."""

    def __init__(self, token: Token):
        self.token = token

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None and issubclass(exc_type, TemplateSyntaxError) and exc.line is None:
            raise TemplateSyntaxError(exc.message, self.token.line, self.token.column) from exc
        return False


def compile_tokens(tokens: Sequence[Token], environment: Environment) -> NodeTree:
    """Convenience function for compiling a token stream."""
    return TemplateCompiler(environment).compile(tokens)


__all__ = ["BlockBuilder", "TemplateCompiler", "compile_tokens"]
