"""
Iteration tags: for, tablerow, break, continue and cycle.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Optional, Tuple

from ..expressions import Expr, ExpressionParser
from ..nodes import BreakNode, ContinueNode, CycleNode, ForNode, TablerowNode
from .base import TagBlock, TagDefinition

if TYPE_CHECKING:
    from ..compiler import TemplateCompiler


def _parse_loop_header(
    block: TagBlock,
    parser: ExpressionParser,
    parameters: Tuple[str, ...],
) -> Tuple[str, Expr, Dict[str, Expr], bool]:
    """
    Parses `variable in iterable` followed by `name:value` parameters
    and an optional `reversed` flag, in any order.
    """
    if parser.at_end():
        raise block.error(f"Missing loop variable in '{block.name}' tag")
    variable = parser.identifier(f"Expected loop variable in '{block.name}' tag")
    if not parser.match_keyword("in"):
        raise block.error(f"Expected 'in' after '{variable}' in '{block.name}' tag")
    iterable = parser.primary()

    params: Dict[str, Expr] = {}
    reversed_flag = False
    while not parser.at_end():
        if parser.match_symbol(","):
            continue
        if parser.match_keyword("reversed"):
            reversed_flag = True
            continue
        name = parser.identifier(f"Unexpected token '{parser.peek().value}' in '{block.name}' tag")
        if name not in parameters:
            raise block.error(f"Unknown parameter '{name}' in '{block.name}' tag")
        if not parser.match_symbol(":"):
            raise block.error(f"Expected ':' after '{name}' in '{block.name}' tag")
        params[name] = parser.primary()

    return variable, iterable, params, reversed_flag


class ForTag(TagDefinition):
    """
    {% for item in collection limit:n offset:n reversed %}...{% else %}...{% endfor %}
    """

    name = "for"
    end_name = "endfor"
    branch_names = ("else",)
    is_loop = True

    def compile(self, block: TagBlock, compiler: TemplateCompiler) -> ForNode:
        variable, iterable, params, reversed_flag = _parse_loop_header(
            block, block.parser(), ("limit", "offset")
        )

        else_body = None
        if len(block.branches) > 1:
            else_branch = block.branches[1]
            if else_branch.args:
                raise block.error("'else' takes no arguments")
            else_body = else_branch.body

        return ForNode(
            variable=variable,
            iterable=iterable,
            body=block.body,
            else_body=else_body,
            limit=params.get("limit"),
            offset=params.get("offset"),
            reversed=reversed_flag,
            line=block.token.line,
            column=block.token.column,
        )


class TablerowTag(TagDefinition):
    """
    {% tablerow item in collection cols:n limit:n offset:n %}...{% endtablerow %}

    Wraps every item in `<td class="colN">` cells grouped into
    `<tr class="rowN">` rows of `cols` cells.
    """

    name = "tablerow"
    end_name = "endtablerow"
    is_loop = True

    def compile(self, block: TagBlock, compiler: TemplateCompiler) -> TablerowNode:
        variable, iterable, params, reversed_flag = _parse_loop_header(
            block, block.parser(), ("cols", "limit", "offset")
        )
        if reversed_flag:
            raise block.error("'reversed' is not supported by 'tablerow'")

        return TablerowNode(
            variable=variable,
            iterable=iterable,
            body=block.body,
            cols=params.get("cols"),
            limit=params.get("limit"),
            offset=params.get("offset"),
            line=block.token.line,
            column=block.token.column,
        )


class _LoopControlTag(TagDefinition):

    def _check(self, block: TagBlock, compiler: TemplateCompiler) -> None:
        if block.args:
            raise block.error(f"'{self.name}' takes no arguments")
        if not compiler.in_loop():
            raise block.error(f"'{self.name}' outside of a loop")


class BreakTag(_LoopControlTag):
    name = "break"

    def compile(self, block: TagBlock, compiler: TemplateCompiler) -> BreakNode:
        self._check(block, compiler)
        return BreakNode()


class ContinueTag(_LoopControlTag):
    name = "continue"

    def compile(self, block: TagBlock, compiler: TemplateCompiler) -> ContinueNode:
        self._check(block, compiler)
        return ContinueNode()


class CycleTag(TagDefinition):
    """
    {% cycle "a", "b", "c" %} or {% cycle "group": "a", "b" %}

    Emits the next value of the list on each evaluation within one render.
    """

    name = "cycle"

    def compile(self, block: TagBlock, compiler: TemplateCompiler) -> CycleNode:
        if not block.args:
            raise block.error("Missing values in 'cycle' tag")

        parser = block.parser()
        first = parser.primary()
        group: Optional[Expr] = None
        if parser.match_symbol(":"):
            group = first
            values = [parser.primary()]
        else:
            values = [first]
        while parser.match_symbol(","):
            values.append(parser.primary())
        parser.expect_end()

        return CycleNode(
            values=tuple(values),
            group=group,
            line=block.token.line,
            column=block.token.column,
        )


__all__ = ["ForTag", "TablerowTag", "BreakTag", "ContinueTag", "CycleTag"]
