"""
Conditional tags: if, unless and case.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Tuple

from ..expressions import Expr, parse_expression
from ..nodes import CaseNode, ConditionalBranch, IfNode, NodeTree, WhenClause
from .base import BlockBranch, TagBlock, TagDefinition

if TYPE_CHECKING:
    from ..compiler import TemplateCompiler


def _parse_condition(block: TagBlock, branch: BlockBranch) -> Expr:
    if not branch.args:
        raise block.error(f"Missing condition in '{branch.name}' tag")
    return parse_expression(branch.args)


def _else_body(block: TagBlock) -> Optional[NodeTree]:
    last = block.branches[-1]
    if last.name == "else":
        if last.args:
            raise block.error("'else' takes no arguments")
        return last.body
    return None


class IfTag(TagDefinition):
    """
    {% if condition %}...{% elsif condition %}...{% else %}...{% endif %}

    The first branch whose condition is truthy renders; otherwise the else
    body, if any.
    """

    name = "if"
    end_name = "endif"
    branch_names = ("elsif", "else")
    negate_first = False

    def compile(self, block: TagBlock, compiler: TemplateCompiler) -> IfNode:
        branches: List[ConditionalBranch] = []
        for index, branch in enumerate(block.branches):
            if branch.name == "else":
                continue
            branches.append(ConditionalBranch(
                condition=_parse_condition(block, branch),
                body=branch.body,
                negate=self.negate_first and index == 0,
            ))

        return IfNode(
            branches=tuple(branches),
            else_body=_else_body(block),
            line=block.token.line,
            column=block.token.column,
        )


class UnlessTag(IfTag):
    """{% unless condition %}: renders the body when the condition is falsy."""

    name = "unless"
    end_name = "endunless"
    negate_first = True


class CaseTag(TagDefinition):
    """
    {% case subject %}{% when a, b %}...{% when c or d %}...{% else %}...{% endcase %}

    Commas and `or` both separate alternatives of one `when`. The first
    matching `when` renders; the else body renders only when none matched.
    Anything between `case` and the first `when` is discarded.
    """

    name = "case"
    end_name = "endcase"
    branch_names = ("when", "else")

    def compile(self, block: TagBlock, compiler: TemplateCompiler) -> CaseNode:
        if not block.args:
            raise block.error("Missing subject in 'case' tag")
        subject = parse_expression(block.args)

        whens = []
        for branch in block.branches[1:]:
            if branch.name == "when":
                whens.append(WhenClause(values=self._parse_values(block, branch), body=branch.body))

        return CaseNode(
            subject=subject,
            whens=tuple(whens),
            else_body=_else_body(block),
            line=block.token.line,
            column=block.token.column,
        )

    def _parse_values(self, block: TagBlock, branch: BlockBranch) -> Tuple[Expr, ...]:
        if not branch.args:
            raise block.error("Missing value in 'when' tag")

        parser = block.parser(branch.args)
        values = [parser.filtered()]
        while parser.match_symbol(",") or parser.match_keyword("or"):
            values.append(parser.filtered())
        parser.expect_end()
        return tuple(values)


__all__ = ["IfTag", "UnlessTag", "CaseTag"]
