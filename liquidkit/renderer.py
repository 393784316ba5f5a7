"""
Tree-walking renderer.

Renders a compiled node tree against a context into a string. Each node
type has a processor; output is accumulated in a list buffer and joined
once at the end.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Sequence, Type

from .context import Context
from .errors import RenderError
from .evaluator import ExpressionEvaluator
from .expressions import Expr
from .nodes import (
    AssignNode,
    BreakNode,
    CaptureNode,
    CaseNode,
    ContinueNode,
    CustomNode,
    CycleNode,
    DecrementNode,
    EchoNode,
    ForNode,
    IfNode,
    IncrementNode,
    Node,
    NodeTree,
    OutputNode,
    TablerowNode,
    TextNode,
)
from .values import (
    NIL,
    DictionaryValue,
    IntegerValue,
    StringValue,
    Value,
    bool_value,
    iterate,
    to_integer,
)

if TYPE_CHECKING:
    from .environment import Environment

logger = logging.getLogger(__name__)

Buffer = List[str]
NodeProcessor = Callable[[Node, Context, Buffer], None]


class _BreakLoop(Exception):
    """Raised by {% break %}, caught by the innermost loop."""


class _ContinueLoop(Exception):
    """Raised by {% continue %}, caught by the innermost loop."""


class Renderer:
    """
    Renders node trees.

    The node tree is never modified; all per-render state lives in the
    context, so one renderer can serve any number of renders.
    """

    def __init__(self, environment: Environment):
        self.environment = environment
        self.evaluator = ExpressionEvaluator(environment)

        self._processors: Dict[Type[Node], NodeProcessor] = {
            TextNode: self._render_text,
            OutputNode: self._render_output,
            EchoNode: self._render_output,
            IfNode: self._render_if,
            CaseNode: self._render_case,
            ForNode: self._render_for,
            TablerowNode: self._render_tablerow,
            BreakNode: self._render_break,
            ContinueNode: self._render_continue,
            CycleNode: self._render_cycle,
            CaptureNode: self._render_capture,
            AssignNode: self._render_assign,
            IncrementNode: self._render_increment,
            DecrementNode: self._render_decrement,
            CustomNode: self._render_custom,
        }

    def render(self, tree: NodeTree, context: Context) -> str:
        """
        Renders a tree.

        Raises:
            RenderError: On a failing filter or tag
        """
        buffer: Buffer = []
        self.render_nodes(tree, context, buffer)
        logger.debug("Rendered %d root nodes into %d chunks", len(tree), len(buffer))
        return "".join(buffer)

    def render_nodes(self, nodes: Sequence[Node], context: Context, buffer: Buffer) -> None:
        """Renders a body into the buffer; also used by custom tags for their children."""
        for node in nodes:
            processor = self._processors.get(type(node))
            if processor is None:
                raise RenderError(f"No renderer for node type {type(node).__name__}")
            processor(node, context, buffer)

    def evaluate(self, expr: Expr, context: Context, node: Optional[Node] = None) -> Value:
        """Evaluates an expression, reporting errors at the node's position."""
        line = getattr(node, "line", None) or None
        column = getattr(node, "column", None) or None
        return self.evaluator.evaluate(expr, context, line, column)

    # Node processors

    def _render_text(self, node: TextNode, context: Context, buffer: Buffer) -> None:
        buffer.append(node.text)

    def _render_output(self, node: OutputNode, context: Context, buffer: Buffer) -> None:
        buffer.append(self.evaluate(node.expression, context, node).to_display_string())

    def _render_if(self, node: IfNode, context: Context, buffer: Buffer) -> None:
        for branch in node.branches:
            result = self.evaluate(branch.condition, context, node).is_truthy()
            if branch.negate:
                result = not result
            if result:
                self.render_nodes(branch.body, context, buffer)
                return

        if node.else_body is not None:
            self.render_nodes(node.else_body, context, buffer)

    def _render_case(self, node: CaseNode, context: Context, buffer: Buffer) -> None:
        subject = self.evaluate(node.subject, context, node)
        for when in node.whens:
            if any(subject.equals(self.evaluate(value, context, node)) for value in when.values):
                self.render_nodes(when.body, context, buffer)
                return

        if node.else_body is not None:
            self.render_nodes(node.else_body, context, buffer)

    def _slice_items(self, node, context: Context) -> List[Value]:
        """Materializes a loop collection and applies offset, then limit."""
        items = list(iterate(self.evaluate(node.iterable, context, node)))

        if node.offset is not None:
            offset = to_integer(self.evaluate(node.offset, context, node)) or 0
            if offset > 0:
                items = items[offset:]
        if node.limit is not None:
            limit = to_integer(self.evaluate(node.limit, context, node))
            if limit is not None:
                items = items[:max(limit, 0)]
        return items

    def _render_for(self, node: ForNode, context: Context, buffer: Buffer) -> None:
        items = self._slice_items(node, context)
        if node.reversed:
            items.reverse()

        if not items:
            if node.else_body is not None:
                self.render_nodes(node.else_body, context, buffer)
            return

        parent = context.lookup("forloop")
        length = len(items)
        with context.scope() as frame:
            for index, item in enumerate(items):
                frame[node.variable] = item
                frame["forloop"] = _forloop(index, length, parent)
                try:
                    self.render_nodes(node.body, context, buffer)
                except _ContinueLoop:
                    continue
                except _BreakLoop:
                    break

    def _render_tablerow(self, node: TablerowNode, context: Context, buffer: Buffer) -> None:
        items = self._slice_items(node, context)
        length = len(items)
        if not length:
            return

        cols = to_integer(self.evaluate(node.cols, context, node)) if node.cols is not None else None
        if cols is None or cols <= 0:
            cols = length

        with context.scope() as frame:
            for index, item in enumerate(items):
                row, col0 = divmod(index, cols)
                if col0 == 0:
                    buffer.append(f'<tr class="row{row + 1}">')
                buffer.append(f'<td class="col{col0 + 1}">')

                frame[node.variable] = item
                frame["tablerowloop"] = _tablerowloop(index, length, row, col0, cols)
                stop = False
                try:
                    self.render_nodes(node.body, context, buffer)
                except _ContinueLoop:
                    pass
                except _BreakLoop:
                    stop = True

                buffer.append("</td>")
                if stop or col0 == cols - 1 or index == length - 1:
                    buffer.append("</tr>")
                if stop:
                    break

    def _render_break(self, node: BreakNode, context: Context, buffer: Buffer) -> None:
        raise _BreakLoop()

    def _render_continue(self, node: ContinueNode, context: Context, buffer: Buffer) -> None:
        raise _ContinueLoop()

    def _render_cycle(self, node: CycleNode, context: Context, buffer: Buffer) -> None:
        if node.group is not None:
            key = self.evaluate(node.group, context, node).to_display_string()
        else:
            key = ", ".join(str(value) for value in node.values)
        index = context.cycle(key, len(node.values))
        buffer.append(self.evaluate(node.values[index], context, node).to_display_string())

    def _render_capture(self, node: CaptureNode, context: Context, buffer: Buffer) -> None:
        captured: Buffer = []
        self.render_nodes(node.body, context, captured)
        context.assign(node.name, StringValue("".join(captured)))

    def _render_assign(self, node: AssignNode, context: Context, buffer: Buffer) -> None:
        context.assign(node.name, self.evaluate(node.expression, context, node))

    def _render_increment(self, node: IncrementNode, context: Context, buffer: Buffer) -> None:
        context.increment(node.name)

    def _render_decrement(self, node: DecrementNode, context: Context, buffer: Buffer) -> None:
        context.decrement(node.name)

    def _render_custom(self, node: CustomNode, context: Context, buffer: Buffer) -> None:
        definition = self.environment.tags.get(node.tag_name)
        if definition is None:
            raise RenderError(
                f"Unknown tag '{node.tag_name}'", identifier=node.tag_name, line=node.line or None,
                column=node.column or None
            )
        try:
            definition.render(node, self, context, buffer)
        except (_BreakLoop, _ContinueLoop, RenderError):
            raise
        except Exception as e:
            raise RenderError(
                f"Tag '{node.tag_name}' failed: {e}",
                identifier=node.tag_name,
                line=node.line or None,
                column=node.column or None,
                cause=e,
            ) from e


def _forloop(index: int, length: int, parent: Value) -> DictionaryValue:
    return DictionaryValue({
        "index": IntegerValue(index + 1),
        "index0": IntegerValue(index),
        "rindex": IntegerValue(length - index),
        "rindex0": IntegerValue(length - index - 1),
        "first": bool_value(index == 0),
        "last": bool_value(index == length - 1),
        "length": IntegerValue(length),
        "parentloop": parent if isinstance(parent, DictionaryValue) else NIL,
    })


def _tablerowloop(index: int, length: int, row: int, col0: int, cols: int) -> DictionaryValue:
    return DictionaryValue({
        "index": IntegerValue(index + 1),
        "index0": IntegerValue(index),
        "rindex": IntegerValue(length - index),
        "rindex0": IntegerValue(length - index - 1),
        "first": bool_value(index == 0),
        "last": bool_value(index == length - 1),
        "length": IntegerValue(length),
        "row": IntegerValue(row + 1),
        "col": IntegerValue(col0 + 1),
        "col0": IntegerValue(col0),
        "col_first": bool_value(col0 == 0),
        "col_last": bool_value(col0 == cols - 1 or index == length - 1),
    })


__all__ = ["Renderer"]
