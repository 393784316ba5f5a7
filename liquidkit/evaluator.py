"""
Expression evaluator.

Walks an expression tree against a render context. Filters and operators
are looked up in the environment's registries; a missing entry or a
failing filter becomes a RenderError naming it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Optional, Tuple, cast

from .context import Context, Key
from .errors import FilterError, RenderError
from .expressions import (
    Binary,
    Expr,
    ExprAccessor,
    ExprType,
    FieldAccessor,
    FilterCall,
    Filtered,
    IndexAccessor,
    Literal,
    Path,
    RangeExpr,
)
from .values import RangeValue, Value, to_integer

if TYPE_CHECKING:
    from .environment import Environment

Location = Tuple[Optional[int], Optional[int]]


class ExpressionEvaluator:
    """
    Evaluates expressions to values.

    Stateless apart from the environment, so one instance serves every
    render of a renderer.
    """

    def __init__(self, environment: Environment):
        self.environment = environment

    def evaluate(self, expr: Expr, context: Context, line: Optional[int] = None, column: Optional[int] = None) -> Value:
        """
        Evaluates an expression.

        Args:
            expr: Expression tree
            context: Render context for variable lookups
            line, column: Source position used in error messages

        Raises:
            RenderError: Unknown filter or operator, or a failing filter
        """
        return self._evaluate(expr, context, (line, column))

    def _evaluate(self, expr: Expr, context: Context, location: Location) -> Value:
        expr_type = expr.get_type()

        if expr_type is ExprType.LITERAL:
            return cast(Literal, expr).value
        elif expr_type is ExprType.PATH:
            return self._evaluate_path(cast(Path, expr), context, location)
        elif expr_type is ExprType.RANGE:
            return self._evaluate_range(cast(RangeExpr, expr), context, location)
        elif expr_type is ExprType.FILTERED:
            return self._evaluate_filtered(cast(Filtered, expr), context, location)
        elif expr_type is ExprType.BINARY:
            return self._evaluate_binary(cast(Binary, expr), context, location)

        raise RenderError(f"Unknown expression type: {expr_type}", line=location[0], column=location[1])

    def _evaluate_path(self, expr: Path, context: Context, location: Location) -> Value:
        keys: List[Key] = []
        for accessor in expr.accessors:
            if isinstance(accessor, FieldAccessor):
                keys.append(accessor.name)
            elif isinstance(accessor, IndexAccessor):
                keys.append(accessor.index)
            elif isinstance(accessor, ExprAccessor):
                keys.append(self._evaluate(accessor.expr, context, location))
        return context.resolve(expr.root, keys)

    def _evaluate_range(self, expr: RangeExpr, context: Context, location: Location) -> Value:
        start = to_integer(self._evaluate(expr.start, context, location))
        stop = to_integer(self._evaluate(expr.stop, context, location))
        return RangeValue(start or 0, stop or 0)

    def _evaluate_filtered(self, expr: Filtered, context: Context, location: Location) -> Value:
        value = self._evaluate(expr.base, context, location)
        for call in expr.chain:
            value = self._apply_filter(call, value, context, location)
        return value

    def _apply_filter(self, call: FilterCall, value: Value, context: Context, location: Location) -> Value:
        line, column = location
        filter_ = self.environment.filters.get(call.name)
        if filter_ is None:
            raise RenderError(f"Unknown filter '{call.name}'", identifier=call.name, line=line, column=column)

        args = [self._evaluate(arg, context, location) for arg in call.args]
        options: Dict[str, Value] = {
            key: self._evaluate(arg, context, location) for key, arg in call.kwargs
        }
        try:
            return filter_.evaluate(value, args, options)
        except FilterError as e:
            raise RenderError(
                f"Filter '{call.name}' failed: {e}",
                identifier=call.name,
                line=line,
                column=column,
                cause=e,
            ) from e

    def _evaluate_binary(self, expr: Binary, context: Context, location: Location) -> Value:
        operator = self.environment.operators.get(expr.op)
        if operator is None:
            raise RenderError(
                f"Unknown operator '{expr.op}'", identifier=expr.op, line=location[0], column=location[1]
            )
        lhs = self._evaluate(expr.lhs, context, location)
        rhs = self._evaluate(expr.rhs, context, location)
        return operator.apply(lhs, rhs)


__all__ = ["ExpressionEvaluator"]
