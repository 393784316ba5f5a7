"""
Error taxonomy for the template engine.

All expected errors that should be displayed to the user
as clean messages (without stack traces) must inherit from LiquidError.

Programming errors and bugs should NOT inherit from LiquidError;
they will propagate with full tracebacks.
"""

from __future__ import annotations

from typing import Optional


class LiquidError(Exception):
    """
    Base class for all user-facing errors of the engine.

    These errors indicate problems that the template author can fix:
    malformed templates, unknown tags or filters, bad filter arguments.
    """
    pass


class _PositionedError(LiquidError):
    """Error that may point at a place in the template source."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        if line is not None and column is not None:
            super().__init__(f"{message} at {line}:{column}")
        else:
            super().__init__(message)
        self.message = message
        self.line = line
        self.column = column


class LexError(_PositionedError):
    """Unterminated delimiter or block (strict lexing only)."""


class TemplateSyntaxError(_PositionedError):
    """
    Structural template error.

    Unknown tag, mismatched or missing end tag, branch tag outside its
    parent, malformed expression. Aborts compilation entirely.
    """


class FilterError(LiquidError):
    """A filter rejected its input or arguments."""


class RenderError(_PositionedError):
    """
    Failure while rendering a compiled template.

    Wraps a FilterError or a tag evaluation failure together with
    the identifier of the failing filter/tag.
    """

    def __init__(
        self,
        message: str,
        identifier: str = "",
        line: Optional[int] = None,
        column: Optional[int] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message, line, column)
        self.identifier = identifier
        self.cause = cause


class ConfigError(LiquidError):
    """Invalid engine configuration file."""


__all__ = [
    "LiquidError",
    "LexError",
    "TemplateSyntaxError",
    "FilterError",
    "RenderError",
    "ConfigError",
]
