"""
liquidkit: a Liquid template engine.

Compiles template text into an immutable node tree and renders it against
plain Python data:

    >>> from liquidkit import render_template
    >>> render_template("{% for i in (1..3) %}{{ i }}{% endfor %}")
    '123'
"""

from __future__ import annotations

from .config import EngineConfig, load_config
from .context import Context
from .environment import Environment
from .errors import (
    ConfigError,
    FilterError,
    LexError,
    LiquidError,
    RenderError,
    TemplateSyntaxError,
)
from .filters import Filter, FunctionFilter
from .operators import FunctionOperator, Operator
from .tags import BlockBranch, TagBlock, TagDefinition
from .template import Template, compile_template, render, render_template
from .values import (
    ArrayValue,
    BoolValue,
    DecimalValue,
    DictionaryValue,
    IntegerValue,
    NilValue,
    RangeValue,
    StringValue,
    Value,
    to_value,
)

__all__ = [
    "compile_template",
    "render",
    "render_template",
    "Template",
    "Environment",
    "Context",
    "EngineConfig",
    "load_config",
    "Filter",
    "FunctionFilter",
    "Operator",
    "FunctionOperator",
    "TagDefinition",
    "TagBlock",
    "BlockBranch",
    "Value",
    "NilValue",
    "BoolValue",
    "StringValue",
    "IntegerValue",
    "DecimalValue",
    "ArrayValue",
    "DictionaryValue",
    "RangeValue",
    "to_value",
    "LiquidError",
    "LexError",
    "TemplateSyntaxError",
    "FilterError",
    "RenderError",
    "ConfigError",
]
