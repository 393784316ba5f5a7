"""
Public compile/render API.

    template = compile_template("Hello {{ name | capitalize }}!")
    template.render({"name": "world"})   # "Hello World!"

A compiled Template is immutable and can be rendered any number of times,
also concurrently; every render gets its own Context.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

from .compiler import TemplateCompiler
from .context import Context
from .environment import Environment
from .lexer import tokenize_template
from .nodes import NodeTree
from .renderer import Renderer

logger = logging.getLogger(__name__)


class Template:
    """Compiled template bound to the environment it was compiled in."""

    def __init__(self, tree: NodeTree, environment: Environment, source: str = ""):
        self.tree = tree
        self.environment = environment
        self.source = source

    def render(self, data: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> str:
        """
        Renders the template.

        Args:
            data: Template variables; plain Python data is converted to values
            **kwargs: Additional variables, overriding `data`

        Raises:
            RenderError: On a failing filter or tag
        """
        variables = dict(data or {})
        variables.update(kwargs)
        context = Context(variables, self.environment)
        return Renderer(self.environment).render(self.tree, context)

    def __repr__(self) -> str:
        return f"Template(nodes={len(self.tree)})"


def compile_template(source: str, environment: Optional[Environment] = None) -> Template:
    """
    Compiles template source.

    Raises:
        LexError: Unterminated delimiter when strict delimiters are enabled
        TemplateSyntaxError: Unknown tag, unbalanced blocks or malformed expressions
    """
    environment = environment or Environment.default()
    tokens = tokenize_template(source, strict=environment.config.strict_delimiters)
    tree = TemplateCompiler(environment).compile(tokens)
    logger.debug("Compiled template of %d characters", len(source))
    return Template(tree, environment, source)


def render(
    template: Union[Template, NodeTree],
    data: Optional[Mapping[str, Any]] = None,
    environment: Optional[Environment] = None,
) -> str:
    """
    Renders a compiled template (or a bare node tree) with the given data.

    Raises:
        RenderError: On a failing filter or tag
    """
    if isinstance(template, Template):
        if environment is None or environment is template.environment:
            return template.render(data)
        tree = template.tree
    else:
        tree = template

    environment = environment or Environment.default()
    context = Context(data, environment)
    return Renderer(environment).render(tree, context)


def render_template(source: str, data: Optional[Mapping[str, Any]] = None,
                    environment: Optional[Environment] = None) -> str:
    """Compiles and renders in one step."""
    return compile_template(source, environment).render(data)


__all__ = ["Template", "compile_template", "render", "render_template"]
