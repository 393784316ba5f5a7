"""
Environment registries: built-ins, extension and overriding.
"""

import logging

import pytest

from liquidkit import (
    EngineConfig,
    Environment,
    Filter,
    FunctionOperator,
    RenderError,
    Template,
    render_template,
)
from liquidkit.values import BoolValue, StringValue, bool_value


class TestBuiltins:

    def test_default_is_shared(self):
        assert Environment.default() is Environment.default()

    def test_registries_are_populated(self, env):
        for name in ("upcase", "plus", "join", "escape", "default", "date"):
            assert name in env.filters
        for name in ("if", "unless", "case", "for", "tablerow", "cycle", "assign", "capture", "echo"):
            assert name in env.tags
        for name in ("==", "!=", "<>", "<", ">", "<=", ">=", "contains", "and", "or"):
            assert name in env.operators

    def test_registries_are_read_only(self, env):
        with pytest.raises(TypeError):
            env.filters["upcase"] = None


class TestExtension:

    def test_function_filters_from_mapping(self):
        env = Environment(filters={"shout": lambda value: value.to_display_string().upper() + "!"})
        assert render_template("{{ 'hi' | shout }}", environment=env) == "HI!"

    def test_filter_instances(self):
        class Wrap(Filter):
            identifier = "wrap"

            def evaluate(self, value, args, options=None):
                left = args[0].to_display_string() if args else "["
                return StringValue(left + value.to_display_string() + "]")

        env = Environment(filters=[Wrap()])
        assert render_template("{{ 'x' | wrap }}{{ 'y' | wrap: '<' }}", environment=env) == "[x]<y]"

    def test_filter_options_reach_keyword_parameters(self):
        def pad(value, width, *, fill=None):
            char = fill.to_display_string() if fill is not None else " "
            return value.to_display_string().rjust(int(width.value), char)

        env = Environment(filters={"pad": pad})
        assert render_template("{{ 'a' | pad: 3, fill: '.' }}", environment=env) == "..a"

    def test_custom_operator(self):
        def starts_with(lhs, rhs):
            return bool_value(lhs.to_display_string().startswith(rhs.to_display_string()))

        env = Environment(operators=[FunctionOperator("startswith", starts_with)])
        assert "startswith" in env.operators
        assert isinstance(env.operators["startswith"].apply(StringValue("abc"), StringValue("ab")), BoolValue)

    def test_override_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="liquidkit.environment"):
            env = Environment(filters={"upcase": lambda value: "overridden"})

        assert "Overriding built-in filter 'upcase'" in caplog.text
        assert render_template("{{ 'a' | upcase }}", environment=env) == "overridden"

    def test_extend_keeps_existing_entries(self):
        base = Environment(filters={"one": lambda value: "1"})
        extended = base.extend(filters={"two": lambda value: "2"})

        assert "one" in extended.filters and "two" in extended.filters
        assert "two" not in base.filters

    def test_custom_filters_are_not_global(self):
        Environment(filters={"local_only": lambda value: value})
        with pytest.raises(RenderError, match="local_only"):
            render_template("{{ 1 | local_only }}")

    def test_compile_binds_environment(self):
        env = Environment(config=EngineConfig(date_format="%Y"))
        template = env.compile("{{ '2024-01-15' | date }}")

        assert isinstance(template, Template)
        assert template.environment is env
        assert template.render() == "2024"
