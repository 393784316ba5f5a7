"""
Rendering tests: every built-in tag, loop metadata, scoping, error
wrapping and custom tags.
"""

import pytest
from conftest import render

from liquidkit import Environment, compile_template
from liquidkit.errors import FilterError, RenderError, TemplateSyntaxError
from liquidkit.expressions import parse_expression
from liquidkit.nodes import CustomNode
from liquidkit.tags import TagDefinition


class TestOutput:

    def test_text_and_variables(self):
        assert render("Hello {{ name }}!", {"name": "Ann"}) == "Hello Ann!"

    def test_missing_variable_renders_empty(self):
        assert render("[{{ nothing }}{{ nothing.deep[0] }}]") == "[]"

    def test_scalar_display(self):
        assert render("{{ a }} {{ b }} {{ c }} {{ 1.50 }}", {"a": True, "b": None, "c": 2.0}) == "true  2.0 1.5"

    def test_nested_access(self):
        data = {"user": {"tags": ["x", "y"]}, "key": "tags"}
        assert render("{{ user.tags[1] }} {{ user[key].first }} {{ user.tags.size }}", data) == "y x 2"

    def test_kwargs_override_data(self):
        template = compile_template("{{ a }}{{ b }}")
        assert template.render({"a": 1, "b": 1}, b=2) == "12"

    def test_raw_and_comment(self):
        assert render("{% raw %}{{ x }}{% endraw %}{% comment %}{{ y }}{% endcomment %}") == "{{ x }}"

    def test_whitespace_control(self):
        assert render("<{%- if true -%}\n  x  \n{%- endif -%}>") == "<x>"

    def test_echo(self):
        assert render("{% echo 'x' | upcase %}") == "X"


class TestConditionals:

    @pytest.mark.parametrize("value,expected", [
        (0, "yes"),
        ("", "yes"),
        ([], "yes"),
        (False, "no"),
        (None, "no"),
    ])
    def test_truthiness(self, value, expected):
        assert render("{% if v %}yes{% else %}no{% endif %}", {"v": value}) == expected

    def test_elsif_chain(self):
        source = "{% if n == 1 %}A{% elsif n == 2 %}B{% else %}C{% endif %}"
        assert [render(source, {"n": n}) for n in (1, 2, 3)] == ["A", "B", "C"]

    def test_unless(self):
        source = "{% unless a %}no{% elsif b %}b{% else %}yes{% endunless %}"
        assert render(source, {"a": False}) == "no"
        assert render(source, {"a": True, "b": True}) == "b"
        assert render(source, {"a": True}) == "yes"

    def test_logical_operators(self):
        source = "{% if a or b and c %}T{% else %}F{% endif %}"
        assert render(source, {"a": True, "b": False, "c": False}) == "F"
        assert render(source, {"a": True, "b": False, "c": True}) == "T"

    def test_comparisons(self):
        data = {"tags": ["a", "b"], "title": "Hello"}
        assert render("{% if tags contains 'b' %}1{% endif %}", data) == "1"
        assert render("{% if title contains 'ell' %}2{% endif %}", data) == "2"
        assert render("{% if 'a' < 1 %}x{% else %}3{% endif %}") == "3"
        assert render("{% if 1 == 1.0 %}4{% endif %}") == "4"
        assert render("{% if '1' != 1 %}5{% endif %}") == "5"

    def test_case_first_match_wins(self):
        source = "{% case x %}{% when 1, 2 %}low{% when 2 %}two{% when 'a' or 'b' %}alpha{% else %}other{% endcase %}"
        assert render(source, {"x": 2}) == "low"
        assert render(source, {"x": "b"}) == "alpha"
        assert render(source, {"x": 9}) == "other"


class TestForLoop:

    def test_range(self):
        assert render("{% for i in (1..3) %}{{ i }}{% endfor %}") == "123"

    def test_computed_range(self):
        assert render("{% for i in (1..n) %}{{ i }}{% endfor %}", {"n": "3"}) == "123"

    def test_modifier_order(self):
        source = "{% for i in (1..6) offset:1 limit:3 reversed %}{{ i }}{% endfor %}"
        assert render(source) == "432"

    def test_else_on_empty(self):
        assert render("{% for i in items %}x{% else %}empty{% endfor %}", {"items": []}) == "empty"
        assert render("{% for i in items limit:0 %}x{% else %}empty{% endfor %}", {"items": [1]}) == "empty"

    def test_forloop_metadata(self):
        source = "{% for i in (1..3) %}{{ forloop.index }}{{ forloop.first }}{{ forloop.rindex0 }};{% endfor %}"
        assert render(source) == "1true2;2false1;3false0;"

    def test_parentloop(self):
        source = (
            "{% for a in (1..2) %}{% for b in (1..2) %}"
            "{{ forloop.parentloop.index }}{{ b }} "
            "{% endfor %}{% endfor %}"
        )
        assert render(source) == "11 12 21 22 "

    def test_dictionary_pairs(self):
        source = "{% for pair in d %}{{ pair[0] }}={{ pair[1] }};{% endfor %}"
        assert render(source, {"d": {"a": 1, "b": 2}}) == "a=1;b=2;"

    def test_break_and_continue(self):
        assert render("{% for i in (1..5) %}{% if i == 3 %}{% break %}{% endif %}{{ i }}{% endfor %}") == "12"
        assert render("{% for i in (1..5) %}{% if i == 3 %}{% continue %}{% endif %}{{ i }}{% endfor %}") == "1245"

    def test_break_only_leaves_inner_loop(self):
        source = "{% for a in (1..2) %}{% for b in (1..3) %}{% break %}{% endfor %}{{ a }}{% endfor %}"
        assert render(source) == "12"

    def test_loop_variable_is_scoped(self):
        assert render("{% for i in (1..3) %}{% endfor %}[{{ i }}]") == "[]"

    def test_assign_in_loop_is_global(self):
        assert render("{% for i in (1..3) %}{% assign last = i %}{% endfor %}{{ last }}") == "3"


class TestTablerow:

    def test_rows_and_cells(self):
        result = render("{% tablerow i in (1..3) cols:2 %}{{ i }}{% endtablerow %}")
        assert result == (
            '<tr class="row1"><td class="col1">1</td><td class="col2">2</td></tr>'
            '<tr class="row2"><td class="col1">3</td></tr>'
        )

    def test_single_row_without_cols(self):
        result = render("{% tablerow i in items %}{{ tablerowloop.col }}{% endtablerow %}", {"items": ["a", "b"]})
        assert result == '<tr class="row1"><td class="col1">1</td><td class="col2">2</td></tr>'

    def test_empty_collection(self):
        assert render("{% tablerow i in items %}x{% endtablerow %}", {"items": []}) == ""


class TestVariables:

    def test_assign_with_filters(self):
        assert render("{% assign x = 'abc' | upcase %}{{ x }}") == "ABC"

    def test_capture(self):
        source = "{% capture greeting %}Hello {{ name }}{% endcapture %}{{ greeting }}"
        assert render(source, {"name": "World"}) == "Hello World"

    def test_counters(self):
        assert render("{% increment c %}{% increment c %}{{ c }}") == "2"
        assert render("{% decrement d %}{% decrement d %}{{ d }}") == "-2"

    def test_cycle(self):
        assert render("{% for i in (1..4) %}{% cycle 'a', 'b' %}{% endfor %}") == "abab"

    def test_cycle_groups_are_separate(self):
        source = "{% cycle 'g1': 'a', 'b' %}{% cycle 'g2': 'a', 'b' %}{% cycle 'g1': 'a', 'b' %}"
        assert render(source) == "aab"

    def test_renders_are_independent(self):
        template = compile_template("{% increment c %}{{ c }}{% cycle 'x', 'y' %}")
        assert template.render() == "1x"
        assert template.render() == "1x"


class TestRenderErrors:

    def test_unknown_filter(self):
        with pytest.raises(RenderError) as info:
            render("{{ 'a' | nope }}")

        assert info.value.identifier == "nope"
        assert "Unknown filter 'nope'" in str(info.value)

    def test_failing_filter_is_wrapped(self):
        with pytest.raises(RenderError) as info:
            render("x\n {{ 10 | divided_by: 0 }}")

        assert info.value.identifier == "divided_by"
        assert isinstance(info.value.cause, FilterError)
        assert (info.value.line, info.value.column) == (2, 2)


class ShoutTag(TagDefinition):
    """{% shout suffix %}...{% endshout %}: upper-cases its body."""

    name = "shout"
    end_name = "endshout"

    def compile(self, block, compiler):
        return CustomNode(
            tag_name=self.name,
            payload=parse_expression(block.args) if block.args else None,
            children=block.body,
            line=block.token.line,
            column=block.token.column,
        )

    def render(self, node, renderer, context, buffer):
        inner = []
        renderer.render_nodes(node.children, context, inner)
        buffer.append("".join(inner).upper())
        if node.payload is not None:
            buffer.append(renderer.evaluate(node.payload, context, node).to_display_string())


class TestCustomTags:

    def setup_method(self):
        self.env = Environment(tags=[ShoutTag()])

    def test_custom_block_tag(self):
        assert render("{% shout '!' %}hi {{ name }}{% endshout %}", {"name": "ann"}, self.env) == "HI ANN!"

    def test_custom_tag_unknown_in_default_environment(self):
        with pytest.raises(TemplateSyntaxError, match="Unknown tag 'shout'"):
            render("{% shout %}x{% endshout %}")

    def test_failing_filter_inside_custom_tag_keeps_its_identifier(self):
        with pytest.raises(RenderError) as info:
            render("{% shout 1 | divided_by: 0 %}x{% endshout %}", environment=self.env)

        assert info.value.identifier == "divided_by"

    def test_break_inside_custom_tag(self):
        source = "{% for i in (1..3) %}{% shout %}{{ i }}{% if i == 2 %}{% break %}{% endif %}{% endshout %}{% endfor %}"
        assert render(source, environment=self.env) == "1"


class StampTag(TagDefinition):
    """{% stamp %}: compiles but leaves rendering to the default hook."""

    name = "stamp"

    def compile(self, block, compiler):
        return CustomNode(tag_name=self.name, line=block.token.line, column=block.token.column)


class BrokenTag(TagDefinition):
    name = "broken"

    def compile(self, block, compiler):
        return CustomNode(tag_name=self.name, line=block.token.line, column=block.token.column)

    def render(self, node, renderer, context, buffer):
        raise ValueError("no luck")


class TestCustomTagFailures:

    def setup_method(self):
        self.env = Environment(tags=[StampTag(), BrokenTag()])

    def test_missing_render_hook_is_wrapped(self):
        with pytest.raises(RenderError) as info:
            compile_template("a\n{% stamp %}", self.env).render()

        assert info.value.identifier == "stamp"
        assert isinstance(info.value.cause, NotImplementedError)
        assert info.value.line == 2

    def test_tag_exception_is_wrapped(self):
        with pytest.raises(RenderError, match="no luck") as info:
            compile_template("{% broken %}", self.env).render()

        assert info.value.identifier == "broken"
        assert isinstance(info.value.cause, ValueError)
