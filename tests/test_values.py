"""
Tests for the runtime value model.
"""

from datetime import date
from decimal import Decimal

import pytest

from liquidkit import render_template
from liquidkit.values import (
    EMPTY_STRING,
    FALSE,
    NIL,
    TRUE,
    ArrayValue,
    BoolValue,
    DecimalValue,
    DictionaryValue,
    IntegerValue,
    RangeValue,
    StringValue,
    format_decimal,
    iterate,
    number_value,
    to_integer,
    to_value,
)


class TestTruthiness:

    def test_only_nil_and_false_are_falsy(self):
        assert not NIL.is_truthy()
        assert not FALSE.is_truthy()

    @pytest.mark.parametrize("value", [
        TRUE,
        IntegerValue(0),
        DecimalValue(Decimal("0.0")),
        EMPTY_STRING,
        ArrayValue(()),
        DictionaryValue({}),
        RangeValue(1, 0),
    ])
    def test_everything_else_is_truthy(self, value):
        assert value.is_truthy()


class TestDisplayString:

    def test_scalars(self):
        assert NIL.to_display_string() == ""
        assert TRUE.to_display_string() == "true"
        assert FALSE.to_display_string() == "false"
        assert IntegerValue(-42).to_display_string() == "-42"
        assert StringValue("abc").to_display_string() == "abc"

    @pytest.mark.parametrize("number,expected", [
        ("2", "2.0"),
        ("2.50", "2.5"),
        ("1.5", "1.5"),
        ("0.000001", "0.000001"),
        ("1E+3", "1000.0"),
        ("-0.10", "-0.1"),
    ])
    def test_decimal_is_fixed_point(self, number, expected):
        assert format_decimal(Decimal(number)) == expected
        assert DecimalValue(Decimal(number)).to_display_string() == expected

    def test_containers(self):
        array = ArrayValue((IntegerValue(1), StringValue("a"), ArrayValue((TRUE,))))
        assert array.to_display_string() == "[1, a, [true]]"
        assert DictionaryValue({"a": IntegerValue(1)}).to_display_string() == "{}"
        assert RangeValue(1, 3).to_display_string() == "1..3"


class TestNumbers:

    def test_numeric_strings_convert(self):
        assert StringValue(" 12 ").to_number() == Decimal(12)
        assert StringValue("-1.5").to_number() == Decimal("-1.5")
        assert StringValue("2e3").to_number() == Decimal(2000)

    def test_non_numeric_values_have_no_number(self):
        assert StringValue("12abc").to_number() is None
        assert StringValue("").to_number() is None
        assert NIL.to_number() is None
        assert TRUE.to_number() is None
        assert ArrayValue(()).to_number() is None

    def test_number_value_keeps_integers(self):
        assert number_value(Decimal(3), integral=True) == IntegerValue(3)
        assert isinstance(number_value(Decimal(3), integral=True), IntegerValue)
        assert isinstance(number_value(Decimal("3.5"), integral=True), DecimalValue)
        assert isinstance(number_value(Decimal(3), integral=False), DecimalValue)

    def test_to_integer_truncates(self):
        assert to_integer(DecimalValue(Decimal("3.9"))) == 3
        assert to_integer(StringValue("7")) == 7
        assert to_integer(StringValue("x")) is None


class TestEqualityAndOrder:

    def test_integer_equals_decimal(self):
        assert IntegerValue(1) == DecimalValue(Decimal("1.0"))
        assert hash(IntegerValue(1)) == hash(DecimalValue(Decimal("1.0")))

    def test_string_never_equals_number(self):
        assert StringValue("1") != IntegerValue(1)
        assert not StringValue("1").equals(IntegerValue(1))

    def test_structural_equality(self):
        assert ArrayValue((IntegerValue(1), StringValue("a"))) == ArrayValue((IntegerValue(1), StringValue("a")))
        assert DictionaryValue({"a": TRUE}) == DictionaryValue({"a": TRUE})
        assert DictionaryValue({"a": TRUE}) != DictionaryValue({"a": FALSE})
        assert RangeValue(1, 3) == RangeValue(1, 3)

    def test_cross_kind_order(self):
        ordered = [
            NIL,
            FALSE,
            TRUE,
            IntegerValue(-5),
            DecimalValue(Decimal("2.5")),
            IntegerValue(3),
            StringValue("a"),
            StringValue("b"),
            ArrayValue(()),
            DictionaryValue({}),
            RangeValue(0, 1),
        ]
        shuffled = list(reversed(ordered))
        assert sorted(shuffled) == ordered

    def test_compare_returns_sign(self):
        assert IntegerValue(1).compare(IntegerValue(2)) == -1
        assert IntegerValue(2).compare(DecimalValue(Decimal("2.0"))) == 0
        assert StringValue("b").compare(StringValue("a")) == 1

    def test_infinity_orders_like_a_number(self):
        inf = to_value(float("inf"))
        assert inf.compare(inf) == 0
        assert inf.compare(IntegerValue(10 ** 30)) == 1
        assert to_value(float("-inf")).compare(inf) == -1

    def test_nan_sorts_after_other_numbers(self):
        nan = to_value(float("nan"))
        assert nan.compare(IntegerValue(1)) == 1
        assert IntegerValue(1).compare(nan) == -1
        assert nan.compare(to_value(float("inf"))) == 1
        assert nan.compare(nan) == 0
        assert nan.compare(StringValue("a")) == -1

    def test_non_finite_numbers_in_conditions(self):
        source = "{% if x > 1 %}big{% else %}small{% endif %}"
        assert render_template(source, {"x": float("nan")}) == "big"
        assert render_template(source, {"x": float("-inf")}) == "small"


class TestContainers:

    def test_array_at(self):
        array = ArrayValue((IntegerValue(1), IntegerValue(2)))
        assert array.at(1) == IntegerValue(2)
        assert array.at(2) is NIL
        assert array.at(-1) is NIL

    def test_range_is_inclusive(self):
        values = list(RangeValue(1, 3))
        assert values == [IntegerValue(1), IntegerValue(2), IntegerValue(3)]
        assert len(RangeValue(3, 1)) == 0

    def test_iterate(self):
        assert iterate(NIL) == ()
        assert iterate(StringValue("ab")) == (StringValue("ab"),)
        pairs = iterate(DictionaryValue({"k": IntegerValue(1)}))
        assert pairs == (ArrayValue((StringValue("k"), IntegerValue(1))),)


class TestHostConversion:

    def test_to_value_nested(self):
        value = to_value({"a": [1, 2.5, None, True], "b": {"c": "x"}})
        assert isinstance(value, DictionaryValue)
        items = value.get("a")
        assert items == ArrayValue((IntegerValue(1), DecimalValue(Decimal("2.5")), NIL, TRUE))
        assert isinstance(items.items[3], BoolValue)
        assert value.get("b").get("c") == StringValue("x")

    def test_to_value_range_and_date(self):
        assert to_value(range(1, 4)) == RangeValue(1, 3)
        assert to_value(date(2024, 1, 15)) == StringValue("2024-01-15")

    def test_to_liquid_hook(self):
        class Product:
            def to_liquid(self):
                return {"title": "Hat"}

        assert to_value(Product()).get("title") == StringValue("Hat")

    def test_round_trip_to_python(self):
        data = {"a": [1, "x", None], "b": True}
        assert to_value(data).to_python() == data
