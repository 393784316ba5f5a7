"""
default and date filters.
"""

from datetime import datetime, timezone

import pytest

from liquidkit import EngineConfig, Environment, render_template
from liquidkit.filters.misc import parse_date
from liquidkit.values import IntegerValue, StringValue


class TestDefault:

    @pytest.mark.parametrize("source,expected", [
        ("{{ nothing | default: 'x' }}", "x"),
        ("{{ '' | default: 'x' }}", "x"),
        ("{{ false | default: 'x' }}", "x"),
        ("{{ empty_list | default: 'x' }}", "x"),
        ("{{ 0 | default: 'x' }}", "0"),
        ("{{ 'set' | default: 'x' }}", "set"),
        ("{{ nothing | default }}", ""),
    ])
    def test_default(self, source, expected):
        assert render_template(source, {"empty_list": []}) == expected

    def test_allow_false(self):
        assert render_template("{{ false | default: 'x', allow_false: true }}") == "false"
        assert render_template("{{ nothing | default: 'x', allow_false: true }}") == "x"


class TestDate:

    @pytest.mark.parametrize("value,fmt,expected", [
        ("2024-01-15", "%Y/%m/%d", "2024/01/15"),
        ("2024-03-05T10:20:30Z", "%H:%M", "10:20"),
        ("2024-03-05 10:20:30", "%d.%m.%Y", "05.03.2024"),
        ("March 5, 2024", "%Y-%m-%d", "2024-03-05"),
        (0, "%Y", "1970"),
        ("86400", "%d", "02"),
    ])
    def test_formats(self, value, fmt, expected):
        assert render_template("{{ v | date: f }}", {"v": value, "f": fmt}) == expected

    def test_unparseable_input_is_returned(self):
        assert render_template("{{ 'not a date' | date: '%Y' }}") == "not a date"

    def test_without_format_returns_input(self):
        assert render_template("{{ '2024-01-15' | date }}") == "2024-01-15"

    def test_configured_default_format(self):
        env = Environment(config=EngineConfig(date_format="%d.%m.%Y"))
        assert render_template("{{ '2024-01-15' | date }}", environment=env) == "15.01.2024"
        assert render_template("{{ '2024-01-15' | date: '%Y' }}", environment=env) == "2024"

    def test_now(self):
        year = str(datetime.now(timezone.utc).year)
        assert render_template("{{ 'now' | date: '%Y' }}") == year

    def test_now_and_timestamps_share_a_timezone(self):
        assert render_template("{{ 'now' | date: '%z' }}") == "+0000"
        assert render_template("{{ 0 | date: '%z' }}") == "+0000"

    @pytest.mark.parametrize("value", [99999999999999999, "99999999999999999", "1e400"])
    def test_out_of_range_timestamp_is_returned(self, value):
        assert render_template("{{ v | date: '%Y' }}", {"v": value}) == str(value)


class TestParseDate:

    def test_timestamp_is_utc(self):
        moment = parse_date(IntegerValue(0))
        assert moment is not None
        assert moment.utcoffset().total_seconds() == 0

    def test_not_a_date(self):
        assert parse_date(StringValue("soon")) is None
        assert parse_date(StringValue("")) is None
