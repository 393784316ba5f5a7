import io

import pytest

from liquidkit.cli import main


def test_render_with_data(write_file, capsys):
    """render writes the result to stdout."""
    tpl = write_file("page.liquid", "Hello {{ name | upcase }}! {% for i in items %}{{ i }}{% endfor %}")
    data = write_file("data.yaml", "name: world\nitems: [1, 2, 3]\n")

    code = main(["render", str(tpl), "--data", str(data)])

    assert code == 0
    assert capsys.readouterr().out == "Hello WORLD! 123"


def test_render_with_json_data(write_file, capsys):
    """JSON data files are accepted."""
    tpl = write_file("page.liquid", "{{ user.name }}")
    data = write_file("data.json", '{"user": {"name": "Ann"}}')

    assert main(["render", str(tpl), "--data", str(data)]) == 0
    assert capsys.readouterr().out == "Ann"


def test_render_from_stdin(monkeypatch, capsys):
    """'-' reads the template from stdin."""
    monkeypatch.setattr("sys.stdin", io.StringIO("{{ 1 | plus: 2 }}"))

    assert main(["render", "-"]) == 0
    assert capsys.readouterr().out == "3"


def test_render_config_date_format(write_file, capsys):
    """--config settings apply to the environment."""
    tpl = write_file("page.liquid", "{{ '2024-01-15' | date }}")
    cfg = write_file("liquid.yaml", 'date_format: "%d/%m/%Y"\n')

    assert main(["render", str(tpl), "--config", str(cfg)]) == 0
    assert capsys.readouterr().out == "15/01/2024"


def test_check_ok(write_file, capsys):
    """check compiles without rendering."""
    tpl = write_file("ok.liquid", "{% if a %}{{ a | nope }}{% endif %}")

    assert main(["check", str(tpl)]) == 0
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "ok" in captured.err


def test_check_syntax_error(write_file, capsys):
    """Syntax errors are reported as clean messages with exit code 2."""
    tpl = write_file("bad.liquid", "line\n{% for x in y %}")

    assert main(["check", str(tpl)]) == 2
    err = capsys.readouterr().err
    assert err.startswith("error: ")
    assert "never closed" in err
    assert "2:1" in err


def test_strict_flag(write_file, capsys):
    """--strict turns unterminated delimiters into errors."""
    tpl = write_file("open.liquid", "a {{ b")

    assert main(["check", str(tpl)]) == 0
    assert main(["check", str(tpl), "--strict"]) == 2
    assert "Unterminated" in capsys.readouterr().err


def test_render_error(write_file, capsys):
    """Failing filters abort the render without partial output."""
    tpl = write_file("div.liquid", "before {{ 1 | divided_by: 0 }}")

    assert main(["render", str(tpl)]) == 2
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "divided_by" in captured.err


def test_missing_template(tmp_path, capsys):
    """A missing template file is reported, not raised."""
    assert main(["render", str(tmp_path / "none.liquid")]) == 2
    assert "File not found" in capsys.readouterr().err


def test_bad_data_file(write_file, capsys):
    """Data must be a mapping."""
    tpl = write_file("t.liquid", "x")
    data = write_file("list.yaml", "- 1\n- 2\n")

    assert main(["render", str(tpl), "--data", str(data)]) == 2
    assert "Data must be a mapping" in capsys.readouterr().err


def test_version(capsys):
    """--version prints the program name."""
    with pytest.raises(SystemExit) as info:
        main(["--version"])

    assert info.value.code == 0
    assert capsys.readouterr().out.startswith("liquidkit ")
