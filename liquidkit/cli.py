from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .config import EngineConfig, load_config
from .environment import Environment
from .errors import ConfigError, LiquidError
from .template import compile_template
from .version import tool_version

_yaml = YAML(typ="safe")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="liquidkit",
        description="Liquid template engine",
        add_help=True,
    )
    p.add_argument("-v", "--version", action="version", version=f"%(prog)s {tool_version()}")
    p.add_argument("--verbose", action="store_true", help="log debug messages to stderr")
    sub = p.add_subparsers(dest="cmd", required=True)

    # Common arguments for render/check
    def add_common(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("template", help="template file, or - to read it from stdin")
        sp.add_argument("--config", metavar="FILE", help="engine configuration (YAML)")
        sp.add_argument(
            "--strict",
            action="store_true",
            help="fail on unterminated delimiters instead of keeping them as text",
        )

    sp_render = sub.add_parser("render", help="render a template to stdout")
    add_common(sp_render)
    sp_render.add_argument(
        "--data",
        metavar="FILE",
        help="template variables as a YAML or JSON mapping (- for stdin)",
    )

    sp_check = sub.add_parser("check", help="compile a template and report syntax errors")
    add_common(sp_check)

    return p


def _read_source(arg: str) -> str:
    if arg == "-":
        return sys.stdin.read()
    path = Path(arg)
    if not path.is_file():
        raise ConfigError(f"File not found: {path}")
    return path.read_text(encoding="utf-8")


def _load_data(arg: Optional[str]) -> Dict[str, Any]:
    """Reads template variables; JSON is valid YAML, so one loader covers both."""
    if not arg:
        return {}
    text = _read_source(arg)
    try:
        raw = _yaml.load(text) or {}
    except YAMLError as e:
        raise ConfigError(f"Invalid data file {arg}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"Data must be a mapping: {arg}")
    return raw


def _environment(ns: argparse.Namespace) -> Environment:
    config = load_config(ns.config) if ns.config else EngineConfig()
    if ns.strict and not config.strict_delimiters:
        config = EngineConfig(
            strict_delimiters=True,
            date_format=config.date_format,
            log_level=config.log_level,
        )
    _setup_logging(logging.DEBUG if ns.verbose else config.logging_level)
    return Environment(config=config)


def _setup_logging(level: int) -> None:
    logging.basicConfig(level=level, format="[%(levelname)s] %(name)s: %(message)s", stream=sys.stderr)
    logging.getLogger("liquidkit").setLevel(level)


def main(argv: list[str] | None = None) -> int:
    ns = _build_parser().parse_args(argv)

    try:
        environment = _environment(ns)

        if ns.cmd == "render":
            data = _load_data(ns.data)
            template = compile_template(_read_source(ns.template), environment)
            sys.stdout.write(template.render(data))
            return 0

        if ns.cmd == "check":
            compile_template(_read_source(ns.template), environment)
            sys.stderr.write("ok\n")
            return 0

    except LiquidError as e:
        sys.stderr.write(f"error: {str(e).rstrip()}\n")
        return 2

    return 2


if __name__ == "__main__":
    raise SystemExit(main())
