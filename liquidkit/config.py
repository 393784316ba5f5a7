"""
Engine configuration.

Loaded from a YAML mapping, for example:

    strict_delimiters: true
    date_format: "%Y-%m-%d"
    log_level: INFO
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .errors import ConfigError

_yaml = YAML(typ="safe")

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class EngineConfig:
    """
    Engine settings.

    Attributes:
        strict_delimiters: Raise LexError on unterminated delimiters instead of keeping them as text
        date_format: strftime format used by `date` without an argument
        log_level: Logging level name applied by the command line
    """
    strict_delimiters: bool = False
    date_format: Optional[str] = None
    log_level: str = "WARNING"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> EngineConfig:
        """
        Creates a config from a mapping (as read from YAML).

        Raises:
            ConfigError: On unknown keys or values of the wrong type
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown config key(s): {', '.join(unknown)}")

        strict = data.get("strict_delimiters", False)
        if not isinstance(strict, bool):
            raise ConfigError("strict_delimiters must be a boolean")

        date_format = data.get("date_format")
        if date_format is not None and not isinstance(date_format, str):
            raise ConfigError("date_format must be a string")

        log_level = str(data.get("log_level", "WARNING")).upper()
        if log_level not in _LOG_LEVELS:
            raise ConfigError(f"Invalid log_level '{log_level}'. Expected one of: {', '.join(_LOG_LEVELS)}")

        return cls(strict_delimiters=strict, date_format=date_format, log_level=log_level)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"strict_delimiters": self.strict_delimiters, "log_level": self.log_level}
        if self.date_format is not None:
            result["date_format"] = self.date_format
        return result

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level)


def _read_yaml_map(path: Path) -> dict:
    """Reads a YAML file that must contain a mapping."""
    try:
        raw = _yaml.load(path.read_text(encoding="utf-8")) or {}
    except YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"YAML must be a mapping: {path}")
    return raw


def load_config(path: Union[str, Path, None]) -> EngineConfig:
    """
    Loads the engine configuration.

    A missing file (or no path) yields the defaults.

    Raises:
        ConfigError: On malformed YAML or invalid settings
    """
    if path is None:
        return EngineConfig()
    path = Path(path)
    if not path.is_file():
        return EngineConfig()
    return EngineConfig.from_dict(_read_yaml_map(path))


__all__ = ["EngineConfig", "load_config"]
