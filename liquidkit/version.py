from __future__ import annotations

from importlib import metadata


def tool_version() -> str:
    """
    Version of the installed distribution.
    Imports nothing from the package to stay free of import cycles.
    """
    try:
        return metadata.version("liquidkit")
    except metadata.PackageNotFoundError:
        return "0.0.0"


__all__ = ["tool_version"]
