from pathlib import Path
from typing import Any, Dict, Optional

import pytest

from liquidkit import Environment, compile_template


@pytest.fixture
def env() -> Environment:
    return Environment.default()


@pytest.fixture
def write_file(tmp_path: Path):
    """Writes a text file under tmp_path and returns its path."""
    def _write(name: str, text: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path
    return _write


def render(source: str, data: Optional[Dict[str, Any]] = None, environment: Optional[Environment] = None) -> str:
    """Compiles and renders a template in one call."""
    return compile_template(source, environment).render(data or {})
