"""Shared fixtures for license-gate tests."""

import json
from pathlib import Path
from typing import Any, Callable

import pytest
from click.testing import CliRunner


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def write_json_file() -> Callable[[Path, Any], Path]:
    """Provide a helper writing JSON content to a path."""

    def _write(path: Path, data: Any) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return path

    return _write
