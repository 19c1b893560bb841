"""Shared fixtures for docaudit tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Callable, Dict

import pytest


@pytest.fixture
def write_docs(tmp_path: Path) -> Callable[[Dict[str, str]], Path]:
    """Write ``{relative_path: content}`` under tmp_path and return the root."""

    def _write(files: Dict[str, str]) -> Path:
        for relative, content in files.items():
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(content), encoding="utf-8")
        return tmp_path

    return _write
