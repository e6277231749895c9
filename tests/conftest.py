"""Shared test fixtures: miniature projects written under tmp_path."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import pytest

WriteTree = Callable[[dict[str, str]], Path]


@pytest.fixture
def write_tree(tmp_path: Path) -> WriteTree:
    """Write ``{relative_path: content}`` under tmp_path, return the root."""

    def _write(files: dict[str, str]) -> Path:
        for rel, content in files.items():
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return tmp_path

    return _write


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep PLANPROOF_* variables and a local .env out of Settings()."""
    for key in list(os.environ):
        if key.startswith("PLANPROOF_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
