"""Shared test fixtures for incback."""

from __future__ import annotations

import os
from datetime import datetime
from typing import TYPE_CHECKING

import pytest

from incback.config import Settings

if TYPE_CHECKING:
    from pathlib import Path

BASE_MTIME = 1700000000


def write_file(path: Path, data: bytes, mtime: int = BASE_MTIME) -> Path:
    """Write ``data`` to ``path`` (creating parents) and pin its mtime."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    os.utime(path, (mtime, mtime))
    return path


def run_time(index: int) -> datetime:
    """A distinct snapshot timestamp for the ``index``-th run in a test."""
    return datetime(2026, 10, 17, 12, 0, index)


def manifest_lines(path: Path) -> list[str]:
    return path.read_text(encoding="utf-8").splitlines()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """Source tree with ``a.txt`` (10 bytes) and ``sub/b.txt`` (20 bytes)."""
    source = tmp_path / "source"
    write_file(source / "a.txt", b"a" * 10)
    write_file(source / "sub" / "b.txt", b"b" * 20)
    return source


@pytest.fixture
def target_dir(tmp_path: Path) -> Path:
    return tmp_path / "target"
