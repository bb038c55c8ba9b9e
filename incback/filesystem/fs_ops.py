"""Filesystem primitives that report failures as values instead of raising."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


@dataclass(frozen=True)
class OpResult:
    """Outcome of a filesystem operation: ``error`` is None on success."""

    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


OK = OpResult()


def _failure(exc: OSError) -> OpResult:
    return OpResult(error=exc.strerror or str(exc))


def make_dirs(path: Path) -> OpResult:
    """Create ``path`` and any missing parents; an existing directory is fine."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        return _failure(exc)
    return OK


def copy_file(source: Path, destination: Path) -> OpResult:
    """Copy file bytes and timestamps, overwriting ``destination`` if present."""
    try:
        shutil.copy2(source, destination, follow_symlinks=False)
    except OSError as exc:
        return _failure(exc)
    return OK
