"""Snapshot directory naming and creation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pendulum

from incback.exceptions import BackupSetupError

if TYPE_CHECKING:
    from datetime import datetime
    from pathlib import Path

logger = logging.getLogger(__name__)

SNAPSHOT_NAME_FORMAT = "%Y-%m-%d_%H%M%S"


def snapshot_time(timezone: str | None = None) -> datetime:
    """Return the current wall-clock time, in the local timezone by default."""
    if timezone is None:
        return pendulum.now()
    return pendulum.now(timezone)


def new_snapshot_name(now: datetime) -> str:
    """Format ``now`` as a sortable snapshot name, e.g. ``2026-10-17_153012``."""
    return now.strftime(SNAPSHOT_NAME_FORMAT)


def create_snapshot_dir(backups_dir: Path, now: datetime, max_collisions: int = 99) -> Path:
    """Create a fresh snapshot directory under ``backups_dir``.

    Runs started within the same second get a ``_01``, ``_02``, ... suffix; an
    existing snapshot directory is never reused.
    """
    base = new_snapshot_name(now)
    for attempt in range(max_collisions + 1):
        name = base if attempt == 0 else f"{base}_{attempt:02d}"
        candidate = backups_dir / name
        try:
            candidate.mkdir()
        except FileExistsError:
            logger.debug("Snapshot directory %s already exists", candidate)
            continue
        except OSError as exc:
            msg = f"could not create snapshot directory: {candidate} ({exc.strerror or exc})"
            raise BackupSetupError(msg) from exc
        return candidate

    msg = f"could not create snapshot directory: {backups_dir / base} (name collisions exhausted)"
    raise BackupSetupError(msg)
