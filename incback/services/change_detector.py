"""Copy-or-skip decision based on size and modification time."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from incback.filesystem.state_store import StateSnapshot


class ChangeType(StrEnum):
    """How a file compares to its last recorded observation."""

    NEW = "new"
    SIZE_CHANGED = "size_changed"
    MTIME_CHANGED = "mtime_changed"
    UNCHANGED = "unchanged"


def classify_change(
    path: str,
    size: int,
    modified_time: int,
    previous: StateSnapshot,
) -> ChangeType:
    """Compare an observation of ``path`` with the previous state.

    No content hashing is done: a file rewritten with the same size and
    mtime is reported as unchanged.
    """
    record = previous.get(path)
    if record is None:
        return ChangeType.NEW
    if record.size != size:
        return ChangeType.SIZE_CHANGED
    if record.modified_time != modified_time:
        return ChangeType.MTIME_CHANGED
    return ChangeType.UNCHANGED


def should_copy(path: str, size: int, modified_time: int, previous: StateSnapshot) -> bool:
    """Return False only when ``path`` was seen before with identical size and mtime."""
    return classify_change(path, size, modified_time, previous) is not ChangeType.UNCHANGED
