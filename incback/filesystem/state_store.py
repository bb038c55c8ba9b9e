"""Change-tracking state: last observed size and mtime per source file."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

FIELD_SEPARATOR = "|"


@dataclass(frozen=True)
class FileRecord:
    """Last observed state of one source file."""

    path: str
    size: int
    modified_time: int


StateSnapshot = dict[str, FileRecord]


def parse_state_line(line: str) -> FileRecord | None:
    """Parse one ``path|size|mtime`` line, returning None if it is malformed.

    The line is split from the right so paths containing the separator survive.
    """
    parts = line.rsplit(FIELD_SEPARATOR, 2)
    if len(parts) != 3:
        return None
    path, raw_size, raw_mtime = parts
    if not path:
        return None
    try:
        size = int(raw_size)
        modified_time = int(raw_mtime)
    except ValueError:
        return None
    if size < 0:
        return None
    return FileRecord(path=path, size=size, modified_time=modified_time)


def format_state_line(record: FileRecord) -> str:
    return f"{record.path}{FIELD_SEPARATOR}{record.size}{FIELD_SEPARATOR}{record.modified_time}"


def load_state(state_file: Path) -> StateSnapshot:
    """Load state from file.

    A missing or unreadable file yields an empty snapshot; malformed lines are
    skipped. Later duplicates of a path replace earlier ones.
    """
    try:
        with open(state_file, encoding="utf-8", errors="surrogateescape", newline="") as fh:
            text = fh.read()
    except FileNotFoundError:
        return {}
    except OSError as exc:
        logger.debug("Ignoring unreadable state file %s: %s", state_file, exc)
        return {}

    snapshot: StateSnapshot = {}
    skipped = 0
    for line in text.split("\n"):
        if not line:
            continue
        record = parse_state_line(line)
        if record is None:
            skipped += 1
            continue
        snapshot[record.path] = record
    if skipped:
        logger.debug("Skipped %d malformed line(s) in %s", skipped, state_file)
    return snapshot


def save_state(state_file: Path, snapshot: StateSnapshot) -> None:
    """Overwrite the state file with exactly the records in ``snapshot``.

    Records are written sorted by path into a temporary sibling which then
    replaces the state file. Raises ``OSError`` on failure.
    """
    lines: list[str] = []
    for path in sorted(snapshot):
        if "\n" in path:
            logger.debug("Not persisting state for unrepresentable path %r", path)
            continue
        lines.append(format_state_line(snapshot[path]) + "\n")

    tmp = state_file.with_name(state_file.name + ".tmp")
    try:
        with open(tmp, "w", encoding="utf-8", errors="surrogateescape", newline="\n") as fh:
            fh.writelines(lines)
        tmp.replace(state_file)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise
