"""Per-run manifest: one line per traversal decision plus a summary block."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, TextIO

from incback.exceptions import BackupSetupError

if TYPE_CHECKING:
    from pathlib import Path

SUMMARY_HEADER = "--- Summary ---"


class EntryType(StrEnum):
    """Outcome recorded for one processed entry."""

    DIR = "DIR"
    FILE = "FILE"
    SKIP = "SKIP"
    ERROR = "ERROR"


@dataclass(frozen=True)
class ManifestEntry:
    """A single manifest line."""

    entry_type: EntryType
    path: str
    detail: str | None = None  # SKIP reason, or ERROR kind
    message: str | None = None  # ERROR only

    def format(self) -> str:
        if self.entry_type is EntryType.ERROR:
            return f"ERROR {self.detail}: {self.path} ({self.message})"
        if self.detail:
            return f"{self.entry_type} ({self.detail}) {self.path}"
        return f"{self.entry_type} {self.path}"


def dir_entry(path: str) -> ManifestEntry:
    return ManifestEntry(EntryType.DIR, path)


def file_entry(path: str) -> ManifestEntry:
    return ManifestEntry(EntryType.FILE, path)


def skip_entry(path: str, reason: str | None = None) -> ManifestEntry:
    return ManifestEntry(EntryType.SKIP, path, detail=reason)


def error_entry(kind: str, path: str, message: str) -> ManifestEntry:
    return ManifestEntry(EntryType.ERROR, path, detail=kind, message=message)


@dataclass
class RunCounters:
    """Aggregate counts for one backup run."""

    dirs_created: int = 0
    files_copied: int = 0
    files_skipped: int = 0
    errors: int = 0


def format_summary(counters: RunCounters) -> list[str]:
    return [
        SUMMARY_HEADER,
        f"dirs_created {counters.dirs_created}",
        f"files_copied {counters.files_copied}",
        f"errors: {counters.errors}",
    ]


class ManifestWriter:
    """Appends manifest lines to a file inside the snapshot directory.

    Every line is flushed as soon as it is written so an interrupted run
    still leaves a readable manifest.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        try:
            self._fh: TextIO = open(
                path, "a", encoding="utf-8", errors="surrogateescape", newline="\n"
            )
        except OSError as exc:
            msg = f"could not open manifest: {path} ({exc.strerror or exc})"
            raise BackupSetupError(msg) from exc

    def close(self) -> None:
        self._fh.close()

    def __enter__(self) -> ManifestWriter:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _write_line(self, line: str) -> None:
        self._fh.write(line.replace("\n", "\\n") + "\n")
        self._fh.flush()

    def write(self, entry: ManifestEntry) -> None:
        self._write_line(entry.format())

    def write_summary(self, counters: RunCounters) -> None:
        for line in format_summary(counters):
            self._write_line(line)
