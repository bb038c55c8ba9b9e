"""Depth-first enumeration of a source tree."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Collection, Iterator


class EntryKind(StrEnum):
    """Kind of filesystem entry found during traversal."""

    DIRECTORY = "directory"
    FILE = "file"
    OTHER = "other"  # symlinks, sockets, devices, FIFOs


@dataclass(frozen=True)
class TreeEntry:
    """One entry found under the source root.

    ``size`` and ``modified_time`` are only meaningful for regular files;
    ``modified_time`` is truncated to whole epoch seconds.
    """

    path: Path
    kind: EntryKind
    size: int = 0
    modified_time: int = 0


@dataclass(frozen=True)
class WalkError:
    """A path that could not be listed or inspected."""

    path: Path
    operation: str
    message: str


def _error_message(exc: OSError) -> str:
    return exc.strerror or str(exc)


def _classify(entry: os.DirEntry[str]) -> TreeEntry:
    path = Path(entry.path)
    if entry.is_symlink():
        return TreeEntry(path=path, kind=EntryKind.OTHER)
    if entry.is_dir(follow_symlinks=False):
        return TreeEntry(path=path, kind=EntryKind.DIRECTORY)
    if entry.is_file(follow_symlinks=False):
        stat = entry.stat(follow_symlinks=False)
        return TreeEntry(
            path=path,
            kind=EntryKind.FILE,
            size=stat.st_size,
            modified_time=int(stat.st_mtime),
        )
    return TreeEntry(path=path, kind=EntryKind.OTHER)


def walk_tree(root: Path, prune: Collection[Path] = ()) -> Iterator[TreeEntry | WalkError]:
    """Yield every entry under ``root`` depth-first, parents before children.

    Entries are sorted by name within each directory so the order is
    deterministic. Symbolic links are reported as ``OTHER`` and never followed.
    A directory listed in ``prune`` is reported as ``OTHER`` and not descended.
    Listing and stat failures are yielded as ``WalkError`` and the walk
    continues with the next entry. The root itself is not yielded.
    """
    stack: list[Iterator[os.DirEntry[str]]] = []
    listing = _list_directory(root)
    if isinstance(listing, WalkError):
        yield listing
        return
    stack.append(iter(listing))

    while stack:
        child = next(stack[-1], None)
        if child is None:
            stack.pop()
            continue
        try:
            entry = _classify(child)
        except OSError as exc:
            yield WalkError(path=Path(child.path), operation="stat", message=_error_message(exc))
            continue
        if entry.kind is EntryKind.DIRECTORY and entry.path in prune:
            entry = TreeEntry(path=entry.path, kind=EntryKind.OTHER)
        yield entry
        if entry.kind is EntryKind.DIRECTORY:
            listing = _list_directory(entry.path)
            if isinstance(listing, WalkError):
                yield listing
            else:
                stack.append(iter(listing))


def _list_directory(directory: Path) -> list[os.DirEntry[str]] | WalkError:
    try:
        with os.scandir(directory) as it:
            return sorted(it, key=lambda e: e.name)
    except OSError as exc:
        return WalkError(path=directory, operation="read_directory", message=_error_message(exc))
