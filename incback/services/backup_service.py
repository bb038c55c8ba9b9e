"""Backup run orchestration: traversal, copy-or-skip, manifest and state."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from incback.config import Settings
from incback.exceptions import BackupSetupError
from incback.filesystem import fs_ops
from incback.filesystem.state_store import FileRecord, StateSnapshot, load_state, save_state
from incback.filesystem.walker import EntryKind, TreeEntry, WalkError, walk_tree
from incback.services.change_detector import ChangeType, classify_change
from incback.services.manifest_service import (
    ManifestWriter,
    RunCounters,
    dir_entry,
    error_entry,
    file_entry,
    skip_entry,
)
from incback.services.snapshot_service import create_snapshot_dir, snapshot_time

if TYPE_CHECKING:
    from collections.abc import Collection
    from datetime import datetime
    from pathlib import Path

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_COMPLETED_WITH_ERRORS = 2


@dataclass(frozen=True)
class BackupLayout:
    """Locations of backup artifacts under a target root."""

    target_root: Path
    backups_dir: Path
    state_dir: Path
    state_file: Path

    @classmethod
    def for_target(cls, target_root: Path, settings: Settings) -> BackupLayout:
        state_dir = target_root / settings.state_dir_name
        return cls(
            target_root=target_root,
            backups_dir=target_root / settings.backups_dir_name,
            state_dir=state_dir,
            state_file=state_dir / settings.state_file_name,
        )

    def ensure_directories(self) -> None:
        """Create the target root, backups and state directories."""
        for label, path in (
            ("target", self.target_root),
            ("backups", self.backups_dir),
            ("state", self.state_dir),
        ):
            result = fs_ops.make_dirs(path)
            if not result.ok:
                msg = f"could not create {label} directory: {path} ({result.error})"
                raise BackupSetupError(msg)


@dataclass
class BackupResult:
    """Outcome of a completed backup run."""

    snapshot_dir: Path
    manifest_path: Path
    state_file: Path
    counters: RunCounters = field(default_factory=RunCounters)

    @property
    def exit_code(self) -> int:
        return EXIT_OK if self.counters.errors == 0 else EXIT_COMPLETED_WITH_ERRORS


class BackupEngine:
    """Walks a source tree and mirrors new or changed files into a snapshot.

    ``new_state`` collects one record per regular file seen, whether it was
    copied or skipped, and becomes the persisted state after the walk.
    """

    def __init__(
        self,
        source: Path,
        snapshot_dir: Path,
        previous: StateSnapshot,
        manifest: ManifestWriter,
        prune: Collection[Path] = (),
    ) -> None:
        self.source = source
        self.snapshot_dir = snapshot_dir
        self.previous = previous
        self.manifest = manifest
        self.prune = prune
        self.new_state: StateSnapshot = {}
        self.counters = RunCounters()

    def run(self) -> None:
        for item in walk_tree(self.source, prune=self.prune):
            if isinstance(item, WalkError):
                self.record_error(item.operation, self._display_path(item.path), item.message)
            else:
                self.process(item)

    def process(self, entry: TreeEntry) -> None:
        try:
            rel = entry.path.relative_to(self.source)
        except ValueError as exc:
            self.record_error("relative_path", str(entry.path), str(exc))
            return
        rel_key = rel.as_posix()

        if entry.kind is EntryKind.DIRECTORY:
            self._mirror_directory(rel, rel_key)
        elif entry.kind is EntryKind.FILE:
            self._backup_file(entry, rel, rel_key)
        else:
            logger.debug("Skipping unsupported entry %s", rel_key)
            self.manifest.write(skip_entry(rel_key))

    def _mirror_directory(self, rel: Path, rel_key: str) -> None:
        result = fs_ops.make_dirs(self.snapshot_dir / rel)
        if not result.ok:
            self.record_error("create_directory", rel_key, result.error)
            return
        self.manifest.write(dir_entry(rel_key))
        self.counters.dirs_created += 1

    def _backup_file(self, entry: TreeEntry, rel: Path, rel_key: str) -> None:
        self.new_state[rel_key] = FileRecord(
            path=rel_key, size=entry.size, modified_time=entry.modified_time
        )

        change = classify_change(rel_key, entry.size, entry.modified_time, self.previous)
        if change is ChangeType.UNCHANGED:
            self.manifest.write(skip_entry(rel_key, "unchanged"))
            self.counters.files_skipped += 1
            return
        logger.debug("Copying %s (%s)", rel_key, change)

        destination = self.snapshot_dir / rel
        if destination == self.manifest.path:
            self.record_error("copy", rel_key, "destination is reserved for the run manifest")
            return
        result = fs_ops.make_dirs(destination.parent)
        if not result.ok:
            self.record_error("create_parent", rel_key, result.error)
            return
        result = fs_ops.copy_file(entry.path, destination)
        if not result.ok:
            self.record_error("copy", rel_key, result.error)
            return
        self.manifest.write(file_entry(rel_key))
        self.counters.files_copied += 1

    def record_error(self, kind: str, path: str, message: str | None) -> None:
        logger.warning("Backup error (%s) at %s: %s", kind, path, message)
        self.manifest.write(error_entry(kind, path, message or "unknown error"))
        self.counters.errors += 1

    def _display_path(self, path: Path) -> str:
        try:
            return path.relative_to(self.source).as_posix()
        except ValueError:
            return str(path)


def _paths_to_prune(source: Path, layout: BackupLayout) -> list[Path]:
    """Backup artifacts that live inside the source tree, as walker paths."""
    source_resolved = source.resolve()
    prune: list[Path] = []
    for path in (layout.backups_dir, layout.state_dir):
        resolved = path.resolve()
        if resolved != source_resolved and resolved.is_relative_to(source_resolved):
            prune.append(source / resolved.relative_to(source_resolved))
    return prune


def run_backup(
    source: Path,
    target_root: Path,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> BackupResult:
    """Run one incremental backup of ``source`` into ``target_root``.

    Raises ``BackupSetupError`` if the target layout, snapshot directory or
    manifest cannot be created; per-entry failures are counted instead.
    """
    if settings is None:
        settings = Settings()
    try:
        settings.validate_layout()
    except ValueError as exc:
        raise BackupSetupError(str(exc)) from exc
    if now is None:
        now = snapshot_time(settings.timezone)

    layout = BackupLayout.for_target(target_root, settings)
    layout.ensure_directories()
    snapshot_dir = create_snapshot_dir(layout.backups_dir, now, settings.max_name_collisions)
    manifest_path = snapshot_dir / settings.manifest_file_name
    logger.info("Backing up %s into %s", source, snapshot_dir)

    previous = load_state(layout.state_file)
    logger.debug("Loaded %d state record(s) from %s", len(previous), layout.state_file)

    with ManifestWriter(manifest_path) as manifest:
        engine = BackupEngine(
            source,
            snapshot_dir,
            previous,
            manifest,
            prune=_paths_to_prune(source, layout),
        )
        engine.run()

        try:
            save_state(layout.state_file, engine.new_state)
        except OSError as exc:
            engine.record_error("save_state", str(layout.state_file), exc.strerror or str(exc))
        else:
            logger.debug("Saved %d state record(s)", len(engine.new_state))

        manifest.write_summary(engine.counters)

    logger.info(
        "Backup finished: %d dir(s) created, %d file(s) copied, %d skipped, %d error(s)",
        engine.counters.dirs_created,
        engine.counters.files_copied,
        engine.counters.files_skipped,
        engine.counters.errors,
    )
    return BackupResult(
        snapshot_dir=snapshot_dir,
        manifest_path=manifest_path,
        state_file=layout.state_file,
        counters=engine.counters,
    )
