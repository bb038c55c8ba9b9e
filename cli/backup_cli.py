"""CLI entry point for incremental backups."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, NoReturn

from pydantic import ValidationError

from incback.config import Settings
from incback.exceptions import BackupSetupError
from incback.services.backup_service import EXIT_FATAL, run_backup

if TYPE_CHECKING:
    from collections.abc import Sequence


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser whose usage errors exit with the fatal status."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(EXIT_FATAL, f"{self.prog}: error: {message}\n")


def _configure_logging(debug: bool) -> None:
    """Configure CLI logging; only warnings and above unless debugging."""
    level = logging.DEBUG if debug else logging.WARNING
    fmt = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
    logging.basicConfig(
        level=level,
        format=fmt,
        stream=sys.stderr,
        force=True,
    )


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = _ArgumentParser(
        prog="incback",
        description="Copy new and changed files into a timestamped backup snapshot",
    )
    parser.add_argument("source_dir", help="Directory to back up")
    parser.add_argument("target_dir", help="Root directory for snapshots and state")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def validate_source(source: Path) -> str | None:
    """Return an error message if ``source`` cannot be backed up."""
    if not source.exists():
        return f"source does not exist: {source}"
    if not source.is_dir():
        return f"source is not a directory: {source}"
    return None


def main(argv: Sequence[str] | None = None) -> int:
    """Run one backup and return the process exit status."""
    args = _parse_args(argv)

    try:
        settings = Settings()
    except ValidationError as exc:
        print(f"Error: invalid configuration: {exc}", file=sys.stderr)
        return EXIT_FATAL
    _configure_logging(args.debug or settings.debug)

    source = Path(args.source_dir)
    target_root = Path(args.target_dir)

    problem = validate_source(source)
    if problem is not None:
        print(f"Error: {problem}", file=sys.stderr)
        return EXIT_FATAL

    try:
        result = run_backup(source, target_root, settings)
    except BackupSetupError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_FATAL
    except OSError as exc:
        print(f"Error: backup aborted: {exc}", file=sys.stderr)
        return EXIT_FATAL

    counters = result.counters
    print(f"Backup created: {result.snapshot_dir}")
    print(f"Manifest: {result.manifest_path}")
    print(f"Files copied: {counters.files_copied}")
    print(f"Files unchanged: {counters.files_skipped}")
    print(f"Errors: {counters.errors}")
    if counters.errors:
        print(f"Backup completed with {counters.errors} error(s); see the manifest for details.")
    return result.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
