"""Backup exception types.

Convention:
- ``BackupSetupError`` for failures that stop a run before any file is
  processed (unusable target root, snapshot or state directory, manifest).
  The CLI reports the message and exits with status 1.
- Per-entry failures during traversal are never raised; they are recorded in
  the manifest and counted.
"""

from __future__ import annotations


class BackupSetupError(Exception):
    """Raised when a backup run cannot be started.

    No state is mutated and no manifest entry is written when this is raised.
    """
