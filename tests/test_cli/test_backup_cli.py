"""Tests for the backup CLI."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from unittest.mock import MagicMock, patch

import pytest

from cli.backup_cli import main, validate_source
from incback.filesystem import fs_ops
from incback.filesystem.fs_ops import OpResult

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture(autouse=True)
def _isolate(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[MagicMock]:
    """Keep the CLI away from stray .env files and the real root logger."""
    monkeypatch.chdir(tmp_path)
    with patch("cli.backup_cli.logging.basicConfig") as basic_config:
        yield basic_config


class TestValidateSource:
    def test_missing(self, tmp_path: Path) -> None:
        assert validate_source(tmp_path / "nope") == f"source does not exist: {tmp_path / 'nope'}"

    def test_not_a_directory(self, tmp_path: Path) -> None:
        f = tmp_path / "file.txt"
        f.write_text("x")
        assert validate_source(f) == f"source is not a directory: {f}"

    def test_directory(self, tmp_path: Path) -> None:
        assert validate_source(tmp_path) is None


class TestMain:
    def test_successful_run(
        self, source_dir: Path, target_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = main([str(source_dir), str(target_dir)])

        out = capsys.readouterr().out
        assert code == 0
        assert "Backup created: " in out
        assert "Manifest: " in out
        assert "Files copied: 2" in out
        assert "Errors: 0" in out
        (snapshot,) = (target_dir / "backups").iterdir()
        assert (snapshot / "manifest.txt").exists()
        assert (target_dir / ".backup_state" / "last_state.txt").exists()

    def test_second_run_copies_nothing(
        self, source_dir: Path, target_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main([str(source_dir), str(target_dir)]) == 0
        capsys.readouterr()

        assert main([str(source_dir), str(target_dir)]) == 0

        out = capsys.readouterr().out
        assert "Files copied: 0" in out
        assert "Files unchanged: 2" in out

    def test_missing_source_exits_1_and_creates_nothing(
        self, tmp_path: Path, target_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = main([str(tmp_path / "missing"), str(target_dir)])

        assert code == 1
        assert "Error: source does not exist" in capsys.readouterr().err
        assert not target_dir.exists()

    def test_source_not_a_directory_exits_1(
        self, tmp_path: Path, target_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        source = tmp_path / "file.txt"
        source.write_text("x")

        assert main([str(source), str(target_dir)]) == 1
        assert "Error: source is not a directory" in capsys.readouterr().err
        assert not target_dir.exists()

    def test_unusable_target_exits_1(
        self, source_dir: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        target = tmp_path / "target"
        target.write_text("occupied")

        assert main([str(source_dir), str(target)]) == 1
        assert "Error: could not create target directory" in capsys.readouterr().err

    def test_per_file_errors_exit_2(
        self, source_dir: Path, target_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with patch.object(fs_ops, "copy_file", return_value=OpResult(error="Permission denied")):
            code = main([str(source_dir), str(target_dir)])

        out = capsys.readouterr().out
        assert code == 2
        assert "Errors: 2" in out
        assert "completed with 2 error(s)" in out

    def test_missing_arguments_exit_1(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 1
        assert "usage: incback" in capsys.readouterr().err

    def test_invalid_configuration_exits_1(
        self,
        source_dir: Path,
        target_dir: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setenv("INCBACK_MAX_NAME_COLLISIONS", "0")

        assert main([str(source_dir), str(target_dir)]) == 1
        assert "invalid configuration" in capsys.readouterr().err
        assert not target_dir.exists()


class TestLogging:
    def test_warning_level_by_default(
        self, source_dir: Path, target_dir: Path, _isolate: MagicMock
    ) -> None:
        main([str(source_dir), str(target_dir)])
        assert _isolate.call_args.kwargs["level"] == logging.WARNING

    def test_debug_flag(self, source_dir: Path, target_dir: Path, _isolate: MagicMock) -> None:
        main([str(source_dir), str(target_dir), "--debug"])
        assert _isolate.call_args.kwargs["level"] == logging.DEBUG

    def test_debug_from_environment(
        self,
        source_dir: Path,
        target_dir: Path,
        monkeypatch: pytest.MonkeyPatch,
        _isolate: MagicMock,
    ) -> None:
        monkeypatch.setenv("INCBACK_DEBUG", "true")
        main([str(source_dir), str(target_dir)])
        assert _isolate.call_args.kwargs["level"] == logging.DEBUG
