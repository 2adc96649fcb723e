"""Tests for dualdiff.cli.app."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from typer.testing import CliRunner

from dualdiff.cli import app as app_module
from dualdiff.cli.app import app

if TYPE_CHECKING:
    from pathlib import Path

    import pytest

runner = CliRunner()


class TestCliHelp:
    """Verify help output."""

    def test_help_flag(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "Compare two directories" in result.output

    def test_no_args_shows_usage(self) -> None:
        result = runner.invoke(app, [])
        assert "Usage" in result.output or "LEFT" in result.output


class TestCliVersion:
    """Verify version output."""

    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "dualdiff 0.1.0" in result.output

    def test_version_short_flag(self) -> None:
        result = runner.invoke(app, ["-V"])
        assert result.exit_code == 0
        assert "dualdiff" in result.output


class TestCliSimple:
    """The --simple line output."""

    def test_simple_output(self, sample_dirs: tuple[Path, Path]) -> None:
        left, right = sample_dirs
        result = runner.invoke(app, [str(left), str(right), "--simple"])
        assert result.exit_code == 0
        assert "Legend:" in result.output
        assert "[D] modified.txt" in result.output
        assert "[L] left_only.txt" in result.output
        assert "[R] right_only.txt" in result.output
        assert "common.txt" not in result.output

    def test_skip_hidden(self, sample_dirs: tuple[Path, Path]) -> None:
        left, right = sample_dirs
        result = runner.invoke(app, [str(left), str(right), "--simple", "--skip-hidden"])
        assert result.exit_code == 0
        assert ".hidden" not in result.output

    def test_exclude_pattern(self, sample_dirs: tuple[Path, Path]) -> None:
        left, right = sample_dirs
        result = runner.invoke(app, [str(left), str(right), "--simple", "-E", "sub"])
        assert result.exit_code == 0
        assert "sub/" not in result.output

    def test_other_hash_algorithm(self, hello_world_dirs: tuple[Path, Path]) -> None:
        left, right = hello_world_dirs
        result = runner.invoke(app, [str(left), str(right), "--simple", "--hash", "md5"])
        assert result.exit_code == 0
        assert "[D] a/x.txt" in result.output


class TestCliErrorHandling:
    """Bad arguments exit with code 2 and an Error: line."""

    def test_missing_root(self, tmp_path: Path) -> None:
        (tmp_path / "ok").mkdir()
        result = runner.invoke(app, [str(tmp_path / "ok"), str(tmp_path / "nope"), "--simple"])
        assert result.exit_code == 2
        assert "Error:" in result.output
        assert "does not exist" in result.output

    def test_file_root(self, tmp_path: Path) -> None:
        (tmp_path / "ok").mkdir()
        (tmp_path / "file.txt").write_text("x")
        result = runner.invoke(
            app, [str(tmp_path / "ok"), str(tmp_path / "file.txt"), "--simple"]
        )
        assert result.exit_code == 2
        assert "Not a directory" in result.output

    def test_unknown_hash(self, sample_dirs: tuple[Path, Path]) -> None:
        left, right = sample_dirs
        result = runner.invoke(app, [str(left), str(right), "--hash", "nope"])
        assert result.exit_code == 2
        assert "Unknown hash algorithm" in result.output


class TestCliInteractive:
    """The default mode hands off to the TUI."""

    def test_interactive_is_default(
        self, sample_dirs: tuple[Path, Path], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        calls: list[tuple[Path, Path]] = []

        def _fake(left: Path, right: Path, *_args: object) -> str | None:
            calls.append((left, right))
            return None

        monkeypatch.setattr(app_module, "_run_interactive", _fake)
        left, right = sample_dirs
        result = runner.invoke(app, [str(left), str(right)])
        assert result.exit_code == 0
        assert calls == [(left.absolute(), right.absolute())]

    def test_scan_failure_exits_1(
        self, sample_dirs: tuple[Path, Path], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(app_module, "_run_interactive", lambda *_args: "root vanished")
        left, right = sample_dirs
        result = runner.invoke(app, [str(left), str(right)])
        assert result.exit_code == 1
        assert "Error: root vanished" in result.output


class TestCliLogging:
    """--verbose writes a log file and nothing else."""

    def test_verbose_writes_log(self, sample_dirs: tuple[Path, Path], tmp_path: Path) -> None:
        left, right = sample_dirs
        log_file = tmp_path / "run.log"
        result = runner.invoke(
            app, [str(left), str(right), "--simple", "-v", "--log-file", str(log_file)]
        )
        logging.getLogger("dualdiff").handlers[0].flush()
        assert result.exit_code == 0
        assert "Comparing" in log_file.read_text()
        assert "| INFO |" not in result.output

    def test_quiet_by_default(self, sample_dirs: tuple[Path, Path], tmp_path: Path) -> None:
        left, right = sample_dirs
        log_file = tmp_path / "quiet.log"
        result = runner.invoke(
            app, [str(left), str(right), "--simple", "--log-file", str(log_file)]
        )
        assert result.exit_code == 0
        assert not log_file.exists()
