"""Tests for dualdiff.core.launcher."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from dualdiff.core.errors import LaunchError
from dualdiff.core.launcher import LaunchCommand, Launcher

if TYPE_CHECKING:
    from collections.abc import Callable


def _which(*available: str) -> Callable[[str], str | None]:
    def which(name: str) -> str | None:
        return f"/usr/bin/{name}" if name in available else None

    return which


class _Recorder:
    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.pauses = 0

    def run(self, argv: list[str]) -> int:
        self.calls.append(argv)
        return 0

    def pause(self) -> None:
        self.pauses += 1


class TestDetect:
    """Fallback chains are resolved against PATH once."""

    def test_prefers_vimdiff_and_vim(self) -> None:
        launcher = Launcher.detect(_which("vimdiff", "vim", "diff", "cat"))
        assert launcher.diff_command == LaunchCommand(("/usr/bin/vimdiff",), pause=False)
        assert launcher.view_command == LaunchCommand(("/usr/bin/vim",), pause=False)

    def test_vim_dash_d_fallback(self) -> None:
        launcher = Launcher.detect(_which("vim"))
        assert launcher.diff_command is not None
        assert launcher.diff_command.argv == ("/usr/bin/vim", "-d")

    def test_plain_tools_pause(self) -> None:
        launcher = Launcher.detect(_which("diff", "cat"))
        assert launcher.diff_command == LaunchCommand(("/usr/bin/diff", "-u"), pause=True)
        assert launcher.view_command == LaunchCommand(("/usr/bin/cat",), pause=True)

    def test_nothing_available(self) -> None:
        launcher = Launcher.detect(_which())
        assert launcher.diff_command is None
        assert launcher.view_command is None


class TestOpenDiffOrView:
    """One call site for both files or one file."""

    def _launcher(self, recorder: _Recorder, *available: str) -> Launcher:
        detected = Launcher.detect(_which(*available))
        return Launcher(
            detected.diff_command,
            detected.view_command,
            runner=recorder.run,
            pause=recorder.pause,
        )

    def test_two_paths_use_diff_tool(self) -> None:
        recorder = _Recorder()
        launcher = self._launcher(recorder, "vimdiff", "vim")
        launcher.open_diff_or_view(Path("/l/a.txt"), Path("/r/a.txt"))
        assert recorder.calls == [["/usr/bin/vimdiff", "/l/a.txt", "/r/a.txt"]]
        assert recorder.pauses == 0

    def test_one_path_uses_viewer(self) -> None:
        recorder = _Recorder()
        launcher = self._launcher(recorder, "vimdiff", "nano")
        launcher.open_diff_or_view(None, Path("/r/only.txt"))
        assert recorder.calls == [["/usr/bin/nano", "/r/only.txt"]]

    def test_non_interactive_tool_pauses(self) -> None:
        recorder = _Recorder()
        launcher = self._launcher(recorder, "diff")
        launcher.open_diff_or_view(Path("/l/a"), Path("/r/a"))
        assert recorder.calls == [["/usr/bin/diff", "-u", "/l/a", "/r/a"]]
        assert recorder.pauses == 1

    def test_nothing_to_open(self) -> None:
        launcher = self._launcher(_Recorder(), "vim")
        with pytest.raises(LaunchError, match="Nothing to open"):
            launcher.open_diff_or_view(None, None)

    def test_missing_tool(self) -> None:
        launcher = self._launcher(_Recorder(), "cat")
        with pytest.raises(LaunchError, match="No compatible diff tool"):
            launcher.open_diff_or_view(Path("/l/a"), Path("/r/a"))

    def test_runner_failure_is_wrapped(self) -> None:
        def _broken(argv: list[str]) -> int:
            raise FileNotFoundError(argv[0])

        detected = Launcher.detect(_which("vim"))
        launcher = Launcher(detected.diff_command, detected.view_command, runner=_broken)
        with pytest.raises(LaunchError, match="Cannot run /usr/bin/vim"):
            launcher.open_diff_or_view(Path("/l/a"), None)
