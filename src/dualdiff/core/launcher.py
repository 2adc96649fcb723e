"""External viewer and diff tool launching.

Tool fallback chains are detected once; callers only ever see
:meth:`Launcher.open_diff_or_view`. All subprocess calls use list-form
arguments with ``shell=False``.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from typing import TYPE_CHECKING

from dualdiff.core.errors import LaunchError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

logger = logging.getLogger(__name__)

DIFF_CHAIN: tuple[tuple[str, ...], ...] = (
    ("vimdiff",),
    ("vim", "-d"),
    ("diff", "-u"),
)
VIEW_CHAIN: tuple[tuple[str, ...], ...] = (
    ("vim",),
    ("vi",),
    ("nano",),
    ("cat",),
)
# Tools that print and exit; the user needs a moment to read their output.
_NON_INTERACTIVE = frozenset({"diff", "cat"})


@dataclass(frozen=True)
class LaunchCommand:
    """A resolved tool invocation prefix."""

    argv: tuple[str, ...]
    pause: bool

    def build(self, *paths: Path) -> list[str]:
        """Return the full argument list for *paths*."""
        return [*self.argv, *(str(p) for p in paths)]


def _resolve(
    chain: Sequence[tuple[str, ...]],
    which: Callable[[str], str | None],
) -> LaunchCommand | None:
    for candidate in chain:
        executable = which(candidate[0])
        if executable is not None:
            return LaunchCommand(
                argv=(executable, *candidate[1:]),
                pause=candidate[0] in _NON_INTERACTIVE,
            )
    return None


class Launcher:
    """Opens one file in a viewer, or two files in a diff tool."""

    def __init__(
        self,
        diff_command: LaunchCommand | None,
        view_command: LaunchCommand | None,
        *,
        runner: Callable[[list[str]], int] | None = None,
        pause: Callable[[], object] | None = None,
    ) -> None:
        """Initialize with already-resolved commands.

        Args:
            diff_command: Tool used when both files exist.
            view_command: Tool used when only one file exists.
            runner: Runs an argument list and returns its exit code.
            pause: Called after non-interactive tools so output stays visible.
        """
        self._diff_command = diff_command
        self._view_command = view_command
        self._runner = runner or _run
        self._pause = pause or _wait_for_enter

    @classmethod
    def detect(cls, which: Callable[[str], str | None] = shutil.which) -> Launcher:
        """Resolve the diff and view fallback chains against ``PATH``."""
        diff_command = _resolve(DIFF_CHAIN, which)
        view_command = _resolve(VIEW_CHAIN, which)
        logger.debug("Diff tool: %s, viewer: %s", diff_command, view_command)
        return cls(diff_command, view_command)

    @property
    def diff_command(self) -> LaunchCommand | None:
        """The resolved diff tool, if any."""
        return self._diff_command

    @property
    def view_command(self) -> LaunchCommand | None:
        """The resolved viewer, if any."""
        return self._view_command

    def open_diff_or_view(self, left_path: Path | None, right_path: Path | None) -> None:
        """Diff two files, or view the one that exists.

        Raises:
            LaunchError: If no paths are given or no suitable tool was found.
        """
        paths = [p for p in (left_path, right_path) if p is not None]
        if not paths:
            msg = "Nothing to open"
            raise LaunchError(msg)

        command = self._diff_command if len(paths) == 2 else self._view_command
        if command is None:
            kind = "diff tool" if len(paths) == 2 else "viewer"
            msg = f"No compatible {kind} found on PATH"
            raise LaunchError(msg)

        argv = command.build(*paths)
        logger.info("Launching %s", argv)
        try:
            self._runner(argv)
        except OSError as exc:
            msg = f"Cannot run {argv[0]}: {exc}"
            raise LaunchError(msg) from exc
        if command.pause:
            self._pause()


def _run(argv: list[str]) -> int:
    return subprocess.run(argv, check=False, shell=False).returncode


def _wait_for_enter() -> None:
    input("\nPress Enter to continue...")
