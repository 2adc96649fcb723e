"""Exception hierarchy for dualdiff."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class DualDiffError(Exception):
    """Base class for errors raised by dualdiff."""


class RootError(DualDiffError):
    """Raised when a comparison root is missing or not a directory."""


class ScanBusyError(DualDiffError):
    """Raised when a command needs a settled tree but a scan is in flight."""


class LaunchError(DualDiffError):
    """Raised when no external viewer or diff tool could be started."""


class CopyFailure(StrEnum):
    """Reason a copy did not complete."""

    permission = "permission"
    disk_full = "disk_full"
    source_vanished = "source_vanished"
    no_source = "no_source"
    io_error = "io_error"


class CopyError(DualDiffError):
    """Raised when a copy fails; the destination is never left half-written."""

    def __init__(self, reason: CopyFailure, path: Path, detail: str = "") -> None:
        self.reason = reason
        self.path = path
        self.detail = detail
        msg = f"Copy failed ({reason.value}): {path}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)
