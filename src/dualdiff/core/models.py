"""Data models for dualdiff comparison trees and panel views."""

from __future__ import annotations

import os
import stat
from collections import Counter
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path


class Side(StrEnum):
    """One of the two roots being compared."""

    left = "left"
    right = "right"

    @property
    def opposite(self) -> Side:
        """Return the other side."""
        return Side.right if self is Side.left else Side.left


class EntryKind(StrEnum):
    """Kind of a file-system object."""

    file = "file"
    directory = "directory"


class Status(StrEnum):
    """Comparison status of a node."""

    identical = "identical"
    different = "different"
    left_only = "left_only"
    right_only = "right_only"
    error = "error"
    pending = "pending"

    @classmethod
    def only(cls, side: Side) -> Status:
        """Return the one-sided status for an entry present only on *side*."""
        return cls.left_only if side is Side.left else cls.right_only

    @property
    def is_orphan(self) -> bool:
        """True for statuses describing a one-sided entry."""
        return self in (Status.left_only, Status.right_only)

    def mirrored(self) -> Status:
        """Return the status as seen with left and right exchanged."""
        if self is Status.left_only:
            return Status.right_only
        if self is Status.right_only:
            return Status.left_only
        return self


class DiffKind(StrEnum):
    """Sub-kind of a ``Status.different`` node."""

    content = "content"
    type_conflict = "type_conflict"


class FilterMode(StrEnum):
    """View-level filter applied identically to both panels."""

    all = "all"
    different_only = "different_only"
    different_no_orphans = "different_no_orphans"

    def accepts(self, status: Status) -> bool:
        """Return True if a node with *status* is visible under this filter."""
        if self is FilterMode.all:
            return True
        if self is FilterMode.different_only:
            return status != Status.identical
        return status != Status.identical and not status.is_orphan


class CopyDirection(StrEnum):
    """Direction of a copy between the two roots."""

    left_to_right = "left_to_right"
    right_to_left = "right_to_left"

    @property
    def source(self) -> Side:
        """Side the data is read from."""
        return Side.left if self is CopyDirection.left_to_right else Side.right

    @classmethod
    def from_source(cls, side: Side) -> CopyDirection:
        """Return the direction that copies away from *side*."""
        return cls.left_to_right if side is Side.left else cls.right_to_left


@dataclass(frozen=True)
class Entry:
    """One file-system object on one side, captured during a scan."""

    relative_path: str
    name: str
    kind: EntryKind
    size: int
    modified: float
    permissions: int
    readable: bool
    path: Path

    @property
    def is_dir(self) -> bool:
        """True if the entry is a directory."""
        return self.kind == EntryKind.directory

    @classmethod
    def from_stat(cls, path: Path, relative_path: str, st: os.stat_result) -> Entry:
        """Build an entry from a stat result.

        Directory sizes are reported as zero.
        """
        is_dir = stat.S_ISDIR(st.st_mode)
        return cls(
            relative_path=relative_path,
            name=path.name if relative_path else str(path),
            kind=EntryKind.directory if is_dir else EntryKind.file,
            size=0 if is_dir else st.st_size,
            modified=st.st_mtime,
            permissions=stat.S_IMODE(st.st_mode),
            readable=(is_dir or stat.S_ISREG(st.st_mode)) and os.access(path, os.R_OK),
            path=path,
        )


@dataclass(frozen=True)
class ScanError:
    """A per-entry failure recorded on a node instead of aborting a scan."""

    relative_path: str
    message: str


@dataclass(eq=False)
class Node:
    """A position in the comparison tree, keyed by relative path.

    ``children`` is kept sorted with directories first, then by
    case-insensitive name. ``child_counts`` tallies the children by status
    so a directory is re-evaluated without scanning its children.
    """

    relative_path: str
    name: str
    left: Entry | None = None
    right: Entry | None = None
    status: Status = Status.pending
    children: list[Node] = field(default_factory=list)
    scan_generation: int = 0
    errors: dict[Side, ScanError] = field(default_factory=dict)
    listed: set[Side] = field(default_factory=set)
    compared: Status | None = None
    child_counts: Counter[Status] = field(default_factory=Counter)

    def entry(self, side: Side) -> Entry | None:
        """Return the entry on *side*, if any."""
        return self.left if side is Side.left else self.right

    def set_entry(self, side: Side, entry: Entry | None) -> None:
        """Replace the entry on *side*."""
        if side is Side.left:
            self.left = entry
        else:
            self.right = entry

    @property
    def is_dir(self) -> bool:
        """True if the node is a directory on at least one side."""
        return any(e is not None and e.is_dir for e in (self.left, self.right))

    @property
    def diff_kind(self) -> DiffKind | None:
        """Sub-kind of a different node, None for any other status."""
        if self.status != Status.different:
            return None
        if self.left is not None and self.right is not None and self.left.kind != self.right.kind:
            return DiffKind.type_conflict
        return DiffKind.content


@dataclass(frozen=True)
class TreeStats:
    """Counts of file nodes by status."""

    identical: int = 0
    different: int = 0
    left_only: int = 0
    right_only: int = 0
    error: int = 0
    pending: int = 0

    @classmethod
    def from_statuses(cls, statuses: Iterable[Status]) -> TreeStats:
        """Count statuses into a stats record."""
        counts = Counter(statuses)
        return cls(**{status.value: counts.get(status, 0) for status in Status})

    @property
    def total(self) -> int:
        """Number of files counted."""
        return (
            self.identical
            + self.different
            + self.left_only
            + self.right_only
            + self.error
            + self.pending
        )


@dataclass
class PanelState:
    """Per-side view state, mutated only by the SyncController."""

    expanded: set[str] = field(default_factory=set)
    cursor: str = ""
    scroll_offset: int = 0


@dataclass(frozen=True)
class Row:
    """One rendered line of a panel."""

    relative_path: str
    name: str
    depth: int
    kind: EntryKind | None
    size: int | None
    modified: float | None
    status: Status
    status_class: str
    glyph: str
    present: bool


@dataclass(frozen=True)
class PanelView:
    """Read-only view of one panel for a single render tick."""

    side: Side
    root: Path
    rows: tuple[Row, ...]
    cursor: int | None
    scroll_offset: int


@dataclass(frozen=True)
class ViewSnapshot:
    """Everything the renderer needs for one tick."""

    left: PanelView
    right: PanelView
    active_side: Side
    filter_mode: FilterMode
    scanning: bool
    progress: str
    message: str | None
    generation: int

    def panel(self, side: Side) -> PanelView:
        """Return the panel view for *side*."""
        return self.left if side is Side.left else self.right
