"""Attribute-preserving copies between the two roots."""

from __future__ import annotations

import contextlib
import errno
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from dualdiff.core.content import ContentComparator
from dualdiff.core.errors import CopyError, CopyFailure
from dualdiff.core.models import CopyDirection, Entry, EntryKind, Side
from dualdiff.core.paths import ancestor_dirs, match_path, resolve
from dualdiff.core.scanner import DirectoryListed, EntryFailed, EntryFound, Scanner

if TYPE_CHECKING:
    from dualdiff.core.filtering import FilterConfig
    from dualdiff.core.tree import ComparisonTree

logger = logging.getLogger(__name__)

_COPY_BUFFER_SIZE = 1024 * 1024
_TEMP_SUFFIX = ".dualdiff-tmp"


@dataclass(frozen=True)
class CopyPlan:
    """What a copy is about to do, for confirmation."""

    relative_path: str
    direction: CopyDirection
    source: Path
    target: Path
    is_dir: bool
    file_count: int
    folder_count: int
    total_bytes: int
    overwrites: bool


class CopyOperator:
    """Copies files and directories from one root to the other.

    Each file is written to a temporary file next to its destination,
    given the source's modification time and permission bits, then
    renamed into place, so a failed copy never leaves a partial file under
    the final name. Afterwards the affected part of the tree is re-read and
    re-compared in place; no full rescan is needed.
    """

    def __init__(
        self,
        tree: ComparisonTree,
        *,
        comparator: ContentComparator | None = None,
        filter_config: FilterConfig | None = None,
    ) -> None:
        """Bind the operator to a tree.

        Args:
            tree: Tree whose roots are copied between and which is updated.
            comparator: Used to re-resolve copied file pairs.
            filter_config: Filtering rules used when re-reading copied paths.
        """
        self._tree = tree
        self._comparator = comparator or ContentComparator()
        self._filter_config = filter_config

    def plan(self, source_side: Side, relative_path: str) -> CopyPlan:
        """Describe the copy of *relative_path* away from *source_side*.

        Raises:
            CopyError: If the source side has no entry at that path.
        """
        entry = self._source_entry(source_side, relative_path)
        source, target = match_path(
            relative_path,
            self._tree.root_of(source_side),
            self._tree.root_of(source_side.opposite),
        )

        if entry.is_dir:
            file_count, folder_count, total_bytes = _directory_stats(source)
        else:
            file_count, folder_count, total_bytes = 1, 0, entry.size

        return CopyPlan(
            relative_path=relative_path,
            direction=CopyDirection.from_source(source_side),
            source=source,
            target=target,
            is_dir=entry.is_dir,
            file_count=file_count,
            folder_count=folder_count,
            total_bytes=total_bytes,
            overwrites=os.path.lexists(target),
        )

    def copy(self, source_side: Side, relative_path: str) -> None:
        """Copy *relative_path* from *source_side* onto the other root.

        An existing destination is overwritten. The tree reflects the actual
        state on disk afterwards, whether or not the copy succeeded.

        Raises:
            CopyError: On missing source, permission problems, a full disk,
                or the source vanishing mid-copy.
        """
        entry = self._source_entry(source_side, relative_path)
        source_root = self._tree.root_of(source_side)
        target_root = self._tree.root_of(source_side.opposite)
        source, target = match_path(relative_path, source_root, target_root)
        logger.info("Copying %s -> %s", source, target)

        try:
            created = self._make_parents(source_root, target_root, relative_path)
            if entry.is_dir:
                self._copy_tree(source, target, frozenset())
            else:
                self._copy_file(source, target)
            for rel_dir in reversed(created):
                shutil.copystat(resolve(source_root, rel_dir), resolve(target_root, rel_dir))
        except OSError as exc:
            raise _translate(exc, source) from exc
        finally:
            self._sync(source_side, relative_path)

    def _source_entry(self, source_side: Side, relative_path: str) -> Entry:
        node = self._tree.get(relative_path)
        entry = node.entry(source_side) if node is not None else None
        if entry is None:
            path = resolve(self._tree.root_of(source_side), relative_path)
            raise CopyError(CopyFailure.no_source, path, f"nothing on the {source_side} side")
        return entry

    @staticmethod
    def _make_parents(source_root: Path, target_root: Path, relative_path: str) -> list[str]:
        """Create missing destination ancestors, returning the ones created."""
        created: list[str] = []
        for rel_dir in ancestor_dirs(relative_path)[1:]:
            target_dir = resolve(target_root, rel_dir)
            if target_dir.is_dir():
                continue
            target_dir.mkdir()
            shutil.copymode(resolve(source_root, rel_dir), target_dir)
            created.append(rel_dir)
        return created

    def _copy_tree(
        self, source: Path, target: Path, ancestors: frozenset[tuple[int, int]]
    ) -> None:
        st = source.stat()
        key = (st.st_dev, st.st_ino)
        if key in ancestors:
            logger.warning("Skipping symlink cycle at %s", source)
            return
        ancestors = ancestors | {key}

        target.mkdir(exist_ok=True)
        with os.scandir(source) as it:
            children = sorted(it, key=lambda e: e.name)
        for child in children:
            child_target = target / child.name
            if child.is_dir():
                self._copy_tree(Path(child.path), child_target, ancestors)
            else:
                self._copy_file(Path(child.path), child_target)
        shutil.copystat(source, target)

    @staticmethod
    def _copy_file(source: Path, target: Path) -> None:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{target.name}.",
            suffix=_TEMP_SUFFIX,
            dir=target.parent,
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as dst, source.open("rb") as src:
                shutil.copyfileobj(src, dst, _COPY_BUFFER_SIZE)
                dst.flush()
                os.fsync(dst.fileno())
            shutil.copystat(source, tmp_path)
            os.replace(tmp_path, target)
        except BaseException:
            with contextlib.suppress(OSError):
                tmp_path.unlink()
            raise

    def _sync(self, source_side: Side, relative_path: str) -> None:
        """Re-read both sides of the copied path and re-compare its files."""
        target_side = source_side.opposite
        target_root = self._tree.root_of(target_side)
        for rel_dir in ancestor_dirs(relative_path)[1:]:
            target_dir = resolve(target_root, rel_dir)
            try:
                st = target_dir.stat()
            except OSError:
                break
            self._tree.insert_or_update(rel_dir, target_side, Entry.from_stat(target_dir, rel_dir, st))
            self._tree.mark_listed(rel_dir, target_side)

        for side in Side:
            self._reread(side, relative_path)

        for node in list(self._tree.subtree(relative_path)):
            left, right = node.left, node.right
            if (
                left is not None
                and right is not None
                and left.kind == EntryKind.file
                and right.kind == EntryKind.file
                and not node.errors
            ):
                self._tree.resolve_leaf(node.relative_path, self._comparator.compare(left, right))

    def _reread(self, side: Side, relative_path: str) -> None:
        root = self._tree.root_of(side)
        path = resolve(root, relative_path)
        seen: set[str] = set()
        listed: list[str] = []

        if os.path.lexists(path):
            for event in Scanner(root, self._filter_config).scan(start=relative_path):
                if isinstance(event, EntryFound):
                    self._tree.insert_or_update(event.relative_path, side, event.entry)
                    seen.add(event.relative_path)
                elif isinstance(event, EntryFailed):
                    self._tree.insert_or_update(event.relative_path, side, event.error)
                    seen.add(event.relative_path)
                elif isinstance(event, DirectoryListed):
                    listed.append(event.relative_path)

        stale = [
            node.relative_path
            for node in self._tree.subtree(relative_path)
            if node.entry(side) is not None and node.relative_path not in seen
        ]
        for rel_path in reversed(stale):
            self._tree.discard(rel_path, side)
        for rel_path in listed:
            self._tree.mark_listed(rel_path, side)


def _directory_stats(path: Path) -> tuple[int, int, int]:
    """Count files, folders (the top one included) and bytes below *path*."""
    file_count = 0
    folder_count = 1
    total_bytes = 0
    for dirpath, dirnames, filenames in os.walk(path):
        folder_count += len(dirnames)
        for filename in filenames:
            file_count += 1
            with contextlib.suppress(OSError):
                total_bytes += os.stat(os.path.join(dirpath, filename)).st_size
    return file_count, folder_count, total_bytes


def _translate(exc: OSError, source: Path) -> CopyError:
    """Map an OS error raised during a copy onto a typed CopyError."""
    path = Path(exc.filename) if exc.filename else source
    detail = exc.strerror or str(exc)
    if isinstance(exc, FileNotFoundError) and not os.path.lexists(source):
        return CopyError(CopyFailure.source_vanished, source, detail)
    if isinstance(exc, PermissionError):
        return CopyError(CopyFailure.permission, path, detail)
    if exc.errno in (errno.ENOSPC, errno.EDQUOT):
        return CopyError(CopyFailure.disk_full, path, detail)
    return CopyError(CopyFailure.io_error, path, detail)
