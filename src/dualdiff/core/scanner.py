"""Incremental, cancellable directory walking for one root."""

from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from dualdiff.core.errors import RootError
from dualdiff.core.filtering import FileFilter, FilterConfig
from dualdiff.core.models import Entry, ScanError
from dualdiff.core.paths import join_posix, resolve

if TYPE_CHECKING:
    import threading
    from collections.abc import Iterator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntryFound:
    """An entry was captured at ``relative_path``."""

    relative_path: str
    entry: Entry


@dataclass(frozen=True)
class EntryFailed:
    """Reading ``relative_path`` failed; the scan continues with its siblings."""

    relative_path: str
    error: ScanError


@dataclass(frozen=True)
class DirectoryListed:
    """Every direct child of ``relative_path`` has been reported."""

    relative_path: str


ScanEvent = EntryFound | EntryFailed | DirectoryListed


class Scanner:
    """Walks one root depth-first and yields events as it goes.

    Every entry is visited exactly once per scan. Directory symlinks are
    followed; a directory that is its own ancestor is reported as a symlink
    cycle and not descended into. Two links to the same directory from
    different branches are both walked. Read failures become ``EntryFailed`` events
    on the affected path only.
    """

    def __init__(self, root: Path, filter_config: FilterConfig | None = None) -> None:
        """Initialize a scanner for *root*.

        Args:
            root: Directory to walk.
            filter_config: Filtering rules. Defaults to FilterConfig() if None.
        """
        self._root = root
        self._filter_config = filter_config or FilterConfig()

    @property
    def root(self) -> Path:
        """The directory being walked."""
        return self._root

    def scan(
        self,
        cancel: threading.Event | None = None,
        *,
        start: str = "",
    ) -> Iterator[ScanEvent]:
        """Yield scan events for the root, or for the subtree at *start*.

        Args:
            cancel: Checked between entries; when set, the walk stops.
            start: Relative path of the subtree to walk. Empty for the root.

        Raises:
            RootError: If the root itself cannot be read as a directory.
        """
        file_filter = FileFilter(self._filter_config)
        start_path = resolve(self._root, start)
        if start:
            file_filter.enter_ancestors(start, self._root)

        try:
            st = start_path.stat()
        except OSError as exc:
            if not start:
                msg = f"Cannot read root directory {self._root}: {exc.strerror or exc}"
                raise RootError(msg) from exc
            yield EntryFailed(start, ScanError(start, _describe(exc)))
            return

        if not start and not stat.S_ISDIR(st.st_mode):
            msg = f"Not a directory: {self._root}"
            raise RootError(msg)

        yield EntryFound(start, Entry.from_stat(start_path, start, st))
        if not stat.S_ISDIR(st.st_mode):
            return

        stack: list[tuple[str, Path, frozenset[tuple[int, int]]]] = [
            (start, start_path, frozenset({(st.st_dev, st.st_ino)}))
        ]

        while stack:
            if cancel is not None and cancel.is_set():
                logger.debug("Scan of %s cancelled", self._root)
                return

            rel_dir, dir_path, ancestors = stack.pop()
            file_filter.enter_directory(rel_dir, dir_path)

            try:
                with os.scandir(dir_path) as it:
                    dir_entries = sorted(it, key=lambda e: e.name)
            except OSError as exc:
                logger.info("Cannot list %s: %s", dir_path, exc)
                yield EntryFailed(rel_dir, ScanError(rel_dir, _describe(exc)))
                yield DirectoryListed(rel_dir)
                continue

            subdirs: list[tuple[str, Path, frozenset[tuple[int, int]]]] = []
            for dir_entry in dir_entries:
                if cancel is not None and cancel.is_set():
                    logger.debug("Scan of %s cancelled", self._root)
                    return

                rel_path = join_posix(rel_dir, dir_entry.name)
                entry_path = Path(dir_entry.path)
                try:
                    entry_st = dir_entry.stat()
                except OSError as exc:
                    yield from self._unreadable_entry(file_filter, dir_entry, rel_path, exc)
                    continue

                is_dir = stat.S_ISDIR(entry_st.st_mode)
                if file_filter.excludes(rel_path, dir_entry.name, is_dir=is_dir):
                    continue

                yield EntryFound(rel_path, Entry.from_stat(entry_path, rel_path, entry_st))

                if not is_dir:
                    continue
                key = (entry_st.st_dev, entry_st.st_ino)
                if key in ancestors:
                    yield EntryFailed(rel_path, ScanError(rel_path, "symlink cycle"))
                    yield DirectoryListed(rel_path)
                    continue
                subdirs.append((rel_path, entry_path, ancestors | {key}))

            yield DirectoryListed(rel_dir)
            stack.extend(reversed(subdirs))

    @staticmethod
    def _unreadable_entry(
        file_filter: FileFilter,
        dir_entry: os.DirEntry[str],
        rel_path: str,
        exc: OSError,
    ) -> Iterator[ScanEvent]:
        """Report an entry whose target cannot be stat'ed (e.g. a broken symlink)."""
        if file_filter.excludes(rel_path, dir_entry.name, is_dir=False):
            return
        try:
            link_st = dir_entry.stat(follow_symlinks=False)
        except OSError:
            pass
        else:
            yield EntryFound(rel_path, Entry.from_stat(Path(dir_entry.path), rel_path, link_st))
        yield EntryFailed(rel_path, ScanError(rel_path, _describe(exc)))


def _describe(exc: OSError) -> str:
    """Return a short human readable reason for an OS error."""
    if isinstance(exc, PermissionError):
        return "permission denied"
    return exc.strerror or str(exc)


def check_root(path: Path) -> Path:
    """Validate a comparison root before any scan starts.

    Returns:
        The path, made absolute.

    Raises:
        RootError: If *path* does not exist, is not a directory or cannot
            be listed.
    """
    if not path.exists():
        msg = f"Path does not exist: {path}"
        raise RootError(msg)
    if not path.is_dir():
        msg = f"Not a directory: {path}"
        raise RootError(msg)
    if not os.access(path, os.R_OK | os.X_OK):
        msg = f"Cannot read directory: {path}"
        raise RootError(msg)
    return path.absolute()
