"""Tests for dualdiff.core.scanner."""

from __future__ import annotations

import os
import threading
from typing import TYPE_CHECKING

import pytest

from dualdiff.core.errors import RootError
from dualdiff.core.filtering import FilterConfig
from dualdiff.core.models import EntryKind
from dualdiff.core.scanner import (
    DirectoryListed,
    EntryFailed,
    EntryFound,
    Scanner,
    check_root,
)

if TYPE_CHECKING:
    from pathlib import Path

_IS_ROOT = hasattr(os, "geteuid") and os.geteuid() == 0


def _found(events: list[object]) -> list[str]:
    return [e.relative_path for e in events if isinstance(e, EntryFound)]


def _failed(events: list[object]) -> dict[str, str]:
    return {e.relative_path: e.error.message for e in events if isinstance(e, EntryFailed)}


class TestScan:
    """Walking a healthy tree."""

    def test_visits_every_entry_once(self, sample_dirs: tuple[Path, Path]) -> None:
        left, _ = sample_dirs
        found = _found(list(Scanner(left).scan()))
        assert sorted(found) == sorted(
            [
                "",
                ".hidden",
                "common.txt",
                "left_only.txt",
                "modified.txt",
                "sub",
                "sub/left_nested.txt",
                "sub/nested.txt",
            ]
        )
        assert len(found) == len(set(found))

    def test_root_entry_first(self, sample_dirs: tuple[Path, Path]) -> None:
        left, _ = sample_dirs
        first = next(iter(Scanner(left).scan()))
        assert isinstance(first, EntryFound)
        assert first.relative_path == ""
        assert first.entry.kind == EntryKind.directory

    def test_directory_listed_after_its_children(self, sample_dirs: tuple[Path, Path]) -> None:
        left, _ = sample_dirs
        events = list(Scanner(left).scan())
        listed_at = events.index(DirectoryListed("sub"))
        children_at = [
            i
            for i, e in enumerate(events)
            if isinstance(e, EntryFound) and e.relative_path.startswith("sub/")
        ]
        assert children_at
        assert max(children_at) < listed_at

    def test_every_directory_is_listed(self, sample_dirs: tuple[Path, Path]) -> None:
        left, _ = sample_dirs
        listed = [e.relative_path for e in Scanner(left).scan() if isinstance(e, DirectoryListed)]
        assert sorted(listed) == ["", "sub"]

    def test_directory_size_is_zero(self, sample_dirs: tuple[Path, Path]) -> None:
        left, _ = sample_dirs
        entries = {
            e.relative_path: e.entry for e in Scanner(left).scan() if isinstance(e, EntryFound)
        }
        assert entries["sub"].size == 0
        assert entries["common.txt"].size == len("same content\n")

    def test_subtree_scan(self, sample_dirs: tuple[Path, Path]) -> None:
        left, _ = sample_dirs
        found = _found(list(Scanner(left).scan(start="sub")))
        assert sorted(found) == ["sub", "sub/left_nested.txt", "sub/nested.txt"]

    def test_missing_subtree_reports_failure(self, sample_dirs: tuple[Path, Path]) -> None:
        left, _ = sample_dirs
        events = list(Scanner(left).scan(start="nope"))
        assert _found(events) == []
        assert "nope" in _failed(events)


class TestFiltering:
    """Filter configuration is applied while walking."""

    def test_skip_hidden(self, sample_dirs: tuple[Path, Path]) -> None:
        left, _ = sample_dirs
        found = _found(list(Scanner(left, FilterConfig(include_hidden=False)).scan()))
        assert ".hidden" not in found

    def test_gitignore(self, tmp_path: Path) -> None:
        root = tmp_path / "repo"
        root.mkdir()
        (root / ".gitignore").write_text("*.pyc\nbuild/\n")
        (root / "keep.py").write_text("keep\n")
        (root / "drop.pyc").write_text("drop\n")
        (root / "build").mkdir()
        (root / "build" / "out.o").write_text("o\n")
        found = _found(list(Scanner(root, FilterConfig(respect_gitignore=True)).scan()))
        assert "keep.py" in found
        assert "drop.pyc" not in found
        assert "build" not in found
        assert "build/out.o" not in found

    def test_subtree_scan_honours_ancestor_gitignore(self, tmp_path: Path) -> None:
        root = tmp_path / "repo"
        (root / "d" / "e").mkdir(parents=True)
        (root / ".gitignore").write_text("*.log\n")
        (root / "d" / ".gitignore").write_text("*.tmp\n")
        for name in ("keep.txt", "noise.log", "scratch.tmp"):
            (root / "d" / "e" / name).write_text("x\n")
        scanner = Scanner(root, FilterConfig(respect_gitignore=True))
        found = _found(list(scanner.scan(start="d/e")))
        assert sorted(found) == ["d/e", "d/e/keep.txt"]

    def test_exclude_pattern(self, sample_dirs: tuple[Path, Path]) -> None:
        left, _ = sample_dirs
        config = FilterConfig(exclude_patterns=("sub",))
        found = _found(list(Scanner(left, config).scan()))
        assert not any(path.startswith("sub") for path in found)


class TestFailures:
    """Per-entry failures are reported without stopping the walk."""

    def test_missing_root(self, tmp_path: Path) -> None:
        with pytest.raises(RootError, match="Cannot read root"):
            list(Scanner(tmp_path / "missing").scan())

    def test_file_root(self, tmp_path: Path) -> None:
        path = tmp_path / "file.txt"
        path.write_text("x")
        with pytest.raises(RootError, match="Not a directory"):
            list(Scanner(path).scan())

    def test_broken_symlink(self, tmp_path: Path) -> None:
        root = tmp_path / "root"
        root.mkdir()
        (root / "ok.txt").write_text("ok")
        os.symlink(root / "missing-target", root / "dangling")
        events = list(Scanner(root).scan())
        assert "dangling" in _found(events)
        assert "dangling" in _failed(events)
        assert "ok.txt" in _found(events)

    def test_symlink_cycle(self, tmp_path: Path) -> None:
        root = tmp_path / "root"
        (root / "a").mkdir(parents=True)
        os.symlink(root, root / "a" / "loop")
        events = list(Scanner(root).scan())
        assert _failed(events) == {"a/loop": "symlink cycle"}
        assert not any(path.startswith("a/loop/") for path in _found(events))

    def test_sibling_links_to_same_directory_are_not_cycles(self, tmp_path: Path) -> None:
        root = tmp_path / "root"
        (root / "a").mkdir(parents=True)
        (root / "a" / "f.txt").write_text("f")
        os.symlink(root / "a", root / "b")
        events = list(Scanner(root).scan())
        assert _failed(events) == {}
        assert {"a/f.txt", "b/f.txt"} <= set(_found(events))

    @pytest.mark.skipif(_IS_ROOT, reason="root ignores directory permissions")
    def test_unreadable_directory(self, tmp_path: Path) -> None:
        root = tmp_path / "root"
        locked = root / "locked"
        locked.mkdir(parents=True)
        (locked / "secret.txt").write_text("s")
        (root / "open.txt").write_text("o")
        locked.chmod(0o000)
        try:
            events = list(Scanner(root).scan())
        finally:
            locked.chmod(0o755)
        assert _failed(events) == {"locked": "permission denied"}
        assert "open.txt" in _found(events)


class TestCancellation:
    """The cancel event stops the walk between entries."""

    def test_pre_cancelled_scan_stops_after_root(self, sample_dirs: tuple[Path, Path]) -> None:
        left, _ = sample_dirs
        cancel = threading.Event()
        cancel.set()
        assert _found(list(Scanner(left).scan(cancel))) == [""]

    def test_cancel_mid_scan(self, sample_dirs: tuple[Path, Path]) -> None:
        left, _ = sample_dirs
        cancel = threading.Event()
        seen: list[object] = []
        for event in Scanner(left).scan(cancel):
            seen.append(event)
            if len(seen) == 2:
                cancel.set()
        assert len(seen) < len(list(Scanner(left).scan()))


class TestCheckRoot:
    """Root validation before scanning."""

    def test_valid(self, tmp_path: Path) -> None:
        assert check_root(tmp_path) == tmp_path.absolute()

    def test_missing(self, tmp_path: Path) -> None:
        with pytest.raises(RootError, match="does not exist"):
            check_root(tmp_path / "missing")

    def test_not_a_directory(self, tmp_path: Path) -> None:
        path = tmp_path / "file"
        path.write_text("")
        with pytest.raises(RootError, match="Not a directory"):
            check_root(path)
