"""Shared test fixtures for dualdiff."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

Layout = dict[str, "str | bytes | None"]


def _populate(root: Path, layout: Layout) -> Path:
    """Create *layout* under *root*; ``None`` values are directories."""
    root.mkdir(parents=True, exist_ok=True)
    for rel, content in layout.items():
        path = root.joinpath(*rel.split("/"))
        if content is None:
            path.mkdir(parents=True, exist_ok=True)
            continue
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content)
    return root


@pytest.fixture
def populate() -> Callable[[Path, Layout], Path]:
    """Return a helper that writes a file layout under a root."""
    return _populate


@pytest.fixture
def sample_dirs(tmp_path: Path) -> tuple[Path, Path]:
    """Create two directory trees with known differences.

    Structure:
        left/
            common.txt          (identical in both)
            modified.txt        (different content and size)
            left_only.txt       (only in left)
            sub/
                nested.txt      (identical in both)
                left_nested.txt (only in left)
            .hidden             (hidden file)
        right/
            common.txt          (identical in both)
            modified.txt        (different content and size)
            right_only.txt      (only in right)
            sub/
                nested.txt      (identical in both)
                right_nested.txt(only in right)
            .hidden             (hidden file, different content)
    """
    left = _populate(
        tmp_path / "left",
        {
            "common.txt": "same content\n",
            "modified.txt": "original line\n",
            "left_only.txt": "left only\n",
            "sub/nested.txt": "nested same\n",
            "sub/left_nested.txt": "left nested\n",
            ".hidden": "hidden left\n",
        },
    )
    right = _populate(
        tmp_path / "right",
        {
            "common.txt": "same content\n",
            "modified.txt": "changed line\n",
            "right_only.txt": "right only\n",
            "sub/nested.txt": "nested same\n",
            "sub/right_nested.txt": "right nested\n",
            ".hidden": "hidden right\n",
        },
    )
    return left, right


@pytest.fixture
def hello_world_dirs(tmp_path: Path) -> tuple[Path, Path]:
    """Same-sized ``a/x.txt`` on both sides with different content."""
    left = _populate(tmp_path / "left", {"a/x.txt": "hello12345"})
    right = _populate(tmp_path / "right", {"a/x.txt": "world12345"})
    return left, right


@pytest.fixture
def left_only_tree_dirs(tmp_path: Path) -> tuple[Path, Path]:
    """Left has a non-empty ``b/`` that right lacks entirely."""
    left = _populate(
        tmp_path / "left",
        {
            "same.txt": "same\n",
            "b/one.txt": "one\n",
            "b/deeper/two.txt": "two\n",
        },
    )
    right = _populate(tmp_path / "right", {"same.txt": "same\n"})
    return left, right
