"""Relative path helpers shared by both sides of a comparison.

Relative paths are POSIX-style strings with no leading or trailing
separator; the root itself is the empty string.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


def join_posix(directory: str, name: str) -> str:
    """Join a relative directory and name with POSIX separator."""
    if directory:
        return f"{directory}/{name}"
    return name


def parent_of(rel_path: str) -> str | None:
    """Return the parent relative path, or None for the root."""
    if not rel_path:
        return None
    head, sep, _ = rel_path.rpartition("/")
    return head if sep else ""


def name_of(rel_path: str) -> str:
    """Return the final component of a relative path."""
    return rel_path.rpartition("/")[2]


def depth_of(rel_path: str) -> int:
    """Return the nesting depth; top-level entries have depth 1."""
    if not rel_path:
        return 0
    return rel_path.count("/") + 1


def ancestor_dirs(rel_path: str) -> list[str]:
    """Return all ancestor directory prefixes for a relative path.

    For 'a/b/c.txt', returns ['', 'a', 'a/b'].
    For 'file.txt', returns [''].
    """
    parts = rel_path.split("/")
    ancestors: list[str] = [""]
    for i in range(len(parts) - 1):
        ancestors.append("/".join(parts[: i + 1]))
    return ancestors


def resolve(root: Path, rel_path: str) -> Path:
    """Map a relative path onto a concrete root."""
    if not rel_path:
        return root
    return root.joinpath(*rel_path.split("/"))


def match_path(rel_path: str, source_root: Path, target_root: Path) -> tuple[Path, Path]:
    """Return the (source, target) absolute pair for one relative path."""
    return resolve(source_root, rel_path), resolve(target_root, rel_path)
