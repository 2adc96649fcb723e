"""Entry filtering while scanning: hidden names, gitignore, glob patterns."""

from __future__ import annotations

from dataclasses import dataclass
from fnmatch import fnmatch
from typing import TYPE_CHECKING

from pathspec import GitIgnoreSpec

from dualdiff.core.paths import ancestor_dirs, resolve

if TYPE_CHECKING:
    from pathlib import Path

GITIGNORE_FILENAME = ".gitignore"
HIDDEN_PREFIX = "."


@dataclass(frozen=True)
class FilterConfig:
    """Immutable configuration for entry filtering.

    The defaults show everything, so both trees are compared in full.
    Filters are applied in order: hidden -> gitignore -> include -> exclude.
    Include patterns only restrict files; directories are always traversed.
    """

    respect_gitignore: bool = False
    include_hidden: bool = True
    include_patterns: tuple[str, ...] = ()
    exclude_patterns: tuple[str, ...] = ()


class FileFilter:
    """Decides, entry by entry, what a scan reports.

    One instance belongs to one scan of one root: ``.gitignore`` files are
    collected as their directories are visited.
    """

    def __init__(self, config: FilterConfig | None = None) -> None:
        """Initialize the filter with the given configuration."""
        self._config = config or FilterConfig()
        self._gitignore_specs: dict[str, GitIgnoreSpec] = {}

    @property
    def config(self) -> FilterConfig:
        """The configuration in use."""
        return self._config

    def enter_directory(self, rel_dir: str, dir_path: Path) -> None:
        """Collect the ``.gitignore`` of a directory about to be listed."""
        if not self._config.respect_gitignore:
            return
        gitignore_path = dir_path / GITIGNORE_FILENAME
        try:
            if gitignore_path.is_file():
                lines = gitignore_path.read_text(errors="replace").splitlines()
                self._gitignore_specs[rel_dir] = GitIgnoreSpec.from_lines(lines)
        except OSError:
            return

    def enter_ancestors(self, relative_path: str, root: Path) -> None:
        """Collect the ``.gitignore`` files above *relative_path* for a subtree scan."""
        for rel_dir in ancestor_dirs(relative_path):
            self.enter_directory(rel_dir, resolve(root, rel_dir))

    def excludes(self, relative_path: str, name: str, *, is_dir: bool) -> bool:
        """Return True if the entry must not be reported."""
        if not self._config.include_hidden and name.startswith(HIDDEN_PREFIX):
            return True
        if self._config.respect_gitignore and self._is_gitignored(relative_path, is_dir=is_dir):
            return True
        if not is_dir and not self._matches_include(relative_path):
            return True
        return self._matches_exclude(relative_path)

    def _is_gitignored(self, relative_path: str, *, is_dir: bool) -> bool:
        """Check if a path is matched by any applicable .gitignore spec."""
        if not self._gitignore_specs:
            return False
        check_suffix = "/" if is_dir else ""
        for ancestor in ancestor_dirs(relative_path):
            spec = self._gitignore_specs.get(ancestor)
            if spec is None:
                continue
            local_path = relative_path[len(ancestor) + 1 :] if ancestor else relative_path
            if spec.match_file(local_path + check_suffix):
                return True
        return False

    def _matches_include(self, relative_path: str) -> bool:
        """Check if path matches any include pattern. True if no patterns defined."""
        if not self._config.include_patterns:
            return True
        return any(fnmatch(relative_path, p) for p in self._config.include_patterns)

    def _matches_exclude(self, relative_path: str) -> bool:
        """Check if path matches any exclude pattern. False if no patterns defined."""
        if not self._config.exclude_patterns:
            return False
        return any(fnmatch(relative_path, p) for p in self._config.exclude_patterns)
