"""Plain line-per-entry renderer used by ``--simple``."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console

from dualdiff.core.models import DiffKind, Side, Status

if TYPE_CHECKING:
    from dualdiff.core.models import Node, TreeStats
    from dualdiff.core.tree import ComparisonTree

STATUS_PREFIXES: dict[Status, str] = {
    Status.left_only: "[L]",
    Status.right_only: "[R]",
    Status.different: "[D]",
    Status.error: "[E]",
    Status.pending: "[?]",
}

LEGEND = "Legend: [L] left only, [R] right only, [D] different, [E] error"


class SimpleRenderer:
    """Writes one line per differing, one-sided or unreadable entry.

    Identical entries are omitted. A one-sided directory is reported once;
    its contents are implied. Differing directories are not listed
    themselves, only the entries that make them differ, unless the path is
    a file on one side and a directory on the other. Directory paths end
    with ``/``.

    Output is plain text (no markup, no highlighting) so it can be piped.
    """

    def __init__(self, console: Console | None = None) -> None:
        """Initialize with an optional Rich console.

        Args:
            console: Rich Console instance. Defaults to a plain-text Console.
        """
        self._console = console or Console(highlight=False, markup=False, soft_wrap=True)

    def render(self, tree: ComparisonTree) -> None:
        """Render the header, one line per reported entry, and the stats line."""
        self.render_header(tree)
        for line in self.lines(tree):
            self._console.print(line)
        self.render_stats(tree.stats())

    def render_header(self, tree: ComparisonTree) -> None:
        """Print both roots and the legend."""
        self._console.print(f"Left:  {tree.root_of(Side.left)}")
        self._console.print(f"Right: {tree.root_of(Side.right)}")
        self._console.print(LEGEND)
        self._console.print()

    def render_stats(self, stats: TreeStats) -> None:
        """Print the summary count line."""
        self._console.print()
        self._console.print(
            f"{stats.total} files compared: "
            f"{stats.different} different, "
            f"{stats.left_only} left only, "
            f"{stats.right_only} right only, "
            f"{stats.error} errors"
        )

    @staticmethod
    def lines(tree: ComparisonTree) -> list[str]:
        """Return the entry lines in display order."""
        out: list[str] = []
        stack: list[Node] = list(reversed(tree.root.children))
        while stack:
            node = stack.pop()
            prefix = STATUS_PREFIXES.get(node.status)
            if prefix is None:
                continue
            if node.is_dir and node.status == Status.different:
                if node.diff_kind is DiffKind.type_conflict:
                    out.append(f"{prefix} {node.relative_path}/")
                stack.extend(reversed(node.children))
                continue
            suffix = "/" if node.is_dir else ""
            out.append(f"{prefix} {node.relative_path}{suffix}")
            if node.is_dir and node.status in (Status.error, Status.pending):
                stack.extend(reversed(node.children))
        return out
