"""Status bar widget showing filter, scan progress and summary counts."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.markup import escape
from textual.widgets import Static

if TYPE_CHECKING:
    from dualdiff.core.models import TreeStats, ViewSnapshot

FILTER_LABELS: dict[str, str] = {
    "all": "All",
    "different_only": "Different",
    "different_no_orphans": "Different, no orphans",
}


def status_text(snapshot: ViewSnapshot, stats: TreeStats) -> str:
    """Build the status line markup for one tick."""
    parts = [
        f"[bold]{snapshot.active_side.value}[/bold]",
        f"filter: {FILTER_LABELS[snapshot.filter_mode.value]}",
    ]
    if snapshot.scanning:
        parts.append(f"[italic]{snapshot.progress}[/italic]")
    else:
        parts.append(
            f"{stats.total} files "
            f"[red]{stats.different} different[/red] "
            f"[yellow]{stats.left_only} left only[/yellow] "
            f"[green]{stats.right_only} right only[/green] "
            f"[bold red]{stats.error} errors[/bold red]"
        )
    if snapshot.message:
        parts.append(f"[reverse] {escape(snapshot.message)} [/reverse]")
    return " | ".join(parts)


class StatusBar(Static):
    """Bottom bar displaying scan state and status breakdown."""

    DEFAULT_CSS = """
    StatusBar {
        dock: bottom;
        height: 1;
        background: $boost;
        color: $text;
        padding: 0 1;
    }
    """

    def show(self, snapshot: ViewSnapshot, stats: TreeStats) -> None:
        """Redraw the bar from a snapshot."""
        self.update(status_text(snapshot, stats))
