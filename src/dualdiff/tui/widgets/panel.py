"""One side of the dual directory view."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.text import Text
from textual.widgets import Static

from dualdiff.tui.widgets._styles import (
    SIZE_WIDTH,
    STATUS_STYLES,
    TIME_WIDTH,
    format_size,
    format_time,
)

if TYPE_CHECKING:
    from dualdiff.core.models import PanelView, Row, Side

_BLANK_COLUMNS = " " * (SIZE_WIDTH + TIME_WIDTH + 2)


def render_row(row: Row) -> str:
    """Return the plain text of one row; placeholders are blank."""
    if not row.present:
        return ""
    indent = "  " * max(0, row.depth - 1)
    return f"{format_size(row.size)} {format_time(row.modified)} {indent}{row.glyph} {row.name}"


def render_panel(view: PanelView, *, active: bool, height: int) -> Text:
    """Render the visible window of *view* as styled text.

    The cursor row is reversed in the active panel and underlined in the
    other one, so the aligned position stays visible on both sides.
    """
    text = Text(no_wrap=True, overflow="ellipsis")
    start = view.scroll_offset
    window = view.rows[start : start + max(1, height)]
    for offset, row in enumerate(window):
        if offset:
            text.append("\n")
        style = STATUS_STYLES.get(row.status_class, "default")
        if view.cursor == start + offset:
            style = f"{style} reverse" if active else f"{style} underline"
        line = render_row(row) or _BLANK_COLUMNS
        text.append(line, style=style)
    return text


class DirectoryPanel(Static):
    """Scrolling list of rows for one root."""

    DEFAULT_CSS = """
    DirectoryPanel {
        width: 1fr;
        height: 1fr;
        border: round $panel;
        padding: 0 1;
    }
    DirectoryPanel.-active {
        border: round $accent;
    }
    """

    def __init__(self, side: Side, *, id: str | None = None) -> None:  # noqa: A002
        super().__init__("", id=id)
        self.side = side

    @property
    def viewport_height(self) -> int:
        """Rows that fit inside the border."""
        return max(1, self.content_size.height)

    def show(self, view: PanelView, *, active: bool) -> None:
        """Redraw the panel from a snapshot."""
        self.set_class(active, "-active")
        self.border_title = str(view.root)
        self.update(render_panel(view, active=active, height=self.viewport_height))
