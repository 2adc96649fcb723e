"""Textual TUI application for the dual directory view."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, ClassVar

from rich.markup import escape
from textual.app import App, ComposeResult, SuspendNotSupported
from textual.binding import Binding, BindingType
from textual.containers import Horizontal
from textual.widgets import Footer, Header

from dualdiff.core.controller import Command
from dualdiff.core.errors import DualDiffError
from dualdiff.core.models import CopyDirection, FilterMode, Side
from dualdiff.tui.widgets.confirm import ConfirmCopyScreen
from dualdiff.tui.widgets.panel import DirectoryPanel
from dualdiff.tui.widgets.status_bar import StatusBar

if TYPE_CHECKING:
    from dualdiff.core.controller import SyncController

logger = logging.getLogger(__name__)

TICK_INTERVAL = 1 / 20
MESSAGES_PER_TICK = 2000


class DualDiffApp(App[None]):
    """Two aligned panels over one comparison tree.

    The app owns no comparison state; every key becomes a controller
    command and every tick redraws from a fresh snapshot.
    """

    TITLE = "dualdiff"

    CSS = """
    #panels {
        height: 1fr;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("q", "quit", "Quit"),
        Binding("up,k", "command('navigate_up')", "Up", show=False),
        Binding("down,j", "command('navigate_down')", "Down", show=False),
        Binding("pageup", "command('page_up')", "Page up", show=False),
        Binding("pagedown", "command('page_down')", "Page down", show=False),
        Binding("home,ctrl+home", "command('top')", "Top", show=False),
        Binding("end,ctrl+end", "command('bottom')", "Bottom", show=False),
        Binding("left", "focus_side('left')", "Left panel", show=False),
        Binding("right", "focus_side('right')", "Right panel", show=False),
        Binding("tab", "command('switch_side')", "Switch", priority=True),
        Binding("enter", "activate", "Open/Expand"),
        Binding("plus,equals_sign", "command('expand_all')", "Expand all"),
        Binding("minus", "command('collapse_all')", "Collapse all"),
        Binding("1", "filter('all')", "All"),
        Binding("2", "filter('different_only')", "Different"),
        Binding("3", "filter('different_no_orphans')", "No orphans"),
        Binding("s", "command('swap_sides')", "Swap"),
        Binding("f5", "command('refresh')", "Refresh"),
        Binding("escape", "command('cancel')", "Cancel scan", show=False),
        Binding("ctrl+r", "copy('left_to_right')", "Copy ->"),
        Binding("ctrl+l", "copy('right_to_left')", "Copy <-"),
    ]

    def __init__(self, controller: SyncController) -> None:
        super().__init__()
        self._controller = controller

    @property
    def controller(self) -> SyncController:
        """The controller driving this view."""
        return self._controller

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="panels"):
            yield DirectoryPanel(Side.left, id="left-panel")
            yield DirectoryPanel(Side.right, id="right-panel")
        yield StatusBar()
        yield Footer()

    def on_mount(self) -> None:
        if self._controller.generation == 0:
            self._controller.refresh()
        self.set_interval(TICK_INTERVAL, self._tick)
        self.refresh_view()

    def on_unmount(self) -> None:
        self._controller.cancel()

    def on_resize(self) -> None:
        self.refresh_view()

    def _tick(self) -> None:
        was_scanning = self._controller.scanning
        changed = self._controller.tick(MESSAGES_PER_TICK)
        if changed or was_scanning:
            self.refresh_view()

    def refresh_view(self) -> None:
        """Redraw both panels and the status bar from a new snapshot."""
        panels = {panel.side: panel for panel in self.query(DirectoryPanel)}
        if not panels:
            return
        self._controller.viewport_height = panels[Side.left].viewport_height
        snapshot = self._controller.snapshot()
        for side, panel in panels.items():
            panel.show(snapshot.panel(side), active=side is snapshot.active_side)
        self.query_one(StatusBar).show(snapshot, self._controller.tree.stats())

    def action_command(self, command: str) -> None:
        """Dispatch a controller command by name."""
        self._controller.dispatch(Command(command))
        self.refresh_view()

    def action_focus_side(self, side: str) -> None:
        """Make the given panel active."""
        self._controller.dispatch(Command.switch_side, Side(side))
        self.refresh_view()

    def action_filter(self, mode: str) -> None:
        """Switch both panels to a filter mode."""
        self._controller.dispatch(Command.set_filter, FilterMode(mode))
        self.refresh_view()

    def action_activate(self) -> None:
        """Toggle a directory, or open a file in the external tool."""
        node = self._controller.cursor_node()
        if node is None:
            return
        if node.is_dir:
            self.action_command(Command.toggle_expand.value)
            return
        try:
            with self.suspend():
                self._controller.dispatch(Command.open_compare, node.relative_path)
        except SuspendNotSupported:
            self.notify("External tools need a real terminal", severity="warning")
        self.refresh_view()

    def action_copy(self, direction: str) -> None:
        """Ask for confirmation, then copy the cursor row in *direction*."""
        copy_direction = CopyDirection(direction)
        if self._controller.active_side is not copy_direction.source:
            return
        try:
            plan = self._controller.plan_copy(copy_direction)
        except DualDiffError as exc:
            self.notify(escape(str(exc)), severity="error")
            return

        def _on_confirm(confirmed: bool | None) -> None:
            if not confirmed:
                return
            try:
                self._controller.copy(plan.direction, plan.relative_path)
            except DualDiffError as exc:
                logger.warning("%s", exc)
                self.notify(escape(str(exc)), severity="error")
            self.refresh_view()

        self.push_screen(ConfirmCopyScreen(plan), _on_confirm)
