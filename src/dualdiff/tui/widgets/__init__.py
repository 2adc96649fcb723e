"""TUI widgets for the dual directory view."""

from dualdiff.tui.widgets.confirm import ConfirmCopyScreen
from dualdiff.tui.widgets.panel import DirectoryPanel
from dualdiff.tui.widgets.status_bar import StatusBar

__all__ = ["ConfirmCopyScreen", "DirectoryPanel", "StatusBar"]
