"""Interactive textual front end for dualdiff."""

from dualdiff.tui.app import DualDiffApp

__all__ = ["DualDiffApp"]
