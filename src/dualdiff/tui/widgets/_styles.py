"""Shared status styles and display helpers for TUI widgets."""

from __future__ import annotations

import time

STATUS_STYLES: dict[str, str] = {
    "identical": "default",
    "different": "red",
    "type_conflict": "bold magenta",
    "left_only": "yellow",
    "right_only": "green",
    "error": "bold red on grey23",
    "pending": "dim italic",
}

_SIZE_UNITS = ("K", "M", "G", "T")
SIZE_WIDTH = 6
TIME_WIDTH = 16


def format_size(size: int | None) -> str:
    """Format a byte count in six columns, e.g. ``   12B`` or ``  4.0K``."""
    if size is None:
        return " " * SIZE_WIDTH
    if size < 1024:
        return f"{size:>5}B"
    value = float(size)
    for unit in _SIZE_UNITS:
        value /= 1024
        if value < 1024 or unit == _SIZE_UNITS[-1]:
            return f"{value:>5.1f}{unit}"
    return f"{value:>5.1f}{_SIZE_UNITS[-1]}"


def format_time(timestamp: float | None) -> str:
    """Format a modification time as local ``YYYY-MM-DD HH:MM``."""
    if timestamp is None:
        return " " * TIME_WIDTH
    return time.strftime("%Y-%m-%d %H:%M", time.localtime(timestamp))
