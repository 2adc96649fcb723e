"""Public API for dualdiff.output."""

from __future__ import annotations

from dualdiff.output.simple_output import SimpleRenderer

__all__ = [
    "SimpleRenderer",
]
