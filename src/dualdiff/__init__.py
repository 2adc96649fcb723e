"""Dual-panel terminal directory comparison."""

__version__ = "0.1.0"
