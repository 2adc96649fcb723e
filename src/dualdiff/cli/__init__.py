"""Command-line interface for dualdiff."""
