"""Tests for dualdiff.log."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from dualdiff.log import configure_logging

if TYPE_CHECKING:
    from pathlib import Path


class TestConfigureLogging:
    """Package logger setup."""

    def test_quiet(self) -> None:
        logger = configure_logging()
        assert logger.name == "dualdiff"
        assert logger.level == logging.WARNING
        assert not logger.propagate
        assert all(isinstance(h, logging.NullHandler) for h in logger.handlers)

    def test_verbose_writes_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "d.log"
        logger = configure_logging(verbose=True, log_file=log_file)
        logging.getLogger("dualdiff.core.tree").info("hello from the tree")
        for handler in logger.handlers:
            handler.flush()
        text = log_file.read_text()
        assert "| INFO | dualdiff.core.tree | hello from the tree" in text
        configure_logging()

    def test_reconfigure_replaces_handlers(self, tmp_path: Path) -> None:
        configure_logging(verbose=True, log_file=tmp_path / "a.log")
        logger = configure_logging(verbose=True, log_file=tmp_path / "b.log")
        assert len(logger.handlers) == 1
        configure_logging()
