"""Logging setup for the dualdiff package."""

from __future__ import annotations

import logging
from pathlib import Path

DEFAULT_LOG_FILE = Path("dualdiff.log")
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_PACKAGE_LOGGER = "dualdiff"


def configure_logging(verbose: bool = False, log_file: Path | None = None) -> logging.Logger:
    """Configure the package logger.

    Without *verbose* the package logs nowhere. With it, everything down to
    DEBUG is written to *log_file*, never to the terminal, so the
    interactive view is not disturbed.

    Args:
        verbose: Enable the diagnostic log file.
        log_file: Destination of the log; defaults to ``dualdiff.log``.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(_PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if not verbose:
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.WARNING)
        logger.propagate = False
        return logger

    handler = logging.FileHandler(log_file or DEFAULT_LOG_FILE, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    logger.debug("Logging to %s", log_file or DEFAULT_LOG_FILE)
    return logger
