"""Logging setup for the sync CLI.

Library diagnostics go through the root logger configured by
``setup_logging``. Run trace lines go to a separate logger from
``trace_logger``: the CLI prints the trace itself, so that logger never
reaches the root handlers and only writes to an optional trace file.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
TRACE_LOGGER_NAME = "folder_image_sync.trace"


def parse_level(level: str) -> int:
    """Translate ``"debug"``, ``"WARNING"`` or ``"20"`` into a logging level."""
    if level.strip().isdigit():
        return int(level)
    value = getattr(logging, level.upper(), None)
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def _file_handler(log_file: Path) -> logging.Handler:
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    logging.basicConfig(level=parse_level(level), format=LOG_FORMAT)
    if log_file:
        logging.getLogger().addHandler(_file_handler(log_file))


def trace_logger(log_file: Optional[Path] = None) -> logging.Logger:
    """Return the run trace logger, reset to write only to ``log_file``."""
    logger = logging.getLogger(TRACE_LOGGER_NAME)
    logger.propagate = False
    logger.setLevel(logging.INFO)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    # Without a handler the lastResort handler would echo warnings to stderr.
    logger.addHandler(_file_handler(log_file) if log_file else logging.NullHandler())
    return logger
