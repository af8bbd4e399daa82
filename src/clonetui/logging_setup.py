from __future__ import annotations

import logging
from pathlib import Path

LOGGER_NAME = "clonetui"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def setup_logging(log_file: Path, level: str | int = "INFO") -> logging.Logger:
    """Attach an append-only file sink to the application logger.

    The terminal belongs to the TUI, so the logger does not propagate to the
    root handlers. Raises OSError when the log file cannot be opened.
    """
    handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger = logging.getLogger(LOGGER_NAME)
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger
