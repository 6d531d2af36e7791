"""Logging configuration for the codex_analysis package logger."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from codex_analysis.constants import LOG_FILE_BACKUP_COUNT, LOG_FILE_MAX_BYTES

PACKAGE_LOGGER = "codex_analysis"


def configure_logging(log_level: str = "WARNING", log_file: str | Path | None = None) -> None:
    """Configure the package logger.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional path for a rotating log file. Logs go to stderr
            when no file is given.
    """
    level = getattr(logging, log_level.upper(), logging.WARNING)

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    # Keep package records out of the host's root handlers
    logger.propagate = False
    logger.handlers.clear()

    if level == logging.DEBUG:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s",
            datefmt="%H:%M:%S",
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(message)s",
            datefmt="%H:%M:%S",
        )

    handler: logging.Handler
    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            log_path,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUP_COUNT,
            encoding="utf-8",
        )
    else:
        handler = logging.StreamHandler()

    handler.setLevel(level)
    handler.setFormatter(formatter)
    logger.addHandler(handler)
