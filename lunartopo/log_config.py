"""Logging configuration for the lunar topology engine."""

import logging
import sys
from pathlib import Path

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_DATEFMT = "%H:%M:%S"


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the specified name.

    Args:
        name: Logger name, typically __name__ from calling module.

    Returns:
        Logger instance under the ``lunartopo`` hierarchy when called from
        inside the package.
    """
    return logging.getLogger(name)


def set_global_log_level(
    level: int,
    *,
    fmt: str = DEFAULT_FORMAT,
    datefmt: str = DEFAULT_DATEFMT,
    log_file: Path | None = None,
) -> None:
    """Configure root logging and the level of all lunartopo loggers.

    Console output always goes to stderr. When ``log_file`` is given, records
    are also appended to that file with the same format.

    Args:
        level: Logging level (e.g., logging.DEBUG, logging.INFO).
        fmt: Record format string.
        datefmt: ``asctime`` format string.
        log_file: Optional file receiving a copy of every record.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=level,
        format=fmt,
        datefmt=datefmt,
        handlers=handlers,
        force=True,
    )

    logging.getLogger("lunartopo").setLevel(level)
