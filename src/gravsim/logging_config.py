"""
Logging setup for scripts and demos.

Library modules only create loggers (logging.getLogger(__name__)) and never
attach handlers. A script calls setup_logging() once to route every record
under the 'gravsim' namespace to stdout and, optionally, to a file.
"""

from __future__ import annotations
import logging
import sys

PACKAGE_LOGGER = "gravsim"
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


def _handlers(log_file: str | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file, mode="w", encoding="utf-8"))
    return handlers


def setup_logging(level: int = logging.INFO, log_file: str | None = None) -> logging.Logger:
    """
    Route package log records to stdout, and to `log_file` if given.

    Calling it again replaces (and closes) the handlers of the previous call.

    Args:
        level: Threshold for the package logger, e.g. logging.DEBUG
        log_file: Optional path; the file is truncated

    Returns:
        The 'gravsim' logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in _handlers(log_file):
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(level)
    logger.debug("logging configured at %s", logging.getLevelName(level))
    return logger
