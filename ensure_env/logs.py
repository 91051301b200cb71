"""
Log Stream

Every progress line goes to stderr as ``<LEVEL> <HH:MM:SS:nanoseconds> <message>``.
"""

import logging
import sys
from datetime import datetime
from typing import Mapping, Optional, TextIO

LOGGER_NAME = "ensure_env"

# Environment variables that turn on command tracing
DEBUG_VARIABLES = ("DEBUG", "PYENV_DEBUG")

LEVEL_NAMES = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "ERROR",
}


class TimestampFormatter(logging.Formatter):
    """Formats records as ``LEVEL HH:MM:SS:nnnnnnnnn message``."""

    def format(self, record: logging.LogRecord) -> str:
        level = LEVEL_NAMES.get(record.levelno, record.levelname)
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        nanos = int(round((record.created % 1) * 1_000_000_000)) % 1_000_000_000
        line = f"{level} {stamp}:{nanos:09d} {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def debug_requested(environ: Mapping[str, str]) -> bool:
    """Whether any of the debug variables is set to a non-empty value."""
    return any(environ.get(name) for name in DEBUG_VARIABLES)


def configure_logging(debug: bool = False, stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Attach the stderr handler to the package logger.

    Calling it again replaces the previous handler, so the CLI can be
    invoked repeatedly in one process (tests do).

    Args:
        debug: Log command traces as well
        stream: Destination stream, stderr by default

    Returns:
        The package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_ensure_env", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(TimestampFormatter())
    handler._ensure_env = True
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.propagate = False
    return logger
