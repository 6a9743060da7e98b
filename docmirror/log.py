"""Logging setup for the docmirror command line.

Library modules only create module-level loggers; handlers are installed
by the entry point through configure_logging().
"""

import logging
import sys

LOGGER_NAME = "docmirror"

CONSOLE_FORMAT = "%(levelname)s | %(message)s"

_HANDLER_MARKER = "_docmirror_handler"


def configure_logging(level: str = "INFO", stream=None) -> logging.Logger:
    """Attach a single console handler to the package logger.

    Safe to call repeatedly: an existing docmirror handler is replaced
    rather than duplicated.

    Args:
        level: Level name such as "DEBUG" or "INFO" (unknown names fall back to INFO)
        stream: Output stream, stderr by default

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(_parse_level(level))

    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    setattr(handler, _HANDLER_MARKER, True)
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def _parse_level(level: str) -> int:
    value = logging.getLevelName(str(level or "INFO").strip().upper())
    return value if isinstance(value, int) else logging.INFO
