"""Logging configuration using loguru.

Runner modules log through stdlib ``logging``; the docker SDK and urllib3
do too.  ``setup_logging`` routes all of it into a single loguru sink on
stderr, keeping stdout free for pull progress and relayed job output.
"""

from __future__ import annotations

import inspect
import logging
import sys

from loguru import logger

from localci.runner.errors import ConfigError

_FORMAT = "<green>{time:HH:mm:ss}</green> <level>{level: <8}</level> {message}"

# At DEBUG the call site is worth the width.
_DEBUG_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> <level>{level: <8}</level> "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> {message}"
)

_CHATTY_LOGGERS = ("docker", "urllib3")


class _InterceptHandler(logging.Handler):
    """Forward stdlib records to loguru, attributed to the original caller."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "INFO") -> None:
    """Make loguru the only logging sink, writing to stderr at *level*.

    Raises ``ConfigError`` for a level name loguru does not know.
    """
    level = level.upper()
    try:
        severity = logger.level(level).no
    except ValueError as e:
        raise ConfigError(f"Unknown log level {level!r}") from e

    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format=_DEBUG_FORMAT if severity <= logger.level("DEBUG").no else _FORMAT,
        colorize=sys.stderr.isatty(),
    )

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)

    # The docker SDK logs every HTTP request; only show that when tracing.
    chatty_level = logging.DEBUG if severity <= logger.level("TRACE").no else logging.WARNING
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(chatty_level)

    logger.debug("Logging initialised (level={})", level)
