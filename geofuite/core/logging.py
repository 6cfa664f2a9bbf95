"""
GeoFuite - Logging Configuration
Sets up the "geofuite" logger tree used by every module.
"""

import logging
import sys
from typing import Optional, TextIO

from geofuite.core.config import settings

APP_LOGGER_NAME = "geofuite"

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers kept at WARNING
NOISY_LOGGERS = ("httpx", "httpcore", "multipart")


def resolve_level(level: Optional[str] = None) -> int:
    """
    Turn a level name into a logging constant.

    Falls back to the configured level, then to DEBUG in debug mode
    and INFO otherwise when the name is unknown.
    """
    name = (level or settings.log_level or "").upper()
    value = logging.getLevelName(name)
    if isinstance(value, int):
        return value
    return logging.DEBUG if settings.debug else logging.INFO


def setup_logging(
    level: Optional[str] = None,
    format_string: Optional[str] = None,
    stream: Optional[TextIO] = None
) -> logging.Logger:
    """
    Configure and return the application logger.

    Safe to call more than once: the handler installed by a previous call
    is replaced rather than duplicated.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_string: Custom format string for log messages
        stream: Output stream (stdout by default)

    Returns:
        Configured "geofuite" logger
    """
    log_level = resolve_level(level)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter(format_string or DEFAULT_FORMAT, datefmt=DATE_FORMAT))
    handler.set_name("geofuite-console")

    logger = logging.getLogger(APP_LOGGER_NAME)
    for existing in list(logger.handlers):
        if existing.get_name() == "geofuite-console":
            logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(log_level)
    logger.propagate = False

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.debug(f"Logging configured at {logging.getLevelName(log_level)}")
    return logger
