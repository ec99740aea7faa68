"""Centralized logging configuration for the image migrator.

``LOG_LEVEL`` picks the level (DEBUG, INFO, WARNING, ERROR, CRITICAL) and
``LOG_FORMAT`` picks between the "structured" and "simple" layouts.
"""

import os
import sys
import logging
from typing import Dict, Optional

DEFAULT_LOGGER_NAME = "image-migrator"

# Records are migrated on pool threads, so the thread name is part of every line
STRUCTURED_FORMAT = (
    "%(asctime)s | %(name)s | %(levelname)-8s | %(threadName)s | "
    "%(filename)s:%(lineno)d | %(funcName)s() | %(message)s"
)
SIMPLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

FORMATS: Dict[str, str] = {
    "structured": STRUCTURED_FORMAT,
    "simple": SIMPLE_FORMAT,
}

# Set by apply_log_level; takes precedence over LOG_LEVEL
_level_override: Optional[str] = None


def _resolve_level(level: Optional[str]) -> int:
    """Explicit level, then apply_log_level, then LOG_LEVEL; unknown names mean INFO."""
    name = (level or _level_override or os.getenv("LOG_LEVEL", "INFO")).upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def _build_formatter(format_type: str) -> logging.Formatter:
    chosen = os.getenv("LOG_FORMAT", format_type).lower()
    if chosen == "structured":
        return logging.Formatter(STRUCTURED_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    return logging.Formatter(FORMATS.get(chosen, SIMPLE_FORMAT))


def setup_logger(
    name: str = DEFAULT_LOGGER_NAME,
    level: Optional[str] = None,
    format_type: str = "structured",
) -> logging.Logger:
    """
    Configure and return the named logger, writing to stdout.

    Args:
        name: Logger name
        level: Level override; when omitted LOG_LEVEL applies
        format_type: "structured" or "simple"; LOG_FORMAT wins when set

    Calling this twice for the same name reuses the existing handler.
    """
    logger = logging.getLogger(name)
    logger.setLevel(_resolve_level(level))

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(_build_formatter(format_type))
        logger.addHandler(handler)

    logger.propagate = False
    return logger


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """Shorthand for ``setup_logger(name)`` with environment defaults."""
    return setup_logger(name)


def apply_log_level(level: str) -> None:
    """
    Switch every image-migrator logger to ``level``.

    Loggers that already exist (module-level ones are created at import) are
    updated in place, and loggers set up afterwards start at ``level`` too.
    """
    global _level_override
    _level_override = level
    resolved = _resolve_level(level)
    prefix = f"{DEFAULT_LOGGER_NAME}."
    for name in list(logging.Logger.manager.loggerDict):
        if name == DEFAULT_LOGGER_NAME or name.startswith(prefix):
            logging.getLogger(name).setLevel(resolved)
