"""Logging for the ``pocket_pulse`` package.

Modules log through ``get_logger(__name__)`` and stay silent until an entry
point such as ``scripts/process_recurring.py`` calls ``configure_logging``.
"""

from __future__ import annotations

import logging

from .config import LOG_LEVEL

PACKAGE_LOGGER = "pocket_pulse"
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

_handler: logging.Handler | None = None

logging.getLogger(PACKAGE_LOGGER).addHandler(logging.NullHandler())


def _level(value: int | str) -> int:
    if isinstance(value, int):
        return value
    name = str(value).strip().upper()
    if name.isdigit():
        return int(name)
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: int | str | None = None) -> logging.Logger:
    """Send package records to stderr at ``level`` (``POCKET_PULSE_LOG_LEVEL`` by default).

    The handler is installed once; later calls only change the level.
    """
    global _handler
    logger = logging.getLogger(PACKAGE_LOGGER)
    if _handler is None:
        _handler = logging.StreamHandler()
        _handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(_handler)
        logger.propagate = False
    logger.setLevel(_level(LOG_LEVEL if level is None else level))
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
