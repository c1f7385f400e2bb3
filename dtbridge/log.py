"""Logging for dtbridge.

Everything goes through the ``"dtbridge"`` logger. Malformed optional parts
of a DataTables request (unknown column indexes, bad sort directions,
nameless column descriptors) are reported here and skipped; only paging
and builder configuration problems raise.
"""

from __future__ import annotations

import logging
import sys

from collections.abc import Mapping
from typing import Any


LOGGER_NAME = "dtbridge"

REDACTED = "[REDACTED]"


class _LoggerHolder:
    """Lazily configured package logger."""

    instance: logging.Logger | None = None


def get_logger() -> logging.Logger:
    """Return the package logger, configuring it on first use.

    The level and format come from the ``log`` settings section. A stderr
    handler is attached unless the host application already added one.
    """
    if _LoggerHolder.instance is not None:
        return _LoggerHolder.instance

    from .config import get_settings  # pylint: disable=import-outside-toplevel

    log_settings = get_settings().log
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_settings.level)
    if not logger.handlers:
        stream = logging.StreamHandler(sys.stderr)
        stream.setFormatter(logging.Formatter(log_settings.format))
        logger.addHandler(stream)

    _LoggerHolder.instance = logger
    return logger


def debug(msg: str) -> None:
    """Log at DEBUG; used for translated paging settings and script assembly."""
    get_logger().debug(msg)


def info(msg: str) -> None:
    get_logger().info(msg)


def warn(msg: str) -> None:
    """Log a skipped or ignored piece of input.

    Parameters
    ----------
    msg : str
        What was skipped and why.
    """
    get_logger().warning(msg)


def error(msg: str) -> None:
    get_logger().error(msg)


def exception(msg: str) -> None:
    """Log ``msg`` with the active traceback; call from an ``except`` block."""
    get_logger().exception(msg)


def set_level(level: int | str) -> None:
    """Change the package log level.

    Parameters
    ----------
    level : int or str
        A ``logging`` constant or its name, case-insensitive.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    get_logger().setLevel(level)


def enable_debug() -> None:
    """Shortcut for ``set_level(logging.DEBUG)``."""
    set_level(logging.DEBUG)


# Substrings of request parameter names whose values stay out of the logs
_SENSITIVE_KEYS = (
    "csrf",
    "token",
    "password",
    "secret",
    "api_key",
    "apikey",
    "authorization",
    "credential",
)


def _is_sensitive(key: Any) -> bool:
    name = str(key).lower()
    return any(marker in name for marker in _SENSITIVE_KEYS)


def redact_sensitive_data(data: Any, max_depth: int = 5) -> Any:
    """Copy request data for logging with secret-looking values masked.

    Grids usually post a CSRF token alongside the paging parameters (see
    ``extraFields``); any key containing one of the sensitive markers has
    its value replaced by ``"[REDACTED]"``. Column ``data`` values are field
    names, not secrets, so only keys are inspected.

    Parameters
    ----------
    data : Any
        Decoded request parameters.
    max_depth : int, optional
        Nesting levels to descend before giving up with ``"[MAX_DEPTH]"``.

    Returns
    -------
    Any
        The masked copy. Scalars are returned unchanged.
    """
    if max_depth <= 0:
        return "[MAX_DEPTH]"

    if isinstance(data, Mapping):
        return {
            key: REDACTED if _is_sensitive(key) else redact_sensitive_data(value, max_depth - 1)
            for key, value in data.items()
        }

    if isinstance(data, (list, tuple)):
        return [redact_sensitive_data(item, max_depth - 1) for item in data]

    return data
