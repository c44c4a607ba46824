"""Process-wide log output for ``accounting_connect``.

The CLI root callback and ``server.create_app`` call :func:`configure_logging`
once; every other module just asks :func:`get_logger` for a child of the
``accounting_connect`` logger and never touches handlers.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "accounting_connect"
_LEVEL_ENV = "ACCOUNTING_CONNECT_LOG_LEVEL"
_CONFIGURED = False
_DEFAULT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def _level_from_name(value: str) -> int | None:
    value = value.strip().upper()
    if value.isdigit():
        return int(value)
    numeric = getattr(logging, value, None)
    return numeric if isinstance(numeric, int) else None


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    # Explicit name first, then ACCOUNTING_CONNECT_LOG_LEVEL, then INFO
    for candidate in (level, os.getenv(_LEVEL_ENV)):
        parsed = _level_from_name(candidate) if candidate else None
        if parsed is not None:
            return parsed
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Send package log records to ``stream``; later calls are no-ops.

    ``level`` may be a number or a name such as ``"debug"``. Without one, the
    ``ACCOUNTING_CONNECT_LOG_LEVEL`` variable decides, else ``INFO``.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)

    for placeholder in [h for h in logger.handlers if isinstance(h, logging.NullHandler)]:
        logger.removeHandler(placeholder)

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Named logger; stays silent until :func:`configure_logging` runs."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger"]
