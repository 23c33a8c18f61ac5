"""Logging setup helpers.

gitfeed modules log through :mod:`logging` with lazy percent-style
interpolation. The sync engine swallows network and storage failures, and
these records are the only place such failures become visible.
Hosts call :func:`configure_logging` once at start-up.

Example:
>>> from gitfeed.logging import configure_logging, get_logger
>>> configure_logging("debug")
('DEBUG', False)
>>> get_logger(__name__).info("Fetched %d events for %s", 3, "octo/reef")

"""

from __future__ import annotations

import enum
import logging

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class LogLevel(enum.StrEnum):
    """Supported log level names."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def normalize_log_level(level: str | None) -> tuple[str, bool]:
    """Normalize a log level string and report invalid inputs.

    Parameters
    ----------
    level : str | None
        Raw log level, typically read from ``GITFEED_LOG_LEVEL``.

    Returns
    -------
    tuple[str, bool]
        The normalized level and ``True`` when the input was unusable and
        ``INFO`` was substituted.

    """
    if not level:
        return ("INFO", True)

    normalized = level.strip().upper()
    if normalized == LogLevel.WARN:
        return (LogLevel.WARNING.value, False)
    if normalized in LogLevel.__members__:
        return (normalized, False)

    return ("INFO", True)


def configure_logging(level: str | None, *, force: bool = False) -> tuple[str, bool]:
    """Configure root logging and return the normalized level."""
    normalized, invalid = normalize_log_level(level)
    logging.basicConfig(level=normalized, format=_FORMAT, force=force)
    return (normalized, invalid)


def get_logger(name: str) -> logging.Logger:
    """Return the module logger for ``name``."""
    return logging.getLogger(name)


__all__ = [
    "LogLevel",
    "configure_logging",
    "get_logger",
    "normalize_log_level",
]
