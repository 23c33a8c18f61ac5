"""Persistent cache error types."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import Path


class CacheError(OSError):
    """Base class for cache file failures."""

    def __init__(self, message: str, *, path: Path) -> None:
        """Record the file the failure relates to."""
        self.path = path
        super().__init__(message)


class CacheReadError(CacheError):
    """Raised when a cache file exists but cannot be read or decoded."""

    @classmethod
    def for_path(cls, path: Path, reason: str) -> CacheReadError:
        """Return an error describing why ``path`` could not be loaded."""
        return cls(f"cannot read cache file {path}: {reason}", path=path)


class CacheWriteError(CacheError):
    """Raised when a cache file cannot be replaced."""

    @classmethod
    def for_path(cls, path: Path, reason: str) -> CacheWriteError:
        """Return an error describing why ``path`` could not be written."""
        return cls(f"cannot write cache file {path}: {reason}", path=path)
