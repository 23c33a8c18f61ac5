"""Durable cache for the event history and freshness token."""

from __future__ import annotations

from .errors import CacheError, CacheReadError, CacheWriteError
from .storage import FeedCache

__all__ = ["CacheError", "CacheReadError", "CacheWriteError", "FeedCache"]
