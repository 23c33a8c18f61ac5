"""Incremental GitHub activity feed synchronization."""

from __future__ import annotations

from gitfeed.config import FeedConfig
from gitfeed.feed.models import Event
from gitfeed.sync import FeedSynchronizer, SyncCycleResult, SyncState

__all__ = ["Event", "FeedConfig", "FeedSynchronizer", "SyncCycleResult", "SyncState"]
