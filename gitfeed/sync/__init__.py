"""Synchronization orchestrator tying discovery, fetch and merge together."""

from __future__ import annotations

from .orchestrator import FeedSynchronizer, SyncCycleResult, SyncState

__all__ = ["FeedSynchronizer", "SyncCycleResult", "SyncState"]
