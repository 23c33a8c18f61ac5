"""Merge newly fetched events into the bounded, newest-first history."""

from __future__ import annotations

import asyncio
import typing as typ

from .observability import SyncEventLogger

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from gitfeed.cache.storage import FeedCache

    from .models import Event

    HistoryListener: typ.TypeAlias = cabc.Callable[[tuple[Event, ...]], None]

DEFAULT_HISTORY_LIMIT = 50


def merge(
    new_batch: cabc.Sequence[Event],
    current_history: cabc.Sequence[Event],
    *,
    limit: int = DEFAULT_HISTORY_LIMIT,
) -> list[Event]:
    """Prepend ``new_batch`` to ``current_history`` and keep the first ``limit``.

    No deduplication is performed: an event fetched twice appears twice.

    Examples
    --------
    >>> merge(["c"], ["b", "a"], limit=2)
    ['c', 'b']

    """
    if limit < 0:
        msg = f"history limit must not be negative, got {limit}"
        raise ValueError(msg)
    return [*new_batch, *current_history][:limit]


class HistoryMerger:
    """Own the in-memory history and apply fetched batches to it.

    Each non-empty batch is merged, written to the cache in a worker thread
    and announced to listeners on the event loop. Batches are applied one at
    a time so the persisted file always matches a snapshot that listeners
    have seen.
    """

    def __init__(
        self,
        cache: FeedCache,
        *,
        limit: int = DEFAULT_HISTORY_LIMIT,
        event_logger: SyncEventLogger | None = None,
    ) -> None:
        """Start with an empty history bound to ``cache``."""
        self._cache = cache
        self._limit = limit
        self._event_logger = event_logger or SyncEventLogger()
        self._history: tuple[Event, ...] = ()
        self._merged = False
        self._listeners: list[HistoryListener] = []
        self._lock = asyncio.Lock()

    @property
    def history(self) -> tuple[Event, ...]:
        """Return the current snapshot, newest first."""
        return self._history

    def load(self, history: cabc.Sequence[Event]) -> bool:
        """Replace the snapshot with previously persisted history.

        The loaded history is trimmed to the limit but not written back.
        Once a batch has been applied the snapshot is authoritative and
        ``load`` returns ``False`` without changing it.
        """
        if self._merged:
            return False
        self._history = tuple(history[: self._limit])
        return True

    def subscribe(self, listener: HistoryListener) -> None:
        """Register a callback invoked with each new snapshot."""
        self._listeners.append(listener)

    async def apply(self, new_batch: cabc.Sequence[Event]) -> bool:
        """Merge ``new_batch`` and persist the result.

        Returns ``False`` without touching the cache when the batch is empty.
        """
        if not new_batch:
            return False

        async with self._lock:
            updated = tuple(merge(new_batch, self._history, limit=self._limit))
            self._history = updated
            self._merged = True
            await asyncio.to_thread(self._cache.save_history, updated)

        self._event_logger.log_history_merged(len(new_batch), len(updated))
        for listener in list(self._listeners):
            listener(updated)
        return True
