"""Refresh-cycle orchestration for the activity feed.

A cycle runs discovery once, then fetches every discovered repository
concurrently. Each events response is handed to two consumers: the token
consumer persists a new freshness token as soon as one arrives, and the
batch consumer merges non-empty batches into the history. A refresh request
made while a cycle is running joins that cycle instead of starting another.
"""

from __future__ import annotations

import asyncio
import dataclasses
import enum
import itertools
import typing as typ

from gitfeed.cache.storage import FeedCache
from gitfeed.common.time import utcnow
from gitfeed.feed.client import GitHubFeedClient, GitHubFeedClientConfig
from gitfeed.feed.discovery import RepositoryDiscovery
from gitfeed.feed.fetcher import ConditionalEventFetcher, FetchOutcome, StatusClass
from gitfeed.feed.merge import DEFAULT_HISTORY_LIMIT, HistoryMerger
from gitfeed.feed.observability import SyncCycleContext, SyncEventLogger

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    import httpx

    from gitfeed.config import FeedConfig
    from gitfeed.feed.merge import HistoryListener
    from gitfeed.feed.models import Event

    RefreshFinishedListener: typ.TypeAlias = cabc.Callable[[SyncCycleResult], None]


class SyncState(enum.StrEnum):
    """Phase of the synchronizer."""

    IDLE = "idle"
    DISCOVERING = "discovering"
    FETCHING = "fetching"


@dataclasses.dataclass(frozen=True, slots=True)
class SyncCycleResult:
    """Summary of one refresh cycle."""

    cycle_id: int
    repositories: tuple[str, ...] = ()
    events_merged: int = 0
    failed_fetches: int = 0
    token_updated: bool = False
    discovery_failed: bool = False


@dataclasses.dataclass(slots=True)
class _CycleTally:
    events_merged: int = 0
    failed_fetches: int = 0
    token_updated: bool = False


class FeedSynchronizer:
    """Own the event history and freshness token and keep them current.

    Parameters
    ----------
    cache
        Durable storage for history and token.
    discovery
        Resolves the search query into repositories.
    fetcher
        Issues the conditional events requests.
    query
        Search query used for every cycle.
    history_limit
        Maximum number of retained events.
    event_logger
        Structured log sink shared with the other stages.
    client
        HTTP client owned by this synchronizer and closed by :meth:`aclose`.

    """

    def __init__(  # noqa: PLR0913
        self,
        *,
        cache: FeedCache,
        discovery: RepositoryDiscovery,
        fetcher: ConditionalEventFetcher,
        query: str,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        event_logger: SyncEventLogger | None = None,
        client: GitHubFeedClient | None = None,
    ) -> None:
        """Wire the stages together; nothing is loaded until :meth:`start`."""
        self._cache = cache
        self._discovery = discovery
        self._fetcher = fetcher
        self._query = query
        self._event_logger = event_logger or SyncEventLogger()
        self._merger = HistoryMerger(
            cache, limit=history_limit, event_logger=self._event_logger
        )
        self._owned_client = client
        self._token: str | None = None
        self._token_lock = asyncio.Lock()
        self._loaded = False
        self._load_lock = asyncio.Lock()
        self._state = SyncState.IDLE
        self._cycle_ids = itertools.count(1)
        self._cycle_task: asyncio.Task[SyncCycleResult] | None = None
        self._current_cycle_id = 0
        self._finished_listeners: list[RefreshFinishedListener] = []

    @classmethod
    def from_config(
        cls,
        config: FeedConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> FeedSynchronizer:
        """Build a synchronizer talking to GitHub with ``config`` settings."""
        event_logger = SyncEventLogger()
        client = GitHubFeedClient(
            GitHubFeedClientConfig.from_feed_config(config), http_client=http_client
        )
        return cls(
            cache=FeedCache.from_config(config, event_logger=event_logger),
            discovery=RepositoryDiscovery(
                client,
                page_size=config.search_page_size,
                event_logger=event_logger,
            ),
            fetcher=ConditionalEventFetcher(client, event_logger=event_logger),
            query=config.query,
            history_limit=config.history_limit,
            event_logger=event_logger,
            client=client,
        )

    @property
    def state(self) -> SyncState:
        """Return the current phase."""
        return self._state

    @property
    def freshness_token(self) -> str | None:
        """Return the last freshness token seen or loaded."""
        return self._token

    @property
    def is_refreshing(self) -> bool:
        """Return ``True`` while a cycle is in flight."""
        return self._cycle_task is not None and not self._cycle_task.done()

    def snapshot(self) -> tuple[Event, ...]:
        """Return the current history, newest first."""
        return self._merger.history

    def subscribe_history(self, listener: HistoryListener) -> None:
        """Call ``listener`` with every new history snapshot."""
        self._merger.subscribe(listener)

    def subscribe_refresh_finished(self, listener: RefreshFinishedListener) -> None:
        """Call ``listener`` with the summary when a cycle ends."""
        self._finished_listeners.append(listener)

    async def load(self) -> None:
        """Load cached history and token once; later calls do nothing.

        Every cycle calls this first, so a cycle never merges onto or
        persists over a history that has not been read yet.
        """
        async with self._load_lock:
            if self._loaded:
                return
            history, token = await asyncio.gather(
                asyncio.to_thread(self._cache.load_history),
                asyncio.to_thread(self._cache.load_freshness_token),
            )
            self._merger.load(history)
            if self._token is None:
                self._token = token
            self._loaded = True

    async def start(self) -> SyncCycleResult:
        """Load cached state, then run the first cycle."""
        await self.load()
        return await self.refresh()

    def request_refresh(self) -> asyncio.Task[SyncCycleResult]:
        """Begin a cycle, or return the one already in flight.

        Must be called from the running event loop, typically in response to
        a refresh gesture.
        """
        if self.is_refreshing:
            self._event_logger.log_cycle_joined(self._current_cycle_id)
            return typ.cast("asyncio.Task[SyncCycleResult]", self._cycle_task)
        self._cycle_task = asyncio.create_task(self._run_cycle())
        return self._cycle_task

    async def refresh(self) -> SyncCycleResult:
        """Run or join a cycle and wait for its summary.

        Cancelling the caller does not cancel a cycle other callers may share.
        """
        return await asyncio.shield(self.request_refresh())

    async def aclose(self) -> None:
        """Close the HTTP client if this synchronizer created it."""
        if self._owned_client is not None:
            await self._owned_client.aclose()

    async def _run_cycle(self) -> SyncCycleResult:
        cycle_id = next(self._cycle_ids)
        self._current_cycle_id = cycle_id
        context = SyncCycleContext(
            cycle_id=cycle_id, query=self._query, started_at=utcnow()
        )
        self._event_logger.log_cycle_started(context)

        tally = _CycleTally()
        result = SyncCycleResult(cycle_id=cycle_id)
        try:
            await self.load()
            self._state = SyncState.DISCOVERING
            discovery = await self._discovery.search(self._query)

            self._state = SyncState.FETCHING
            await asyncio.gather(
                *(
                    self._sync_repository(repository_id, tally)
                    for repository_id in discovery.repositories
                )
            )
            result = SyncCycleResult(
                cycle_id=cycle_id,
                repositories=discovery.repositories,
                events_merged=tally.events_merged,
                failed_fetches=tally.failed_fetches,
                token_updated=tally.token_updated,
                discovery_failed=discovery.failed,
            )
        finally:
            self._state = SyncState.IDLE
            self._event_logger.log_cycle_completed(
                context,
                utcnow() - context.started_at,
                repositories=len(result.repositories),
                events_merged=tally.events_merged,
                failed_fetches=tally.failed_fetches,
            )
            for listener in list(self._finished_listeners):
                listener(result)
        return result

    async def _sync_repository(self, repository_id: str, tally: _CycleTally) -> None:
        outcome = await self._fetcher.fetch_events(repository_id, self._token)
        if outcome.status_class is StatusClass.FAILED:
            tally.failed_fetches += 1
            return
        if await self._handle_token(outcome):
            tally.token_updated = True
        if await self._merger.apply(outcome.events):
            tally.events_merged += len(outcome.events)

    async def _handle_token(self, outcome: FetchOutcome) -> bool:
        """Adopt and persist a changed freshness token."""
        token = outcome.freshness_token
        if token is None:
            return False
        async with self._token_lock:
            if token == self._token:
                return False
            previous, self._token = self._token, token
            await asyncio.to_thread(self._cache.save_freshness_token, token)
        self._event_logger.log_token_updated(previous, token)
        return True
