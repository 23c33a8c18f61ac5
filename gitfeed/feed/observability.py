"""Observability primitives for feed synchronization.

Discovery, fetch and cache failures never reach the user, so each one is
emitted here as a structured log event with an error category. All records
use ``key=value`` fields behind a bracketed event type, suitable for parsing
by log aggregators.
"""

from __future__ import annotations

import dataclasses
import enum
import logging
import typing as typ

import httpx

from .errors import FeedAPIError, FeedConfigError, FeedResponseShapeError

if typ.TYPE_CHECKING:
    import datetime as dt

logger = logging.getLogger(__name__)

_HTTP_SERVER_ERROR_THRESHOLD = 500


class SyncEventType(enum.StrEnum):
    """Structured log event types for sync observability."""

    CYCLE_STARTED = "sync.cycle.started"
    CYCLE_COMPLETED = "sync.cycle.completed"
    CYCLE_JOINED = "sync.cycle.joined"
    DISCOVERY_COMPLETED = "sync.discovery.completed"
    DISCOVERY_FAILED = "sync.discovery.failed"
    FETCH_COMPLETED = "sync.fetch.completed"
    FETCH_FAILED = "sync.fetch.failed"
    TOKEN_UPDATED = "sync.token.updated"
    HISTORY_MERGED = "sync.history.merged"
    CACHE_FAILED = "sync.cache.failed"


class ErrorCategory(enum.StrEnum):
    """Categories used to classify swallowed failures."""

    TRANSIENT = "transient"
    CLIENT_ERROR = "client_error"
    SCHEMA_DRIFT = "schema_drift"
    CONFIGURATION = "configuration"
    STORAGE = "storage"
    UNKNOWN = "unknown"


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (FeedResponseShapeError, ErrorCategory.SCHEMA_DRIFT),
    (FeedConfigError, ErrorCategory.CONFIGURATION),
    (httpx.TransportError, ErrorCategory.TRANSIENT),
    (OSError, ErrorCategory.STORAGE),
)


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Categorize an exception for log records.

    Returns:
        ErrorCategory describing the failure.

    """
    if isinstance(exc, FeedAPIError):
        if (
            exc.status_code is not None
            and exc.status_code >= _HTTP_SERVER_ERROR_THRESHOLD
        ):
            return ErrorCategory.TRANSIENT
        return ErrorCategory.CLIENT_ERROR

    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category

    return ErrorCategory.UNKNOWN


@dataclasses.dataclass(frozen=True, slots=True)
class SyncCycleContext:
    """Shared context for one refresh cycle."""

    cycle_id: int
    query: str
    started_at: dt.datetime


class SyncEventLogger:
    """Emit structured sync events via Python logging.

    Successful steps are logged at INFO, swallowed failures at WARNING.
    """

    def log_cycle_started(self, context: SyncCycleContext) -> None:
        """Log the start of a refresh cycle."""
        logger.info(
            "[%s] cycle_id=%d query=%s started_at=%s",
            SyncEventType.CYCLE_STARTED,
            context.cycle_id,
            context.query,
            context.started_at.isoformat(),
        )

    def log_cycle_joined(self, cycle_id: int) -> None:
        """Log a refresh request that joined the in-flight cycle."""
        logger.info("[%s] cycle_id=%d", SyncEventType.CYCLE_JOINED, cycle_id)

    def log_cycle_completed(  # noqa: PLR0913
        self,
        context: SyncCycleContext,
        duration: dt.timedelta,
        *,
        repositories: int,
        events_merged: int,
        failed_fetches: int,
    ) -> None:
        """Log cycle completion with its totals."""
        logger.info(
            "[%s] cycle_id=%d duration_seconds=%.3f repositories=%d "
            "events_merged=%d failed_fetches=%d",
            SyncEventType.CYCLE_COMPLETED,
            context.cycle_id,
            duration.total_seconds(),
            repositories,
            events_merged,
            failed_fetches,
        )

    def log_discovery_completed(self, query: str, repositories: int) -> None:
        """Log how many repositories a search produced."""
        logger.info(
            "[%s] query=%s repositories=%d",
            SyncEventType.DISCOVERY_COMPLETED,
            query,
            repositories,
        )

    def log_discovery_failed(self, query: str, error: BaseException) -> None:
        """Log a failed search; the cycle continues with no repositories."""
        logger.warning(
            "[%s] query=%s error_type=%s error_category=%s error_message=%s",
            SyncEventType.DISCOVERY_FAILED,
            query,
            type(error).__name__,
            categorize_error(error),
            str(error),
        )

    def log_fetch_completed(
        self, repository_id: str, status_code: int, events: int
    ) -> None:
        """Log a 2xx/3xx events response."""
        logger.info(
            "[%s] repository=%s status_code=%d events=%d",
            SyncEventType.FETCH_COMPLETED,
            repository_id,
            status_code,
            events,
        )

    def log_fetch_failed(self, repository_id: str, error: BaseException) -> None:
        """Log a failed events request for one repository."""
        logger.warning(
            "[%s] repository=%s error_type=%s error_category=%s error_message=%s",
            SyncEventType.FETCH_FAILED,
            repository_id,
            type(error).__name__,
            categorize_error(error),
            str(error),
        )

    def log_token_updated(self, previous: str | None, current: str) -> None:
        """Log a change of freshness token."""
        logger.info(
            "[%s] previous=%s current=%s",
            SyncEventType.TOKEN_UPDATED,
            previous,
            current,
        )

    def log_history_merged(self, new_events: int, history_size: int) -> None:
        """Log a merge that changed the history."""
        logger.info(
            "[%s] new_events=%d history_size=%d",
            SyncEventType.HISTORY_MERGED,
            new_events,
            history_size,
        )

    def log_cache_failed(self, operation: str, error: BaseException) -> None:
        """Log a cache read or write that degraded to the empty/no-op path."""
        logger.warning(
            "[%s] operation=%s error_type=%s error_category=%s error_message=%s",
            SyncEventType.CACHE_FAILED,
            operation,
            type(error).__name__,
            categorize_error(error),
            str(error),
        )
