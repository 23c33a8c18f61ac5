"""GitHub activity feed: event model, discovery, conditional fetch and merge."""

from __future__ import annotations

from .client import EventsResponse, FeedClient, GitHubFeedClient, GitHubFeedClientConfig
from .discovery import DiscoveryOutcome, RepositoryDiscovery
from .errors import FeedAPIError, FeedConfigError, FeedResponseShapeError
from .fetcher import ConditionalEventFetcher, FetchOutcome, StatusClass, classify_status
from .merge import HistoryMerger, merge
from .models import Event, parse_events
from .observability import (
    ErrorCategory,
    SyncCycleContext,
    SyncEventLogger,
    SyncEventType,
    categorize_error,
)
from .presentation import FeedRow, format_row, humanize_kind

__all__ = [
    "ConditionalEventFetcher",
    "DiscoveryOutcome",
    "ErrorCategory",
    "Event",
    "EventsResponse",
    "FeedAPIError",
    "FeedClient",
    "FeedConfigError",
    "FeedResponseShapeError",
    "FeedRow",
    "FetchOutcome",
    "GitHubFeedClient",
    "GitHubFeedClientConfig",
    "HistoryMerger",
    "RepositoryDiscovery",
    "StatusClass",
    "SyncCycleContext",
    "SyncEventLogger",
    "SyncEventType",
    "categorize_error",
    "classify_status",
    "format_row",
    "humanize_kind",
    "merge",
    "parse_events",
]
