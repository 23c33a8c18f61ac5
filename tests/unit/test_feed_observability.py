"""Unit tests for sync observability helpers."""

from __future__ import annotations

import datetime as dt
import logging
from pathlib import Path

import httpx
import pytest

from gitfeed.cache.errors import CacheReadError, CacheWriteError
from gitfeed.feed.errors import FeedAPIError, FeedConfigError, FeedResponseShapeError
from gitfeed.feed.observability import (
    ErrorCategory,
    SyncCycleContext,
    SyncEventLogger,
    SyncEventType,
    categorize_error,
)

_LOGGER_NAME = "gitfeed.feed.observability"


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        pytest.param(
            FeedAPIError.http_error(502, url="search"),
            ErrorCategory.TRANSIENT,
            id="server-error",
        ),
        pytest.param(
            FeedAPIError.http_error(403, url="search"),
            ErrorCategory.CLIENT_ERROR,
            id="client-error",
        ),
        pytest.param(FeedAPIError("no status"), ErrorCategory.CLIENT_ERROR, id="bare"),
        pytest.param(
            FeedResponseShapeError.missing("items"),
            ErrorCategory.SCHEMA_DRIFT,
            id="shape",
        ),
        pytest.param(
            FeedConfigError.empty_api_url(), ErrorCategory.CONFIGURATION, id="config"
        ),
        pytest.param(
            httpx.ReadTimeout("slow"), ErrorCategory.TRANSIENT, id="timeout"
        ),
        pytest.param(
            CacheWriteError.for_path(Path("/tmp/x"), "disk full"),
            ErrorCategory.STORAGE,
            id="cache-write",
        ),
        pytest.param(
            CacheReadError.for_path(Path("/tmp/x"), "denied"),
            ErrorCategory.STORAGE,
            id="cache-read",
        ),
        pytest.param(RuntimeError("boom"), ErrorCategory.UNKNOWN, id="unknown"),
    ],
)
def test_categorize_error(error: BaseException, expected: ErrorCategory) -> None:
    """Exceptions map onto log categories."""
    assert categorize_error(error) is expected


class TestSyncEventLogger:
    """Tests for SyncEventLogger record formatting."""

    def test_cycle_started_and_completed(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Cycle boundaries are logged at INFO with their totals."""
        context = SyncCycleContext(
            cycle_id=3,
            query="language:swift",
            started_at=dt.datetime(2099, 1, 1, tzinfo=dt.UTC),
        )
        event_logger = SyncEventLogger()

        with caplog.at_level(logging.INFO, logger=_LOGGER_NAME):
            event_logger.log_cycle_started(context)
            event_logger.log_cycle_completed(
                context,
                dt.timedelta(seconds=1.5),
                repositories=5,
                events_merged=12,
                failed_fetches=1,
            )

        started, completed = caplog.records
        assert started.levelno == logging.INFO
        assert started.getMessage() == (
            f"[{SyncEventType.CYCLE_STARTED}] cycle_id=3 query=language:swift "
            "started_at=2099-01-01T00:00:00+00:00"
        )
        assert completed.getMessage() == (
            f"[{SyncEventType.CYCLE_COMPLETED}] cycle_id=3 duration_seconds=1.500 "
            "repositories=5 events_merged=12 failed_fetches=1"
        )

    def test_fetch_failed_is_a_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        """Swallowed failures carry type, category and message."""
        with caplog.at_level(logging.INFO, logger=_LOGGER_NAME):
            SyncEventLogger().log_fetch_failed(
                "octo/reef", FeedAPIError.http_error(404, url="repos/octo/reef/events")
            )

        (record,) = caplog.records
        assert record.levelno == logging.WARNING
        assert record.getMessage() == (
            "[sync.fetch.failed] repository=octo/reef error_type=FeedAPIError "
            "error_category=client_error "
            "error_message=GitHub HTTP 404 for repos/octo/reef/events"
        )

    def test_token_and_merge_events(self, caplog: pytest.LogCaptureFixture) -> None:
        """Token changes and merges are logged at INFO."""
        event_logger = SyncEventLogger()

        with caplog.at_level(logging.INFO, logger=_LOGGER_NAME):
            event_logger.log_token_updated(None, "Wed")
            event_logger.log_history_merged(5, 50)
            event_logger.log_cycle_joined(2)

        messages = [record.getMessage() for record in caplog.records]
        assert messages == [
            "[sync.token.updated] previous=None current=Wed",
            "[sync.history.merged] new_events=5 history_size=50",
            "[sync.cycle.joined] cycle_id=2",
        ]

    def test_cache_failed(self, caplog: pytest.LogCaptureFixture) -> None:
        """Cache failures are categorized as storage problems."""
        error = CacheWriteError.for_path(Path("/tmp/events.json"), "disk full")

        with caplog.at_level(logging.WARNING, logger=_LOGGER_NAME):
            SyncEventLogger().log_cache_failed("save_history", error)

        message = caplog.records[0].getMessage()
        assert message.startswith("[sync.cache.failed] operation=save_history ")
        assert "error_type=CacheWriteError" in message
        assert "error_category=storage" in message
