"""Unit tests for the gitfeed.runtime console host."""

from __future__ import annotations

import logging
import typing as typ

import httpx
import pytest

from gitfeed import runtime
from gitfeed.config import FeedConfig
from gitfeed.sync import FeedSynchronizer
from tests.helpers.event_records import event_records, search_payload

if typ.TYPE_CHECKING:
    from pathlib import Path


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/search/repositories":
        return httpx.Response(200, json=search_payload("octo/reef"))
    return httpx.Response(200, json=event_records(2), headers={"Last-Modified": "Wed"})


@pytest.fixture
def mocked_github(monkeypatch: pytest.MonkeyPatch) -> None:
    """Route synchronizers built by the runtime through a mock transport."""
    original = FeedSynchronizer.from_config
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(_handler))

    def _from_config(config: FeedConfig) -> FeedSynchronizer:
        return original(config, http_client=http_client)

    monkeypatch.setattr(FeedSynchronizer, "from_config", _from_config)


@pytest.mark.asyncio
@pytest.mark.usefixtures("mocked_github")
async def test_run_once_logs_one_line_per_row(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    """Each history row is logged as title, subtitle and avatar."""
    config = FeedConfig(api_url="https://api.example.test", cache_dir=tmp_path)

    with caplog.at_level(logging.INFO, logger="gitfeed.runtime"):
        result = await runtime.run_once(config)

    assert result.events_merged == 2
    rows = [
        record.getMessage()
        for record in caplog.records
        if record.name == "gitfeed.runtime"
    ]
    assert rows == [
        "PushEvent | octo/reef, push | https://avatars.example.test/u/1",
    ] * 2


@pytest.mark.usefixtures("mocked_github")
def test_main_runs_a_cycle(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    caplog: pytest.LogCaptureFixture,
) -> None:
    """main reads the environment, runs one cycle and logs its summary."""
    monkeypatch.setenv("GITFEED_API_URL", "https://api.example.test")
    monkeypatch.setenv("GITFEED_CACHE_DIR", str(tmp_path))
    monkeypatch.setenv("GITFEED_LOG_LEVEL", "info")

    with caplog.at_level(logging.INFO, logger="gitfeed.runtime"):
        runtime.main()

    assert (tmp_path / "events.json").exists()
    assert any(
        "Cycle 1 finished: repositories=1 events_merged=2 failed_fetches=0"
        in record.getMessage()
        for record in caplog.records
    )


def test_main_exits_on_invalid_configuration(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    """A bad numeric variable is reported and exits with status 1."""
    monkeypatch.setenv("GITFEED_HISTORY_LIMIT", "lots")

    with (
        caplog.at_level(logging.ERROR, logger="gitfeed.runtime"),
        pytest.raises(SystemExit) as exc_info,
    ):
        runtime.main()

    assert exc_info.value.code == 1
    assert any(
        "GITFEED_HISTORY_LIMIT" in record.getMessage() for record in caplog.records
    )


def test_main_warns_on_invalid_log_level(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    """An unusable log level falls back to INFO with a warning."""
    monkeypatch.setenv("GITFEED_LOG_LEVEL", "chatty")
    monkeypatch.setenv("GITFEED_HISTORY_LIMIT", "0")

    with (
        caplog.at_level(logging.WARNING, logger="gitfeed.runtime"),
        pytest.raises(SystemExit),
    ):
        runtime.main()

    assert any(
        "Invalid GITFEED_LOG_LEVEL 'chatty'" in record.getMessage()
        for record in caplog.records
    )
