"""Unit tests for repository discovery."""

from __future__ import annotations

import httpx
import pytest

from gitfeed.feed.discovery import RepositoryDiscovery
from gitfeed.feed.errors import FeedAPIError, FeedResponseShapeError
from tests.helpers.event_records import search_payload
from tests.unit.feed_test_helpers import FakeFeedClient, make_http_client


@pytest.mark.asyncio
async def test_discover_returns_full_names_in_order() -> None:
    """Repository identifiers keep the search result order."""
    client = FakeFeedClient(repositories=["a/one", "b/two", "c/three"])
    discovery = RepositoryDiscovery(client)

    assert await discovery.discover("language:swift") == ["a/one", "b/two", "c/three"]
    assert client.search_calls == [("language:swift", 5)]


@pytest.mark.asyncio
async def test_discover_uses_configured_page_size() -> None:
    """The page size is passed through to the search request."""
    client = FakeFeedClient(repositories=["a/one"])
    discovery = RepositoryDiscovery(client, page_size=3)

    await discovery.discover("q")

    assert client.search_calls == [("q", 3)]


@pytest.mark.asyncio
async def test_items_without_full_name_are_dropped() -> None:
    """Items lacking a usable full_name are skipped silently."""
    payload = search_payload("a/one", None, "c/three")
    payload["items"].append({"full_name": 42})
    payload["items"].append({"full_name": ""})
    client, http_client = make_http_client(
        lambda _request: httpx.Response(200, json=payload)
    )

    async with http_client:
        repositories = await RepositoryDiscovery(client).discover("q")

    assert repositories == ["a/one", "c/three"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        pytest.param(FeedAPIError.http_error(403, url="search"), id="http-error"),
        pytest.param(FeedResponseShapeError.missing("items"), id="shape-error"),
        pytest.param(httpx.ConnectError("refused"), id="transport-error"),
    ],
)
async def test_failures_yield_no_repositories(error: Exception) -> None:
    """Any search failure degrades to an empty repository list."""
    client = FakeFeedClient(search_error=error)
    discovery = RepositoryDiscovery(client)

    outcome = await discovery.search("q")

    assert outcome.repositories == ()
    assert outcome.failed
    assert outcome.error is error
    assert await discovery.discover("q") == []


@pytest.mark.asyncio
async def test_failure_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    """Swallowed discovery failures are visible in the logs."""
    client = FakeFeedClient(search_error=FeedAPIError.http_error(502, url="search"))

    with caplog.at_level("WARNING", logger="gitfeed.feed.observability"):
        await RepositoryDiscovery(client).discover("language:swift")

    assert any(
        "sync.discovery.failed" in record.getMessage()
        and "error_category=transient" in record.getMessage()
        for record in caplog.records
    )
