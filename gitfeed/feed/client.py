"""GitHub REST client used by discovery and the conditional event fetcher."""

from __future__ import annotations

import dataclasses
import typing as typ

import httpx

from gitfeed.common.slug import parse_repo_slug

from .errors import FeedAPIError, FeedConfigError, FeedResponseShapeError

if typ.TYPE_CHECKING:
    from gitfeed.config import FeedConfig

_HTTP_ERROR_STATUS_THRESHOLD = 400
_ACCEPT = "application/vnd.github+json"

# GitHub expects the conditional marker back as If-Modified-Since and returns
# the current one as Last-Modified.
IF_MODIFIED_SINCE = "If-Modified-Since"
LAST_MODIFIED = "Last-Modified"


@dataclasses.dataclass(frozen=True, slots=True)
class EventsResponse:
    """Status, freshness header and decoded body of one events request.

    ``body`` is ``None`` when the response carried no decodable JSON.
    """

    status_code: int
    last_modified: str | None
    body: object | None


class FeedClient(typ.Protocol):
    """Interface for the two GitHub requests a sync cycle issues."""

    async def search_repositories(
        self, query: str, *, per_page: int
    ) -> list[dict[str, typ.Any]]:
        """Return the ``items`` of a repository search."""
        ...

    async def get_events(
        self, repository_id: str, *, if_modified_since: str | None = None
    ) -> EventsResponse:
        """Issue one (possibly conditional) events request."""
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubFeedClientConfig:
    """Connection settings for :class:`GitHubFeedClient`."""

    api_url: str = "https://api.github.com"
    timeout_s: float = 20.0
    user_agent: str = "gitfeed/0.1"

    @classmethod
    def from_feed_config(cls, config: FeedConfig) -> GitHubFeedClientConfig:
        """Take the connection settings out of a :class:`FeedConfig`."""
        return cls(
            api_url=config.api_url,
            timeout_s=config.timeout_s,
            user_agent=config.user_agent,
        )


def _decode_json(response: httpx.Response) -> object | None:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def _search_items(payload: object) -> list[dict[str, typ.Any]]:
    if not isinstance(payload, dict):
        raise FeedResponseShapeError.missing("response")
    items = payload.get("items")
    if not isinstance(items, list):
        raise FeedResponseShapeError.missing("items")
    return [item for item in items if isinstance(item, dict)]


class GitHubFeedClient:
    """GitHub REST implementation of :class:`FeedClient`."""

    def __init__(
        self,
        config: GitHubFeedClientConfig | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client, creating an HTTP client unless one is given."""
        resolved = config or GitHubFeedClientConfig()
        if not resolved.api_url.strip():
            raise FeedConfigError.empty_api_url()

        self._config = resolved
        self._base_url = resolved.api_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=resolved.timeout_s,
            headers={
                "User-Agent": resolved.user_agent,
                "Accept": _ACCEPT,
            },
        )

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def search_repositories(
        self, query: str, *, per_page: int
    ) -> list[dict[str, typ.Any]]:
        """Return the result items of a repository search.

        Raises
        ------
        FeedAPIError
            On a 4xx/5xx response.
        FeedResponseShapeError
            When the body is not JSON or has no ``items`` array.
        httpx.HTTPError
            On transport failure.

        """
        if per_page < 1:
            raise FeedConfigError.invalid_page_size(per_page)
        url = f"{self._base_url}/search/repositories"
        response = await self._client.get(
            url, params={"q": query, "per_page": per_page}
        )
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise FeedAPIError.http_error(response.status_code, url=url)
        payload = _decode_json(response)
        if payload is None:
            raise FeedResponseShapeError.undecodable(url)
        return _search_items(payload)

    async def get_events(
        self, repository_id: str, *, if_modified_since: str | None = None
    ) -> EventsResponse:
        """Request the public events of ``repository_id``.

        The status code is reported rather than raised so callers can tell
        "not modified" apart from failure. Transport failures still raise
        :class:`httpx.HTTPError` and a malformed ``repository_id`` raises
        :class:`ValueError`.
        """
        owner, name = parse_repo_slug(repository_id)
        url = f"{self._base_url}/repos/{owner}/{name}/events"
        headers = {IF_MODIFIED_SINCE: if_modified_since} if if_modified_since else {}
        response = await self._client.get(url, headers=headers)
        return EventsResponse(
            status_code=response.status_code,
            last_modified=response.headers.get(LAST_MODIFIED),
            body=_decode_json(response),
        )
