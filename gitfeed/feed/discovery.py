"""Repository discovery through the GitHub search API."""

from __future__ import annotations

import dataclasses
import typing as typ

import httpx

from .errors import FeedAPIError, FeedResponseShapeError
from .observability import SyncEventLogger

if typ.TYPE_CHECKING:
    from .client import FeedClient

DEFAULT_PAGE_SIZE = 5


@dataclasses.dataclass(frozen=True, slots=True)
class DiscoveryOutcome:
    """Repositories found by one search, plus the error that emptied it."""

    repositories: tuple[str, ...] = ()
    error: BaseException | None = None

    @property
    def failed(self) -> bool:
        """Return ``True`` when the search request itself failed."""
        return self.error is not None


def _full_names(items: list[dict[str, typ.Any]]) -> tuple[str, ...]:
    names: list[str] = []
    for item in items:
        full_name = item.get("full_name")
        if isinstance(full_name, str) and full_name.strip():
            names.append(full_name)
    return tuple(names)


class RepositoryDiscovery:
    """Resolve a search query into a small ordered list of repositories."""

    def __init__(
        self,
        client: FeedClient,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        event_logger: SyncEventLogger | None = None,
    ) -> None:
        """Bind discovery to a feed client and search page size."""
        self._client = client
        self._page_size = page_size
        self._event_logger = event_logger or SyncEventLogger()

    async def search(self, query: str) -> DiscoveryOutcome:
        """Run the search and report either the repositories or the failure."""
        try:
            items = await self._client.search_repositories(
                query, per_page=self._page_size
            )
        except (FeedAPIError, FeedResponseShapeError, httpx.HTTPError) as exc:
            self._event_logger.log_discovery_failed(query, exc)
            return DiscoveryOutcome(error=exc)

        repositories = _full_names(items)
        self._event_logger.log_discovery_completed(query, len(repositories))
        return DiscoveryOutcome(repositories=repositories)

    async def discover(self, query: str) -> list[str]:
        """Return repository ``owner/name`` identifiers matching ``query``.

        Items without a ``full_name`` are dropped. Any failure yields an empty
        list, so the cycle simply has nothing to fetch.
        """
        outcome = await self.search(query)
        return list(outcome.repositories)
