"""Conditional per-repository event fetching.

One request produces two independent results: the batch of new events and
the freshness token. A "not modified" response has no events but still
carries a token that must be kept, so the two are reported separately.

======================  ==============  ======================
Status                  Events          Freshness token
======================  ==============  ======================
2xx                     parsed body     ``Last-Modified``
3xx                     none            ``Last-Modified``
4xx / 5xx / transport   none            not propagated
======================  ==============  ======================
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

import httpx

from .errors import FeedAPIError
from .models import Event, parse_events
from .observability import SyncEventLogger

if typ.TYPE_CHECKING:
    from .client import EventsResponse, FeedClient

_SUCCESS_RANGE = range(200, 300)
_NOT_MODIFIED_RANGE = range(300, 400)


class StatusClass(enum.StrEnum):
    """Classification of an events response."""

    SUCCESS = "success"
    NOT_MODIFIED = "not_modified"
    FAILED = "failed"


def classify_status(status_code: int) -> StatusClass:
    """Map an HTTP status code onto a :class:`StatusClass`."""
    if status_code in _SUCCESS_RANGE:
        return StatusClass.SUCCESS
    if status_code in _NOT_MODIFIED_RANGE:
        return StatusClass.NOT_MODIFIED
    return StatusClass.FAILED


@dataclasses.dataclass(frozen=True, slots=True)
class FetchOutcome:
    """Result of one conditional events request."""

    repository_id: str
    status_class: StatusClass
    events: tuple[Event, ...] = ()
    freshness_token: str | None = None
    status_code: int | None = None

    @property
    def has_events(self) -> bool:
        """Return ``True`` when the batch needs merging."""
        return bool(self.events)


def _outcome_from_response(
    repository_id: str, response: EventsResponse
) -> FetchOutcome:
    status_class = classify_status(response.status_code)
    if status_class is StatusClass.FAILED:
        return FetchOutcome(
            repository_id=repository_id,
            status_class=status_class,
            status_code=response.status_code,
        )

    events: tuple[Event, ...] = ()
    if status_class is StatusClass.SUCCESS:
        events = tuple(parse_events(response.body))
    return FetchOutcome(
        repository_id=repository_id,
        status_class=status_class,
        events=events,
        freshness_token=response.last_modified or None,
        status_code=response.status_code,
    )


class ConditionalEventFetcher:
    """Fetch a repository's events, honouring the last freshness token."""

    def __init__(
        self,
        client: FeedClient,
        *,
        event_logger: SyncEventLogger | None = None,
    ) -> None:
        """Bind the fetcher to a feed client."""
        self._client = client
        self._event_logger = event_logger or SyncEventLogger()

    async def fetch_events(
        self, repository_id: str, freshness_token: str | None
    ) -> FetchOutcome:
        """Fetch events for ``repository_id``; never raises for I/O failures.

        Transport errors, error statuses and malformed identifiers all come
        back as :attr:`StatusClass.FAILED` with no events and no token.
        """
        try:
            response = await self._client.get_events(
                repository_id, if_modified_since=freshness_token
            )
        except (httpx.HTTPError, ValueError) as exc:
            self._event_logger.log_fetch_failed(repository_id, exc)
            return FetchOutcome(
                repository_id=repository_id, status_class=StatusClass.FAILED
            )

        outcome = _outcome_from_response(repository_id, response)
        if outcome.status_class is StatusClass.FAILED:
            self._event_logger.log_fetch_failed(
                repository_id,
                FeedAPIError.http_error(
                    response.status_code, url=f"repos/{repository_id}/events"
                ),
            )
        else:
            self._event_logger.log_fetch_completed(
                repository_id, response.status_code, len(outcome.events)
            )
        return outcome
