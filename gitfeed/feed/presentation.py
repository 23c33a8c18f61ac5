"""Row formatting for front ends that render the event history."""

from __future__ import annotations

import dataclasses
import typing as typ

if typ.TYPE_CHECKING:
    from .models import Event

_EVENT_SUFFIX = "Event"


@dataclasses.dataclass(frozen=True, slots=True)
class FeedRow:
    """Display fields for one history row.

    ``avatar_url`` is ``None`` when the front end should show its placeholder
    image.
    """

    title: str
    subtitle: str
    avatar_url: str | None


def humanize_kind(kind: str) -> str:
    """Return a short lower-case action for an event type.

    Examples
    --------
    >>> humanize_kind("PushEvent")
    'push'
    >>> humanize_kind("PullRequestReviewEvent")
    'pullrequestreview'

    """
    return kind.replace(_EVENT_SUFFIX, "").lower()


def format_row(event: Event) -> FeedRow:
    """Build the display row for ``event``."""
    return FeedRow(
        title=event.kind,
        subtitle=f"{event.repo_name}, {humanize_kind(event.kind)}",
        avatar_url=event.avatar_url,
    )
