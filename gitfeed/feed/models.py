"""Typed domain models for the activity feed."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses
import types
import typing as typ

Record: typ.TypeAlias = dict[str, typ.Any]


def _non_empty_str(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _string_keyed(value: object) -> Record | None:
    """Return a shallow dict copy when ``value`` is a string-keyed mapping."""
    if not isinstance(value, cabc.Mapping):
        return None
    if not all(isinstance(key, str) for key in value):
        return None
    return dict(value)


def _actor_name(actor: Record) -> str | None:
    return _non_empty_str(actor.get("display_login")) or _non_empty_str(
        actor.get("login")
    )


def _avatar_url(actor: Record) -> str | None:
    return _non_empty_str(actor.get("avatar_url"))


def _freeze(value: object) -> object:
    """Return a read-only deep copy: mappings become proxies, lists tuples."""
    if isinstance(value, cabc.Mapping):
        return types.MappingProxyType(
            {key: _freeze(item) for key, item in value.items()}
        )
    if isinstance(value, list | tuple):
        return tuple(_freeze(item) for item in value)
    return value


def _thaw(value: object) -> object:
    if isinstance(value, cabc.Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [_thaw(item) for item in value]
    return value


def _empty_payload() -> cabc.Mapping[str, typ.Any]:
    return types.MappingProxyType({})


@dataclasses.dataclass(frozen=True, slots=True)
class Event:
    """One public GitHub activity record attributed to an actor and repository.

    Equality covers the typed fields only. ``raw_payload`` keeps the complete
    record as received so the cache can write it back unchanged. It is stored
    as a read-only copy: nested mappings are proxies and arrays are tuples.
    """

    kind: str
    actor_name: str
    repo_name: str
    avatar_url: str | None = None
    raw_payload: cabc.Mapping[str, typ.Any] = dataclasses.field(
        default_factory=_empty_payload, compare=False, repr=False
    )

    def __post_init__(self) -> None:
        """Detach ``raw_payload`` from the caller and make it read-only."""
        object.__setattr__(self, "raw_payload", _freeze(self.raw_payload))

    @classmethod
    def parse(cls, record: object) -> Event | None:
        """Build an event from a GitHub events API record.

        Returns ``None`` when ``type``, the actor login or ``repo.name`` are
        missing or have the wrong shape. ``actor.avatar_url`` is optional.
        """
        payload = _string_keyed(record)
        if payload is None:
            return None

        kind = _non_empty_str(payload.get("type"))
        actor = _string_keyed(payload.get("actor"))
        repo = _string_keyed(payload.get("repo"))
        if kind is None or actor is None or repo is None:
            return None

        actor_name = _actor_name(actor)
        repo_name = _non_empty_str(repo.get("name"))
        if actor_name is None or repo_name is None:
            return None

        return cls(
            kind=kind,
            actor_name=actor_name,
            repo_name=repo_name,
            avatar_url=_avatar_url(actor),
            raw_payload=payload,
        )

    @property
    def event_id(self) -> str | None:
        """Return the GitHub event id when the record carried one."""
        raw_id = self.raw_payload.get("id")
        if isinstance(raw_id, bool):
            return None
        if isinstance(raw_id, int | str):
            return str(raw_id)
        return None

    def to_record(self) -> Record:
        """Serialize back to the GitHub events API record shape.

        Fields already present in ``raw_payload`` are kept untouched; typed
        fields are written over them only where the two disagree, so a parsed
        event reproduces its source record exactly.
        """
        record = typ.cast("Record", _thaw(self.raw_payload))
        record["type"] = self.kind

        actor = _string_keyed(record.get("actor")) or {}
        if _actor_name(actor) != self.actor_name:
            actor["display_login"] = self.actor_name
            actor.setdefault("login", self.actor_name)
        if _avatar_url(actor) != self.avatar_url:
            if self.avatar_url is None:
                actor.pop("avatar_url", None)
            else:
                actor["avatar_url"] = self.avatar_url
        record["actor"] = actor

        repo = _string_keyed(record.get("repo")) or {}
        if repo.get("name") != self.repo_name:
            repo["name"] = self.repo_name
        record["repo"] = repo
        return record


def parse_events(records: object) -> list[Event]:
    """Parse a JSON array of event records, dropping malformed entries.

    Anything other than a list yields an empty batch.
    """
    if not isinstance(records, list):
        return []
    events: list[Event] = []
    for record in records:
        event = Event.parse(record)
        if event is not None:
            events.append(event)
    return events
