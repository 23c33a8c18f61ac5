"""Durable storage for the event history and the freshness token.

Each concern lives in its own file and every write replaces the whole file
through a temporary sibling and :func:`os.replace`, so a crash leaves either
the previous or the new content, never a torn file. Reads that fail for any
reason degrade to the empty state; writes that fail are logged and dropped.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
import threading
import typing as typ

import msgspec

from gitfeed.feed.models import Event, parse_events
from gitfeed.feed.observability import SyncEventLogger

from .errors import CacheReadError, CacheWriteError

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from gitfeed.config import FeedConfig


def _atomic_write_bytes(path: Path, data: bytes) -> None:
    """Replace ``path`` with ``data`` in a single rename."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
        )
    except OSError as exc:
        raise CacheWriteError.for_path(path, str(exc)) from exc

    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except OSError as exc:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise CacheWriteError.for_path(path, str(exc)) from exc


def _read_bytes(path: Path) -> bytes | None:
    """Return file content, or ``None`` when the file does not exist."""
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise CacheReadError.for_path(path, str(exc)) from exc


class FeedCache:
    """File-backed cache for the capped event history and freshness token.

    All public methods are synchronous and guarded by one lock, so they may
    be called from worker threads (``asyncio.to_thread``) while the event
    loop keeps serving the in-memory snapshot.

    Parameters
    ----------
    history_path
        File holding the serialized history as a JSON array of records.
    token_path
        File holding the freshness token as UTF-8 text.
    event_logger
        Receives swallowed read and write failures.

    """

    def __init__(
        self,
        history_path: Path,
        token_path: Path,
        *,
        event_logger: SyncEventLogger | None = None,
    ) -> None:
        """Bind the cache to its two files."""
        self._history_path = history_path
        self._token_path = token_path
        self._event_logger = event_logger or SyncEventLogger()
        self._lock = threading.Lock()

    @classmethod
    def from_config(
        cls, config: FeedConfig, *, event_logger: SyncEventLogger | None = None
    ) -> FeedCache:
        """Create a cache using the paths configured in ``config``."""
        return cls(config.history_path, config.token_path, event_logger=event_logger)

    @property
    def history_path(self) -> Path:
        """Return the history file path."""
        return self._history_path

    @property
    def token_path(self) -> Path:
        """Return the freshness token file path."""
        return self._token_path

    def load_history(self) -> list[Event]:
        """Load the persisted history, newest first.

        Returns an empty list when the file is absent, unreadable or holds no
        parseable records. Malformed records are skipped individually.
        """
        try:
            with self._lock:
                raw = _read_bytes(self._history_path)
            if raw is None:
                return []
            try:
                records = msgspec.json.decode(raw)
            except msgspec.DecodeError as exc:
                raise CacheReadError.for_path(self._history_path, str(exc)) from exc
        except CacheReadError as exc:
            self._event_logger.log_cache_failed("load_history", exc)
            return []
        return parse_events(records)

    def save_history(self, history: cabc.Sequence[Event]) -> None:
        """Replace the persisted history with ``history`` (best effort)."""
        try:
            data = msgspec.json.encode([event.to_record() for event in history])
        except (msgspec.EncodeError, TypeError) as exc:
            self._event_logger.log_cache_failed(
                "save_history",
                CacheWriteError.for_path(self._history_path, str(exc)),
            )
            return
        try:
            with self._lock:
                _atomic_write_bytes(self._history_path, data)
        except CacheWriteError as exc:
            self._event_logger.log_cache_failed("save_history", exc)

    def load_freshness_token(self) -> str | None:
        """Return the persisted token, or ``None`` if absent or unreadable."""
        try:
            with self._lock:
                raw = _read_bytes(self._token_path)
            if raw is None:
                return None
            try:
                text = raw.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise CacheReadError.for_path(self._token_path, str(exc)) from exc
        except CacheReadError as exc:
            self._event_logger.log_cache_failed("load_freshness_token", exc)
            return None
        token = text.strip()
        return token or None

    def save_freshness_token(self, token: str) -> None:
        """Replace the persisted token (best effort)."""
        try:
            with self._lock:
                _atomic_write_bytes(self._token_path, token.encode("utf-8"))
        except CacheWriteError as exc:
            self._event_logger.log_cache_failed("save_freshness_token", exc)
