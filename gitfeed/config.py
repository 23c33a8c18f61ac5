"""Configuration for the feed synchronization engine.

The engine is embedded in a host application, which builds a
:class:`FeedConfig` directly or asks for one from the environment.

Usage
-----
Create a configuration with defaults:

>>> config = FeedConfig()
>>> config.history_limit
50

Override individual settings:

>>> FeedConfig(query="language:python", history_limit=100).history_limit
100

Hosts that take settings from ``GITFEED_*`` environment variables call
:meth:`FeedConfig.from_env` instead.

"""

from __future__ import annotations

import dataclasses as dc
import os
from pathlib import Path

DEFAULT_QUERY = "language:swift"
DEFAULT_API_URL = "https://api.github.com"
DEFAULT_SEARCH_PAGE_SIZE = 5
DEFAULT_HISTORY_LIMIT = 50
DEFAULT_TIMEOUT_S = 20.0


def default_cache_dir() -> Path:
    """Return the per-user cache directory for gitfeed state."""
    xdg_cache = os.environ.get("XDG_CACHE_HOME", "").strip()
    base = Path(xdg_cache) if xdg_cache else Path.home() / ".cache"
    return base / "gitfeed"


@dc.dataclass(frozen=True, slots=True)
class FeedConfig:
    """Runtime knobs for discovery, fetching and history retention.

    Attributes
    ----------
    query
        GitHub repository search query used by discovery.
    api_url
        Base URL of the GitHub REST API.
    search_page_size
        Number of repositories requested from the search endpoint. Each one
        costs a single events request per cycle.
    history_limit
        Maximum number of events retained in the local history.
    cache_dir
        Directory holding ``events.json`` and ``modified.txt``.
    timeout_s
        HTTP timeout applied to every request.
    user_agent
        ``User-Agent`` header sent to GitHub, which rejects anonymous agents.

    """

    query: str = DEFAULT_QUERY
    api_url: str = DEFAULT_API_URL
    search_page_size: int = DEFAULT_SEARCH_PAGE_SIZE
    history_limit: int = DEFAULT_HISTORY_LIMIT
    cache_dir: Path = dc.field(default_factory=default_cache_dir)
    timeout_s: float = DEFAULT_TIMEOUT_S
    user_agent: str = "gitfeed/0.1"

    @property
    def history_path(self) -> Path:
        """Return the path of the persisted event history."""
        return self.cache_dir / "events.json"

    @property
    def token_path(self) -> Path:
        """Return the path of the persisted freshness token."""
        return self.cache_dir / "modified.txt"

    @staticmethod
    def _parse_positive_int(env_var: str, default: int) -> int:
        """Read a positive integer env var, falling back to a default."""
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            return default
        try:
            value = int(raw)
        except ValueError as exc:
            msg = f"{env_var} must be an integer, got: {raw!r}"
            raise ValueError(msg) from exc
        if value < 1:
            msg = f"{env_var} must be positive, got: {value}"
            raise ValueError(msg)
        return value

    @staticmethod
    def _parse_positive_float(env_var: str, default: float) -> float:
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            return default
        try:
            value = float(raw)
        except ValueError as exc:
            msg = f"{env_var} must be a number, got: {raw!r}"
            raise ValueError(msg) from exc
        if value <= 0:
            msg = f"{env_var} must be positive, got: {value}"
            raise ValueError(msg)
        return value

    @classmethod
    def from_env(cls) -> FeedConfig:
        """Create configuration from environment variables.

        Reads the following environment variables:

        - ``GITFEED_QUERY``: repository search query.
        - ``GITFEED_API_URL``: GitHub REST API base URL.
        - ``GITFEED_SEARCH_PAGE_SIZE``: positive integer.
        - ``GITFEED_HISTORY_LIMIT``: positive integer.
        - ``GITFEED_CACHE_DIR``: directory for cached state.
        - ``GITFEED_TIMEOUT_S``: positive number of seconds.

        Raises
        ------
        ValueError
            If a numeric variable is not a positive number.

        """
        query = os.environ.get("GITFEED_QUERY", "").strip() or DEFAULT_QUERY
        api_url = (
            os.environ.get("GITFEED_API_URL", "").strip().rstrip("/")
            or DEFAULT_API_URL
        )
        raw_cache_dir = os.environ.get("GITFEED_CACHE_DIR", "").strip()
        cache_dir = Path(raw_cache_dir) if raw_cache_dir else default_cache_dir()

        return cls(
            query=query,
            api_url=api_url,
            search_page_size=cls._parse_positive_int(
                "GITFEED_SEARCH_PAGE_SIZE", DEFAULT_SEARCH_PAGE_SIZE
            ),
            history_limit=cls._parse_positive_int(
                "GITFEED_HISTORY_LIMIT", DEFAULT_HISTORY_LIMIT
            ),
            cache_dir=cache_dir,
            timeout_s=cls._parse_positive_float("GITFEED_TIMEOUT_S", DEFAULT_TIMEOUT_S),
        )
