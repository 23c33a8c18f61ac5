"""GitHub feed errors.

These are raised inside :mod:`gitfeed.feed.client` and caught at the
discovery and fetch boundaries, where they degrade to "no new data".
"""

from __future__ import annotations


class FeedAPIError(RuntimeError):
    """Raised when GitHub returns an error response."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int, *, url: str) -> FeedAPIError:
        """Return an error for a 4xx/5xx response."""
        return cls(f"GitHub HTTP {status_code} for {url}", status_code=status_code)


class FeedResponseShapeError(RuntimeError):
    """Raised when a GitHub response body lacks the expected structure."""

    @classmethod
    def missing(cls, field: str) -> FeedResponseShapeError:
        """Return an error for a missing response field."""
        return cls(f"GitHub response missing expected field: {field}")

    @classmethod
    def undecodable(cls, url: str) -> FeedResponseShapeError:
        """Return an error for a body that is not valid JSON."""
        return cls(f"GitHub response from {url} is not valid JSON")


class FeedConfigError(ValueError):
    """Raised when client configuration is invalid."""

    @classmethod
    def empty_api_url(cls) -> FeedConfigError:
        """Return an error when no API base URL is configured."""
        return cls("GitHub API URL must be non-empty")

    @classmethod
    def invalid_page_size(cls, value: int) -> FeedConfigError:
        """Return an error for a non-positive search page size."""
        return cls(f"search page size must be positive, got {value}")
