"""Console host for the feed synchronization engine.

Runs a single start-up cycle (load cache, discover, fetch, merge) and logs
one line per history row, the way a list view would render them.

Configuration is driven by environment variables:

- ``GITFEED_LOG_LEVEL``: Log level (default ``INFO``)
- the ``GITFEED_*`` variables read by :meth:`gitfeed.config.FeedConfig.from_env`

Run it with ``python -m gitfeed.runtime``.
"""

from __future__ import annotations

import asyncio
import os

from gitfeed.config import FeedConfig
from gitfeed.feed.presentation import format_row
from gitfeed.logging import configure_logging, get_logger
from gitfeed.sync import FeedSynchronizer, SyncCycleResult

__all__ = ["main", "run_once"]

logger = get_logger(__name__)


async def run_once(config: FeedConfig) -> SyncCycleResult:
    """Run one start-up cycle against GitHub and log the resulting rows."""
    synchronizer = FeedSynchronizer.from_config(config)
    try:
        result = await synchronizer.start()
    finally:
        await synchronizer.aclose()

    for event in synchronizer.snapshot():
        row = format_row(event)
        logger.info(
            "%s | %s | %s",
            row.title,
            row.subtitle,
            row.avatar_url or "-",
        )
    return result


def main() -> None:
    """Configure logging from the environment and run one cycle."""
    log_level_str = os.environ.get("GITFEED_LOG_LEVEL", "INFO")
    normalized_level, invalid_level = configure_logging(log_level_str)
    if invalid_level:
        logger.warning(
            "Invalid GITFEED_LOG_LEVEL %r, falling back to %s",
            log_level_str,
            normalized_level,
        )

    try:
        config = FeedConfig.from_env()
    except ValueError as exc:
        logger.error("Invalid gitfeed configuration: %s", exc)
        raise SystemExit(1) from exc

    result = asyncio.run(run_once(config))
    logger.info(
        "Cycle %d finished: repositories=%d events_merged=%d failed_fetches=%d",
        result.cycle_id,
        len(result.repositories),
        result.events_merged,
        result.failed_fetches,
    )


if __name__ == "__main__":
    main()
