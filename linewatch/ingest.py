"""
Scheduled snapshot job.

Runs the line pipeline for every tracked category and writes one snapshot
per category under the given label.

Usage:
    python -m linewatch.main snapshot --label 10pm
    python -m linewatch.main snapshot --label 12pm --demo

Without ODDS_API_KEY the job does nothing unless a feed (e.g. the demo
feed) is passed in explicitly.
"""

import asyncio
from datetime import datetime, timezone
from typing import Callable, Optional

import structlog

from linewatch.config import Settings
from linewatch.feeds import MarketFeed, OddsAPIFeed
from linewatch.pipeline import LinePipeline
from linewatch.storage.snapshot_store import SnapshotStore, date_key

logger = structlog.get_logger()


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SnapshotJob:
    """
    Snapshot ingestion job.

    Args:
        settings: Application settings (categories, credential, thresholds)
        store: Where snapshots are written
        feed: Market feed to use. Defaults to The Odds API when a key is set.
        clock: Current instant; its UTC date picks the partition
    """

    def __init__(
        self,
        settings: Settings,
        store: SnapshotStore,
        feed: Optional[MarketFeed] = None,
        pipeline: Optional[LinePipeline] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.settings = settings
        self.store = store
        self.feed = feed
        self.pipeline = pipeline or LinePipeline.from_settings(settings, store)
        self._clock = clock
        self.logger = logger.bind(component="snapshot_job")

    def _default_feed(self) -> Optional[OddsAPIFeed]:
        if not self.settings.has_credentials:
            return None
        return OddsAPIFeed(
            api_key=self.settings.odds_api_key,
            categories=self.settings.categories,
            config=self.settings.odds_api,
        )

    async def _run_category(
        self,
        feed: MarketFeed,
        category: str,
        label: str,
        now: datetime,
    ) -> int:
        day = date_key(now)
        try:
            lines = await self.pipeline.run(feed, day, category, label, now=now)
            if lines is None:
                self.logger.warning("Upstream unavailable, nothing saved", category=category, label=label)
                return 0
            if not lines:
                # Keep whatever is already persisted rather than blanking it
                self.logger.warning("Nothing to save", category=category, label=label)
                return 0
            await self.store.write(day, category, label, lines)
            return len(lines)
        except Exception as e:
            self.logger.error("Snapshot failed", category=category, label=label, error=str(e))
            return 0

    async def run(self, label: str) -> dict[str, int]:
        """
        Capture one snapshot per tracked category.

        Returns:
            category -> number of games saved
        """
        feed = self.feed or self._default_feed()
        if feed is None:
            self.logger.warning("ODDS_API_KEY not set, skipping snapshot", label=label)
            return {}

        now = self._clock()
        categories = list(self.settings.categories)

        self.logger.info("Starting snapshot", label=label, categories=categories, date=date_key(now))

        owns_feed = self.feed is None
        if owns_feed:
            await feed.start()
        try:
            counts = await asyncio.gather(*(
                self._run_category(feed, category, label, now)
                for category in categories
            ))
        finally:
            if owns_feed:
                await feed.stop()

        results = dict(zip(categories, counts))
        self.logger.info("Snapshot complete", label=label, saved=results)
        return results
