"""
Query Orchestrator.

Answers display-layer requests of the form (category | "all", date, label):

- Today + "latest" + API key configured -> live pipeline, cached per
  category for a short TTL
- Anything else -> persisted snapshot: exact label, else the most recent
  snapshot of the day; opening lines are backfilled from the earliest
  snapshot at read time

With "all", categories are fetched concurrently and independently. A
category that fails contributes no games; the others are still returned.
"""

import asyncio
from datetime import datetime, timezone
from typing import Callable, Optional

import structlog

from linewatch.config import Settings
from linewatch.feeds import MarketFeed, OddsAPIFeed
from linewatch.models.schemas import GameLine, LinesResponse, SnapshotLabel
from linewatch.pipeline import LinePipeline
from linewatch.storage.snapshot_store import DateLike, SnapshotStore, date_key
from linewatch.utils.cache import TTLCache

logger = structlog.get_logger()


ALL_CATEGORIES = "all"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _sort_key(line: GameLine) -> tuple:
    return (line.commence, line.id)


class LinesQueryService:
    """
    Routes line queries to the live pipeline or the snapshot store.

    Args:
        settings: Application settings
        store: Snapshot store
        feed: Live market feed. None means snapshot-only mode.
        cache: Live result cache (defaults to settings.cache_ttl_seconds)
        clock: Current instant; its UTC date defines "today"
    """

    def __init__(
        self,
        settings: Settings,
        store: SnapshotStore,
        feed: Optional[MarketFeed] = None,
        pipeline: Optional[LinePipeline] = None,
        cache: Optional[TTLCache[list[GameLine]]] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.settings = settings
        self.store = store
        self.feed = feed
        self.pipeline = pipeline or LinePipeline.from_settings(settings, store)
        self.cache = cache if cache is not None else TTLCache(settings.cache_ttl_seconds)
        self._clock = clock
        self.logger = logger.bind(component="lines_query")

    @classmethod
    def from_settings(cls, settings: Settings) -> "LinesQueryService":
        """Build the service; live mode only when a key is configured."""
        store = SnapshotStore(settings.data_dir)
        feed = None
        if settings.has_credentials:
            feed = OddsAPIFeed(
                api_key=settings.odds_api_key,
                categories=settings.categories,
                config=settings.odds_api,
            )
        return cls(settings=settings, store=store, feed=feed)

    @property
    def live_enabled(self) -> bool:
        return self.feed is not None

    def _categories(self, category: str) -> list[str]:
        if category == ALL_CATEGORIES:
            return list(self.settings.categories)
        return [category]

    def _is_live(self, day: str, label: str) -> bool:
        today = date_key(self._clock())
        return day == today and label == SnapshotLabel.LATEST.value and self.live_enabled

    # =========================================================================
    # Retrieval paths
    # =========================================================================

    async def _live(self, category: str, day: str) -> list[GameLine]:
        cached = self.cache.get(category)
        if cached is not None:
            self.logger.debug("Cache hit", category=category)
            return [game.model_copy(deep=True) for game in cached]

        games = await self.pipeline.run(
            self.feed,
            day,
            category,
            SnapshotLabel.LIVE.value,
            now=self._clock(),
        )
        if games is None:
            self.logger.warning("Upstream unavailable", category=category)
            return []

        # Quiet slates are cached too; outages are not
        self.cache.set(category, [game.model_copy(deep=True) for game in games])
        return games

    async def _from_snapshot(self, category: str, day: str, label: str) -> list[GameLine]:
        read = await self.store.read_exact(day, category, label)
        if not read.found:
            read = await self.store.read_fallback(day, category)
        if read.degraded:
            self.logger.warning(
                "Snapshot read degraded",
                category=category,
                date=day,
                label=label,
                skipped=read.skipped,
            )
        if not read.lines:
            return []

        opening = await self.store.read_earliest(day, category)
        return self.pipeline.detector.backfill_opening(read.lines, opening.lines)

    async def _category(self, category: str, day: str, label: str, live: bool) -> list[GameLine]:
        if category not in self.settings.categories:
            self.logger.warning("Unknown category", category=category)
            return []
        try:
            if live:
                return await self._live(category, day)
            return await self._from_snapshot(category, day, label)
        except Exception as e:
            self.logger.error("Category query failed", category=category, error=str(e))
            return []

    # =========================================================================
    # Public API
    # =========================================================================

    async def get_lines(
        self,
        category: str = ALL_CATEGORIES,
        date: Optional[DateLike] = None,
        snapshot: str = SnapshotLabel.LATEST.value,
    ) -> LinesResponse:
        """
        Enriched games for a category (or all) on a date.

        Args:
            category: Category key or "all"
            date: Date (YYYY-MM-DD or date); defaults to today (UTC)
            snapshot: Snapshot label, "latest" for the freshest data
        """
        now = self._clock()
        try:
            day = date_key(date if date is not None else now)
        except (TypeError, ValueError) as e:
            self.logger.warning("Invalid date", sport=category, date=str(date), error=str(e))
            return LinesResponse(
                games=[],
                sport=category,
                date=str(date),
                snapshot=snapshot,
                source="snapshot",
                generated_at=now,
            )
        live = self._is_live(day, snapshot)

        categories = self._categories(category)
        results = await asyncio.gather(*(
            self._category(c, day, snapshot, live) for c in categories
        ))

        games = sorted((g for result in results for g in result), key=_sort_key)

        self.logger.info(
            "Lines query",
            sport=category,
            date=day,
            snapshot=snapshot,
            source="live" if live else "snapshot",
            games=len(games),
        )

        return LinesResponse(
            games=games,
            sport=category,
            date=day,
            snapshot=snapshot,
            source="live" if live else "snapshot",
            generated_at=now,
        )

    async def close(self) -> None:
        stop = getattr(self.feed, "stop", None)
        if stop is not None:
            await stop()
