"""
Per-category line pipeline.

    fetch -> normalize -> estimate -> (opening, previous) -> detect

Each stage consumes the previous stage's output, so a category runs
sequentially. The two reference reads are independent and run together.
"""

import asyncio
from datetime import datetime, timezone
from typing import Optional

import structlog

from linewatch.config import Settings
from linewatch.engine.estimator import PublicMoneyEstimator, RandomSource
from linewatch.engine.normalizer import MarketLineNormalizer
from linewatch.engine.sharp_detector import DetectionConfig, SharpActionDetector
from linewatch.feeds import MarketFeed
from linewatch.models.schemas import GameLine
from linewatch.storage.snapshot_store import DateLike, SnapshotStore

logger = structlog.get_logger()


class LinePipeline:
    """Normalizer, estimator and detector wired to a snapshot store."""

    def __init__(
        self,
        store: SnapshotStore,
        normalizer: Optional[MarketLineNormalizer] = None,
        estimator: Optional[PublicMoneyEstimator] = None,
        detector: Optional[SharpActionDetector] = None,
    ):
        self.store = store
        self.normalizer = normalizer or MarketLineNormalizer()
        self.estimator = estimator or PublicMoneyEstimator()
        self.detector = detector or SharpActionDetector()
        self.logger = logger.bind(component="pipeline")

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store: SnapshotStore,
        rng: Optional[RandomSource] = None,
    ) -> "LinePipeline":
        detection = settings.detection
        return cls(
            store=store,
            normalizer=MarketLineNormalizer(settings.odds_api.bookmakers),
            estimator=PublicMoneyEstimator(
                rng=rng,
                freeze_total_estimate=detection.freeze_total_estimate,
            ),
            detector=SharpActionDetector(DetectionConfig.from_settings(detection)),
        )

    async def run(
        self,
        feed: MarketFeed,
        day: DateLike,
        category: str,
        label: str,
        now: Optional[datetime] = None,
    ) -> Optional[list[GameLine]]:
        """
        Produce classified GameLines for one category.

        Args:
            feed: Upstream market feed
            day: Partition date used for reference lookups
            category: Category to fetch
            label: Label the result will carry (and the previous-reference
                lookup excludes)

        Returns:
            Classified lines, possibly empty. None when the upstream fetch
            failed.
        """
        now = now or datetime.now(timezone.utc)

        events = await feed.fetch_events(category)
        if events is None:
            return None

        lines = self.normalizer.normalize_all(events, category, label=label, now=now)
        if not lines:
            self.logger.info("No games", category=category, label=label)
            return []

        lines = self.estimator.estimate_all(lines)

        opening, previous = await asyncio.gather(
            self.store.read_earliest(day, category),
            self.store.read_latest_before(day, category, label),
        )
        if opening.degraded or previous.degraded:
            self.logger.warning(
                "Reference snapshots degraded",
                category=category,
                skipped=sorted(set(opening.skipped) | set(previous.skipped)),
            )

        return self.detector.detect_all(lines, opening.lines, previous.lines)
