"""
Public-Money Estimator.

Heuristic stand-in for real betting splits (which we do not scrape):
- Favorites draw more public money the bigger the spread, capped at 75%
- Overs draw 53-65% of public money, drawn at random

The random source is pluggable so tests can pin the draw.
"""

import math
import random
from typing import Optional, Protocol

from linewatch.models.schemas import GameLine


FAVORITE_BASE_PCT = 55.0
FAVORITE_PCT_PER_POINT = 1.5
FAVORITE_MAX_PCT = 75.0

OVER_MIN_PCT = 53.0
OVER_RANGE_PCT = 12.0   # Over lands in [53, 65)


class RandomSource(Protocol):
    """Source of uniform floats in [0, 1)."""

    def random(self) -> float:
        ...


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def favorite_public_pct(spread_home: float) -> int:
    """Public percentage on the favored side for a given home spread."""
    pct = min(FAVORITE_MAX_PCT, FAVORITE_BASE_PCT + FAVORITE_PCT_PER_POINT * abs(spread_home))
    return round_half_up(pct)


class PublicMoneyEstimator:
    """
    Fills public_*_pct fields on a GameLine.

    Args:
        rng: Random source for the over/under draw
        freeze_total_estimate: Seed the draw from (event id, label) so the
            same event and label always get the same over/under split
    """

    def __init__(
        self,
        rng: Optional[RandomSource] = None,
        freeze_total_estimate: bool = False,
    ):
        self.rng = rng or random.Random()
        self.freeze_total_estimate = freeze_total_estimate

    def _draw(self, line: GameLine) -> float:
        if self.freeze_total_estimate:
            return random.Random(f"{line.id}:{line.snapshot_label}").random()
        return self.rng.random()

    def spread_split(self, spread_home: Optional[float]) -> tuple[Optional[int], Optional[int]]:
        """(home %, away %) for a home spread. Pick'em favors away."""
        if spread_home is None:
            return None, None
        fav_pct = favorite_public_pct(spread_home)
        if spread_home < 0:
            return fav_pct, 100 - fav_pct
        return 100 - fav_pct, fav_pct

    def total_split(self, line: GameLine) -> tuple[Optional[int], Optional[int]]:
        """(over %, under %) for a line with a total."""
        if line.total is None:
            return None, None
        over_pct = round_half_up(OVER_MIN_PCT + self._draw(line) * OVER_RANGE_PCT)
        return over_pct, 100 - over_pct

    def estimate(self, line: GameLine) -> GameLine:
        """Return a copy of `line` with public percentages populated."""
        public_home, public_away = self.spread_split(line.spread_home)
        public_over, public_under = self.total_split(line)
        return line.model_copy(update={
            "public_home_pct": public_home,
            "public_away_pct": public_away,
            "public_over_pct": public_over,
            "public_under_pct": public_under,
        })

    def estimate_all(self, lines: list[GameLine]) -> list[GameLine]:
        return [self.estimate(line) for line in lines]
