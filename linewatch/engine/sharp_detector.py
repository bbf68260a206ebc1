"""
Sharp-Action Detection Engine.

Compares a current GameLine against two reference records:
- Opening: earliest snapshot of the day (drives reverse line movement)
- Previous: most recent earlier snapshot (drives steam moves)

Reverse line movement (RLM):
    Public majority on one side, line moves the other way
    -> professional money inferred on the opposite side

Steam move:
    Line jumps >= 1.5 points against the previous capture (or the opening
    line when there is no earlier capture yet), in either direction

Classification is recomputed from scratch on every call, so re-running
on an already classified line with the same references is a no-op.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

import structlog

from linewatch.config import DetectionSettings
from linewatch.models.schemas import GameLine, SharpSide, SharpTotal

logger = structlog.get_logger()


OPENING_FIELDS = {
    "spread_home_open": "spread_home",
    "total_open": "total",
    "ml_home_open": "ml_home",
    "ml_away_open": "ml_away",
}


@dataclass
class DetectionConfig:
    """Configuration for sharp-action detection."""

    public_majority_pct: float = 55.0   # Public side must exceed this
    steam_threshold: float = 1.5        # Points, inclusive
    display_threshold: float = 0.5      # Smallest move the display layer shows

    @classmethod
    def from_settings(cls, settings: DetectionSettings) -> "DetectionConfig":
        return cls(
            public_majority_pct=settings.public_majority_pct,
            steam_threshold=settings.steam_threshold,
            display_threshold=settings.display_threshold,
        )


def index_by_id(lines: Optional[Iterable[GameLine]]) -> dict[str, GameLine]:
    """Map event id -> GameLine (last one wins)."""
    return {line.id: line for line in lines or []}


class SharpActionDetector:
    """
    Sets RLM, sharp side and steam flags on GameLines.

    Never mutates its inputs: every call returns a new GameLine.
    """

    def __init__(self, config: Optional[DetectionConfig] = None):
        self.config = config or DetectionConfig()
        self.logger = logger.bind(component="sharp_detector")

        self._flag_counts: dict[str, int] = {"rlm_side": 0, "rlm_total": 0, "steam_move": 0}

    # =========================================================================
    # Opening references
    # =========================================================================

    def apply_opening(
        self,
        line: GameLine,
        opening: Optional[GameLine],
        only_missing: bool = False,
    ) -> GameLine:
        """
        Copy opening market values onto `line`.

        Args:
            only_missing: Fill only null opening fields (read-time backfill
                of persisted records)
        """
        if opening is None:
            return line

        update = {}
        for open_field, market_field in OPENING_FIELDS.items():
            if only_missing and getattr(line, open_field) is not None:
                continue
            update[open_field] = getattr(opening, market_field)
        return line.model_copy(update=update)

    def backfill_opening(
        self,
        lines: list[GameLine],
        opening_lines: Optional[Iterable[GameLine]],
    ) -> list[GameLine]:
        """Fill missing opening fields from an opening snapshot."""
        openings = index_by_id(opening_lines)
        return [
            self.apply_opening(line, openings.get(line.id), only_missing=True)
            for line in lines
        ]

    # =========================================================================
    # Core Detection
    # =========================================================================

    def _spread_rlm(self, line: GameLine) -> tuple[Optional[str], bool]:
        if line.spread_home is None or line.spread_home_open is None or line.public_home_pct is None:
            return None, False

        moved = line.spread_home - line.spread_home_open
        majority = self.config.public_majority_pct

        # Public on home, line drifted toward the underdog side
        if line.public_home_pct > majority and moved > 0:
            return SharpSide.AWAY.value, True
        if line.public_away_pct is not None and line.public_away_pct > majority and moved < 0:
            return SharpSide.HOME.value, True
        return None, False

    def _total_rlm(self, line: GameLine) -> tuple[Optional[str], bool]:
        if line.total is None or line.total_open is None or line.public_over_pct is None:
            return None, False

        moved = line.total - line.total_open
        majority = self.config.public_majority_pct

        if line.public_over_pct > majority and moved < 0:
            return SharpTotal.UNDER.value, True
        if line.public_under_pct is not None and line.public_under_pct > majority and moved > 0:
            return SharpTotal.OVER.value, True
        return None, False

    def _is_steam(
        self,
        line: GameLine,
        reference: Optional[GameLine],
    ) -> bool:
        if reference is not None:
            ref_spread, ref_total = reference.spread_home, reference.total
        else:
            ref_spread, ref_total = line.spread_home_open, line.total_open

        threshold = self.config.steam_threshold
        if line.spread_home is not None and ref_spread is not None:
            if abs(line.spread_home - ref_spread) >= threshold:
                return True
        if line.total is not None and ref_total is not None:
            if abs(line.total - ref_total) >= threshold:
                return True
        return False

    def detect(
        self,
        current: GameLine,
        opening: Optional[GameLine] = None,
        previous: Optional[GameLine] = None,
    ) -> GameLine:
        """
        Classify one game against its references.

        Args:
            current: Line to classify (public percentages already estimated)
            opening: Same event in the earliest snapshot, if any
            previous: Same event in the most recent earlier snapshot, if any

        Returns:
            Copy of `current` with opening and classification fields set
        """
        line = self.apply_opening(current, opening)

        sharp_side, rlm_side = self._spread_rlm(line)
        sharp_total, rlm_total = self._total_rlm(line)
        steam_move = self._is_steam(line, previous if previous is not None else opening)

        if rlm_side:
            self._flag_counts["rlm_side"] += 1
        if rlm_total:
            self._flag_counts["rlm_total"] += 1
        if steam_move:
            self._flag_counts["steam_move"] += 1

        if rlm_side or rlm_total or steam_move:
            self.logger.debug(
                "Sharp action",
                game=line.get_display_name(),
                sport=line.sport,
                sharp_side=sharp_side,
                sharp_total=sharp_total,
                steam=steam_move,
            )

        return line.model_copy(update={
            "sharp_side": sharp_side,
            "sharp_total": sharp_total,
            "rlm_side": rlm_side,
            "rlm_total": rlm_total,
            "steam_move": steam_move,
        })

    def detect_all(
        self,
        lines: list[GameLine],
        opening_lines: Optional[Iterable[GameLine]] = None,
        previous_lines: Optional[Iterable[GameLine]] = None,
    ) -> list[GameLine]:
        """Classify a whole snapshot, matching references by event id."""
        openings = index_by_id(opening_lines)
        previous = index_by_id(previous_lines)
        return [
            self.detect(line, openings.get(line.id), previous.get(line.id))
            for line in lines
        ]

    # =========================================================================
    # Metrics
    # =========================================================================

    def get_metrics(self) -> dict:
        """Get detector metrics."""
        return {
            "public_majority_pct": self.config.public_majority_pct,
            "steam_threshold": self.config.steam_threshold,
            "flag_counts": dict(self._flag_counts),
        }
