"""
Market Line Normalizer.

Turns one raw multi-bookmaker event into a canonical GameLine.

For each market the first bookmaker in priority order that quotes it is
used as-is. Lines are never averaged across books, so a GameLine's spread,
total and moneyline may come from different books.
"""

from datetime import datetime, timezone
from typing import Any, Optional, Sequence

import structlog

from linewatch.models.schemas import GameLine, SnapshotLabel

logger = structlog.get_logger()


SPREADS = "spreads"
TOTALS = "totals"
H2H = "h2h"


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _find_outcome(outcomes: Optional[list[dict]], name: str) -> Optional[dict]:
    if not outcomes:
        return None
    for outcome in outcomes:
        if outcome.get("name") == name:
            return outcome
    return None


class MarketLineNormalizer:
    """
    Normalizes provider payloads into GameLines.

    Args:
        bookmaker_priority: Book keys in preference order. Books not listed
            keep their payload order after the listed ones.
    """

    def __init__(self, bookmaker_priority: Sequence[str] = ()):
        self.bookmaker_priority = list(bookmaker_priority)
        self.logger = logger.bind(component="normalizer")

    def _ordered_books(self, bookmakers: list[dict]) -> list[dict]:
        rank = {key: i for i, key in enumerate(self.bookmaker_priority)}
        fallback = len(rank)
        # sorted() is stable, so unlisted books keep payload order
        return sorted(bookmakers, key=lambda b: rank.get(b.get("key", ""), fallback))

    def extract_market(self, bookmakers: list[dict], market: str) -> Optional[list[dict]]:
        """Outcomes of the first book quoting `market`, or None."""
        for book in self._ordered_books(bookmakers):
            for m in book.get("markets") or []:
                if m.get("key") == market:
                    return m.get("outcomes") or []
        return None

    def normalize(
        self,
        raw: dict[str, Any],
        category: str,
        label: str = SnapshotLabel.LIVE.value,
        now: Optional[datetime] = None,
    ) -> Optional[GameLine]:
        """
        Build a GameLine from one provider event.

        Missing markets or outcomes give null fields. Returns None only when
        the event itself is unusable (no id, participants or start time).
        """
        event_id = raw.get("id")
        home = raw.get("home_team")
        away = raw.get("away_team")
        if not event_id or not home or not away:
            self.logger.debug("Skipping event without identity", event_id=event_id)
            return None

        try:
            commence = _parse_time(raw.get("commence_time"))
        except (AttributeError, ValueError):
            commence = None
        if commence is None:
            self.logger.warning("Skipping event without start time", event_id=event_id, value=raw.get("commence_time"))
            return None

        bookmakers = raw.get("bookmakers") or []
        spreads = self.extract_market(bookmakers, SPREADS)
        totals = self.extract_market(bookmakers, TOTALS)
        h2h = self.extract_market(bookmakers, H2H)

        home_spread = _find_outcome(spreads, home)
        away_spread = _find_outcome(spreads, away)
        over = _find_outcome(totals, "Over")
        under = _find_outcome(totals, "Under")
        home_ml = _find_outcome(h2h, home)
        away_ml = _find_outcome(h2h, away)

        spread_home = home_spread.get("point") if home_spread else None
        spread_away = away_spread.get("point") if away_spread else None
        if spread_away is None and spread_home is not None:
            spread_away = -spread_home

        total = over.get("point") if over else None
        if total is None and under:
            total = under.get("point")

        now = now or datetime.now(timezone.utc)

        return GameLine(
            id=str(event_id),
            sport=category,
            home=home,
            away=away,
            commence=commence,
            spread_home=spread_home,
            spread_away=spread_away,
            total=total,
            ml_home=home_ml.get("price") if home_ml else None,
            ml_away=away_ml.get("price") if away_ml else None,
            snapshot_time=now,
            snapshot_label=label,
        )

    def normalize_all(
        self,
        events: list[dict[str, Any]],
        category: str,
        label: str = SnapshotLabel.LIVE.value,
        now: Optional[datetime] = None,
    ) -> list[GameLine]:
        """Normalize a whole category payload, dropping unusable events."""
        now = now or datetime.now(timezone.utc)
        lines = []
        for raw in events:
            line = self.normalize(raw, category, label=label, now=now)
            if line is not None:
                lines.append(line)
        return lines
