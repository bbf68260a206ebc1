"""Test helpers: fakes and builders."""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from linewatch.models.schemas import GameLine


NOW = datetime(2024, 3, 1, 18, 0, tzinfo=timezone.utc)


class FixedRandom:
    """Random source that always returns the same draw."""

    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StepClock:
    """UTC datetime clock that moves forward one minute per call."""

    def __init__(self, start: datetime = NOW):
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(minutes=1)
        return value


class FakeFeed:
    """Market feed serving canned payloads per category.

    `failing` categories raise; `unavailable` ones report an outage (None).
    """

    def __init__(
        self,
        events: Optional[dict[str, list[dict]]] = None,
        failing: set[str] = frozenset(),
        unavailable: set[str] = frozenset(),
    ):
        self.events = events or {}
        self.failing = set(failing)
        self.unavailable = set(unavailable)
        self.calls: list[str] = []

    async def fetch_events(self, category: str) -> Optional[list[dict[str, Any]]]:
        self.calls.append(category)
        if category in self.failing:
            raise RuntimeError(f"upstream down for {category}")
        if category in self.unavailable:
            return None
        return self.events.get(category, [])


def raw_event(
    event_id: str = "evt1",
    home: str = "Los Angeles Lakers",
    away: str = "Boston Celtics",
    spread: Optional[float] = -3.5,
    total: Optional[float] = 224.5,
    ml_home: Optional[float] = -165,
    ml_away: Optional[float] = 140,
    book: str = "draftkings",
    commence: str = "2024-03-02T00:30:00Z",
) -> dict:
    """Odds API shaped event with a single bookmaker."""
    markets = []
    if spread is not None:
        markets.append({
            "key": "spreads",
            "outcomes": [
                {"name": home, "price": -110, "point": spread},
                {"name": away, "price": -110, "point": -spread},
            ],
        })
    if total is not None:
        markets.append({
            "key": "totals",
            "outcomes": [
                {"name": "Over", "price": -110, "point": total},
                {"name": "Under", "price": -110, "point": total},
            ],
        })
    if ml_home is not None and ml_away is not None:
        markets.append({
            "key": "h2h",
            "outcomes": [
                {"name": home, "price": ml_home},
                {"name": away, "price": ml_away},
            ],
        })
    return {
        "id": event_id,
        "sport_key": "basketball_nba",
        "commence_time": commence,
        "home_team": home,
        "away_team": away,
        "bookmakers": [{"key": book, "title": book.title(), "markets": markets}],
    }


def make_line(**overrides) -> GameLine:
    """GameLine with sensible defaults."""
    data = {
        "id": "evt1",
        "sport": "nba",
        "home": "Los Angeles Lakers",
        "away": "Boston Celtics",
        "commence": datetime(2024, 3, 2, 0, 30, tzinfo=timezone.utc),
        "spread_home": -3.5,
        "spread_away": 3.5,
        "total": 224.5,
        "ml_home": -165,
        "ml_away": 140,
        "snapshot_time": NOW,
        "snapshot_label": "12pm",
    }
    data.update(overrides)
    return GameLine(**data)
