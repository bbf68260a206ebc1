"""
Offline demo feed.

Serves Odds API shaped payloads from a small fixed slate so the snapshot
job, store and detector can run end to end without an API key. The opening
label returns opening numbers; any later label returns moved numbers.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import structlog

from linewatch.models.schemas import SnapshotLabel

logger = structlog.get_logger()


# (id, home, away, hours_out, open (spread, total, ml_home, ml_away), current (...))
DEMO_SLATE: dict[str, list[tuple]] = {
    "nba": [
        ("nba1", "Los Angeles Lakers", "Boston Celtics", 24, (-2.5, 223.0, -145, 125), (-3.5, 224.5, -165, 140)),
        ("nba2", "Golden State Warriors", "Denver Nuggets", 25, (2.5, 232.5, 120, -140), (1.5, 231.0, 110, -130)),
        ("nba3", "Philadelphia 76ers", "Milwaukee Bucks", 26, (6.0, 219.0, 210, -260), (5.5, 218.5, 200, -245)),
        ("nba4", "Miami Heat", "New York Knicks", 26.5, (-1.5, 211.5, -125, 105), (-1.0, 210.0, -115, -105)),
    ],
    "nhl": [
        ("nhl1", "Toronto Maple Leafs", "Montreal Canadiens", 24, (-1.5, 6.0, -170, 145), (-1.5, 6.5, -180, 155)),
        ("nhl2", "Colorado Avalanche", "Vegas Golden Knights", 26, (-1.5, 6.5, -155, 130), (-1.5, 6.0, -145, 125)),
        ("nhl3", "New York Rangers", "Carolina Hurricanes", 25, (1.5, 5.5, 140, -165), (1.5, 5.5, 130, -155)),
    ],
    "cbb": [
        ("cbb1", "Duke Blue Devils", "North Carolina Tar Heels", 24, (-3.5, 147.0, -180, 155), (-4.5, 148.0, -200, 170)),
        ("cbb2", "Kansas Jayhawks", "Houston Cougars", 25, (-3.0, 136.5, -150, 125), (-2.0, 135.5, -130, 110)),
        ("cbb3", "UConn Huskies", "Marquette Golden Eagles", 26, (-7.0, 143.0, -300, 240), (-6.5, 142.0, -280, 225)),
    ],
}


def _book(home: str, away: str, line: tuple) -> dict[str, Any]:
    spread, total, ml_home, ml_away = line
    return {
        "key": "draftkings",
        "title": "DraftKings",
        "markets": [
            {
                "key": "spreads",
                "outcomes": [
                    {"name": home, "price": -110, "point": spread},
                    {"name": away, "price": -110, "point": -spread},
                ],
            },
            {
                "key": "totals",
                "outcomes": [
                    {"name": "Over", "price": -110, "point": total},
                    {"name": "Under", "price": -110, "point": total},
                ],
            },
            {
                "key": "h2h",
                "outcomes": [
                    {"name": home, "price": ml_home},
                    {"name": away, "price": ml_away},
                ],
            },
        ],
    }


class DemoFeed:
    """Fixed-slate feed with the same interface as OddsAPIFeed."""

    def __init__(self, label: str, now: Optional[datetime] = None):
        self.label = label
        self.now = now or datetime.now(timezone.utc)
        self.logger = logger.bind(feed="demo")

    async def __aenter__(self) -> "DemoFeed":
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None

    async def fetch_events(self, category: str) -> list[dict[str, Any]]:
        slate = DEMO_SLATE.get(category, [])
        use_open = self.label == SnapshotLabel.OPENING.value

        events = []
        for event_id, home, away, hours_out, open_line, current_line in slate:
            commence = self.now + timedelta(hours=hours_out)
            events.append({
                "id": event_id,
                "sport_key": category,
                "home_team": home,
                "away_team": away,
                "commence_time": commence.isoformat().replace("+00:00", "Z"),
                "bookmakers": [_book(home, away, open_line if use_open else current_line)],
            })

        self.logger.debug("Demo events", category=category, count=len(events), label=self.label)
        return events
