"""
Line Watch data models and schemas.

Defines the core data structures for:
- GameLine: one event's market snapshot plus derived sharp-money fields
- Snapshot labels and classification enums
- Sharp alerts and the query response returned to the display layer

GameLine keys are snake_case and match the persisted snapshot files, so
older files missing newer fields still validate (defaults fill the gaps).
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SnapshotLabel(str, Enum):
    """Logical capture tags."""
    OPENING = "10pm"    # Night-before opening window
    MIDDAY = "12pm"     # Game-day midday capture
    LATEST = "latest"   # Freshest available
    LIVE = "live"       # Produced by a live query, never persisted by the job


class SharpSide(str, Enum):
    """Side sharp money is inferred on (spread)."""
    HOME = "home"
    AWAY = "away"


class SharpTotal(str, Enum):
    """Side sharp money is inferred on (total)."""
    OVER = "over"
    UNDER = "under"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class GameLine(BaseModel):
    """
    One event's market snapshot.

    Market fields come from the normalizer, public percentages from the
    estimator, classification fields from the sharp-action detector.
    """

    model_config = ConfigDict(use_enum_values=True, extra="ignore")

    # Identity
    id: str
    sport: str                  # Category, e.g. "nba"
    home: str
    away: str
    commence: datetime

    # Market (spread signed relative to each side, American odds for ML)
    spread_home: Optional[float] = None
    spread_away: Optional[float] = None
    total: Optional[float] = None
    ml_home: Optional[float] = None
    ml_away: Optional[float] = None

    # Opening references, resolved against the earliest snapshot
    spread_home_open: Optional[float] = None
    total_open: Optional[float] = None
    ml_home_open: Optional[float] = None
    ml_away_open: Optional[float] = None

    # Estimated public split (heuristic, not measured)
    public_home_pct: Optional[int] = None
    public_away_pct: Optional[int] = None
    public_over_pct: Optional[int] = None
    public_under_pct: Optional[int] = None

    # Classification
    sharp_side: Optional[SharpSide] = None
    sharp_total: Optional[SharpTotal] = None
    steam_move: bool = False
    rlm_side: bool = False
    rlm_total: bool = False

    # Provenance
    snapshot_time: datetime = Field(default_factory=_utc_now)
    snapshot_label: str = SnapshotLabel.LIVE.value

    @field_validator("commence", "snapshot_time")
    @classmethod
    def _ensure_aware(cls, value: datetime) -> datetime:
        """Naive instants are taken as UTC."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_validator("steam_move", "rlm_side", "rlm_total", mode="before")
    @classmethod
    def _null_flag_is_false(cls, value):
        return False if value is None else value

    def get_display_name(self) -> str:
        """Get human-readable event name."""
        return f"{self.away} @ {self.home}"

    def to_record(self) -> dict:
        """JSON-ready dict, as written to snapshot files."""
        return self.model_dump(mode="json")


class AlertType(str, Enum):
    """Kind of sharp alert."""
    RLM = "rlm"
    STEAM = "steam"


@dataclass
class SharpAlert:
    """A displayable sharp-money alert for one game."""
    game: GameLine
    type: AlertType
    side: str           # Team name, "Over" or "Under"
    description: str

    def to_log(self) -> dict:
        """Convert to loggable dict."""
        return {
            "event_id": self.game.id,
            "game": self.game.get_display_name(),
            "type": self.type.value,
            "side": self.side,
            "description": self.description,
        }


class LinesResponse(BaseModel):
    """Query response: enriched games plus the echoed request."""

    games: list[GameLine]
    sport: str
    date: str
    snapshot: str
    source: str                 # "live" or "snapshot"
    generated_at: datetime = Field(default_factory=_utc_now)
