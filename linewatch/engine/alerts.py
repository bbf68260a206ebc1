"""
Sharp alerts for the display layer.

Turns a classified GameLine into short human-readable alerts. RLM alerts
follow the detector's flags, so alerts never disagree with the record.
Steam alerts describe the move from the opening line.
"""

from typing import Optional

from linewatch.engine.sharp_detector import DetectionConfig
from linewatch.models.schemas import AlertType, GameLine, SharpAlert, SharpSide, SharpTotal


def has_sharp_action(game: GameLine) -> bool:
    """True when any sharp-money classification is set."""
    return (
        game.sharp_side is not None
        or game.sharp_total is not None
        or game.steam_move
        or game.rlm_side
        or game.rlm_total
    )


def is_display_move(
    current: Optional[float],
    opening: Optional[float],
    config: Optional[DetectionConfig] = None,
) -> bool:
    """Whether a line change is big enough to show."""
    if current is None or opening is None:
        return False
    threshold = (config or DetectionConfig()).display_threshold
    return abs(current - opening) >= threshold


def _fmt(value: float) -> str:
    return f"{value:g}"


def build_alerts(game: GameLine, config: Optional[DetectionConfig] = None) -> list[SharpAlert]:
    """
    Build alerts for one game.

    Args:
        game: Classified line
        config: Thresholds the line was classified with

    Returns:
        RLM alerts (spread, then total) followed by steam alerts
    """
    config = config or DetectionConfig()
    alerts: list[SharpAlert] = []

    # RLM on spread
    if game.rlm_side and game.spread_home is not None and game.spread_home_open is not None:
        line_move = f"{_fmt(game.spread_home_open)} → {_fmt(game.spread_home)}"
        if game.sharp_side == SharpSide.AWAY.value:
            alerts.append(SharpAlert(
                game=game,
                type=AlertType.RLM,
                side=game.away,
                description=f"{game.public_home_pct}% public on {game.home}, but line moved from {line_move}",
            ))
        elif game.sharp_side == SharpSide.HOME.value:
            alerts.append(SharpAlert(
                game=game,
                type=AlertType.RLM,
                side=game.home,
                description=f"{game.public_away_pct}% public on {game.away}, but line moved from {line_move}",
            ))

    # RLM on total
    if game.rlm_total and game.total is not None and game.total_open is not None:
        if game.sharp_total == SharpTotal.UNDER.value:
            alerts.append(SharpAlert(
                game=game,
                type=AlertType.RLM,
                side="Under",
                description=(
                    f"{game.public_over_pct}% public on Over, but total dropped from "
                    f"{_fmt(game.total_open)} → {_fmt(game.total)}"
                ),
            ))
        elif game.sharp_total == SharpTotal.OVER.value:
            alerts.append(SharpAlert(
                game=game,
                type=AlertType.RLM,
                side="Over",
                description=(
                    f"{game.public_under_pct}% public on Under, but total rose from "
                    f"{_fmt(game.total_open)} → {_fmt(game.total)}"
                ),
            ))

    # Steam (opening -> current)
    if game.steam_move:
        if game.spread_home is not None and game.spread_home_open is not None:
            diff = game.spread_home - game.spread_home_open
            if abs(diff) >= config.steam_threshold:
                alerts.append(SharpAlert(
                    game=game,
                    type=AlertType.STEAM,
                    side=game.away if diff > 0 else game.home,
                    description=(
                        f"Spread moved {abs(diff):.1f} pts: "
                        f"{_fmt(game.spread_home_open)} → {_fmt(game.spread_home)}"
                    ),
                ))
        if game.total is not None and game.total_open is not None:
            diff = game.total - game.total_open
            if abs(diff) >= config.steam_threshold:
                alerts.append(SharpAlert(
                    game=game,
                    type=AlertType.STEAM,
                    side="Over" if diff > 0 else "Under",
                    description=(
                        f"Total moved {abs(diff):.1f} pts: "
                        f"{_fmt(game.total_open)} → {_fmt(game.total)}"
                    ),
                ))

    return alerts
