"""
Line Watch - command line entry point.

Usage:
    python -m linewatch.main snapshot --label 10pm
    python -m linewatch.main snapshot --label 12pm --demo
    python -m linewatch.main lines --sport all --snapshot latest
    python -m linewatch.main history --sport nba
    python -m linewatch.main settings

Environment Variables:
    ODDS_API_KEY   - The Odds API key (absent: snapshot-only queries, no-op job)
    DATA_DIR       - Snapshot directory (default: data)
    LOG_LEVEL      - Logging level (default: INFO)
"""

import argparse
import asyncio
import sys
from datetime import date, datetime, timezone
from typing import Optional

import orjson
import structlog

from linewatch.config import Settings, get_settings
from linewatch.engine.alerts import build_alerts, is_display_move
from linewatch.engine.sharp_detector import DetectionConfig
from linewatch.feeds import DemoFeed
from linewatch.ingest import SnapshotJob
from linewatch.models.schemas import GameLine, SnapshotLabel
from linewatch.query import ALL_CATEGORIES, LinesQueryService
from linewatch.storage.snapshot_store import SnapshotStore
from linewatch.utils.logging import setup_logging

logger = structlog.get_logger()


JOB_LABELS = [SnapshotLabel.OPENING.value, SnapshotLabel.MIDDAY.value, SnapshotLabel.LATEST.value]


def _iso_date(value: str) -> str:
    try:
        return date.fromisoformat(value).isoformat()
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a YYYY-MM-DD date: {value!r}")


def _format_number(value: Optional[float], signed: bool = False) -> str:
    if value is None:
        return "-"
    return f"{value:+g}" if signed else f"{value:g}"


def _format_game(game: GameLine, config: DetectionConfig) -> str:
    flags = []
    moved = (
        is_display_move(game.spread_home, game.spread_home_open, config)
        or is_display_move(game.total, game.total_open, config)
    )
    if moved:
        flags.append("MOVED")
    if game.rlm_side:
        flags.append(f"RLM:{game.sharp_side}")
    if game.rlm_total:
        flags.append(f"RLM:{game.sharp_total}")
    if game.steam_move:
        flags.append("STEAM")
    return (
        f"[{game.sport}] {game.get_display_name():<50} "
        f"spread {_format_number(game.spread_home, signed=True):>6} "
        f"(open {_format_number(game.spread_home_open, signed=True)})  "
        f"total {_format_number(game.total):>6} "
        f"(open {_format_number(game.total_open)})  "
        f"{' '.join(flags)}"
    )


async def cmd_snapshot(args, settings: Settings) -> int:
    store = SnapshotStore(settings.data_dir)
    feed = DemoFeed(args.label) if args.demo else None
    job = SnapshotJob(settings, store, feed=feed)
    results = await job.run(args.label)
    for category, count in results.items():
        print(f"{category}: saved {count} games")
    return 0


async def cmd_lines(args, settings: Settings) -> int:
    service = LinesQueryService.from_settings(settings)
    try:
        response = await service.get_lines(args.sport, args.date, args.snapshot)
    finally:
        await service.close()

    if args.json:
        sys.stdout.write(orjson.dumps(response.model_dump(mode="json"), option=orjson.OPT_INDENT_2).decode())
        sys.stdout.write("\n")
        return 0

    config = DetectionConfig.from_settings(settings.detection)
    print(f"{response.sport} {response.date} [{response.snapshot}] source={response.source} games={len(response.games)}")
    for game in response.games:
        print(_format_game(game, config))
        if args.alerts:
            for alert in build_alerts(game, config):
                print(f"    {alert.type.value.upper()} {alert.side}: {alert.description}")
    return 0


async def cmd_history(args, settings: Settings) -> int:
    store = SnapshotStore(settings.data_dir)
    day = args.date or datetime.now(timezone.utc).date().isoformat()
    categories = list(settings.categories) if args.sport == ALL_CATEGORIES else [args.sport]
    for category in categories:
        for meta in await store.list_snapshots(day, category):
            print(
                f"{meta.date} {meta.category:<5} {meta.label:<8} "
                f"seq={meta.sequence if meta.sequence is not None else '-'} "
                f"captured={meta.captured_at.isoformat()} games={meta.game_count}"
            )
    return 0


async def cmd_settings(args, settings: Settings) -> int:
    data = settings.model_dump(mode="json")
    if data.get("odds_api_key"):
        data["odds_api_key"] = "***"
    sys.stdout.write(orjson.dumps(data, option=orjson.OPT_INDENT_2).decode())
    sys.stdout.write("\n")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="linewatch")
    p.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    sub = p.add_subparsers(dest="cmd")

    s = sub.add_parser("snapshot", help="Capture one snapshot per category")
    s.add_argument("--label", choices=JOB_LABELS, default=SnapshotLabel.LATEST.value)
    s.add_argument("--demo", action="store_true", help="Use the offline demo slate")
    s.set_defaults(func=cmd_snapshot)

    s = sub.add_parser("lines", help="Query enriched lines")
    s.add_argument("--sport", default=ALL_CATEGORIES)
    s.add_argument("--date", type=_iso_date)
    s.add_argument("--snapshot", default=SnapshotLabel.LATEST.value)
    s.add_argument("--json", action="store_true")
    s.add_argument("--alerts", action="store_true", help="Print sharp alerts under each game")
    s.set_defaults(func=cmd_lines)

    s = sub.add_parser("history", help="List snapshots captured for a date")
    s.add_argument("--sport", default=ALL_CATEGORIES)
    s.add_argument("--date", type=_iso_date)
    s.set_defaults(func=cmd_history)

    s = sub.add_parser("settings")
    s.set_defaults(func=cmd_settings)

    return p


def main(argv=None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 2

    settings = get_settings()
    setup_logging(settings.log_level, json_logs=args.json_logs)

    return asyncio.run(args.func(args, settings))


if __name__ == "__main__":
    raise SystemExit(main())
