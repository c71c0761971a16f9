# -*- coding: utf-8 -*-
"""
CLI tool for the local health log.

Usage:
    python -m healthlog.cli log sleep '{"duration": 7}'
    python -m healthlog.cli day sleep [--date 2024-05-01]
    python -m healthlog.cli streak [--as-of 2024-05-01]
    python -m healthlog.cli insights [--limit 3]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from .config import settings
from .errors import HealthlogError
from .insights.engine import InsightEngine
from .logs.backends import SqliteLogBackend
from .logs.storage import LogStore
from .stats.aggregator import StatsAggregator


def _open_store(args: argparse.Namespace) -> LogStore:
    db_path = Path(args.db_path) if args.db_path else settings.app_db_path
    return LogStore(
        SqliteLogBackend(db_path),
        tz=args.tz or settings.timezone,
        max_range_days=settings.max_range_days,
    )


def cmd_log(args: argparse.Namespace) -> int:
    """Record one entry from a JSON payload."""
    try:
        payload = json.loads(args.payload)
    except ValueError as exc:
        print(f"Error: payload is not valid JSON: {exc}")
        return 1
    if not isinstance(payload, dict):
        print("Error: payload must be a JSON object")
        return 1
    if args.date:
        payload["date"] = args.date

    store = _open_store(args)
    if "date" not in payload:
        payload["date"] = store.today()
    entry = asyncio.run(store.write(args.category, payload))
    print(json.dumps(entry.model_dump(mode="json"), ensure_ascii=False, indent=2))
    return 0


def cmd_day(args: argparse.Namespace) -> int:
    """Print one day's entries for a category."""
    store = _open_store(args)
    key = store.date_key(args.date) if args.date else store.today()
    entries = asyncio.run(store.read_day(args.category, key))

    print(f"{args.category} on {key}: {len(entries)} entr{'y' if len(entries) == 1 else 'ies'}")
    for entry in entries:
        print(json.dumps(entry.model_dump(mode="json"), ensure_ascii=False))
    return 0


def cmd_streak(args: argparse.Namespace) -> int:
    """Show current and longest streak."""
    store = _open_store(args)
    stats = StatsAggregator(store, chunk_days=settings.streak_chunk_days)
    key = store.date_key(args.as_of) if args.as_of else store.today()

    async def _both():
        return await stats.current_streak(key), await stats.longest_streak(key), await stats.completion_rate(key)

    current, longest, completion = asyncio.run(_both())
    print(f"As of {key}")
    print(f"Current streak: {current} day(s)")
    print(f"Longest streak: {longest} day(s)")
    print(f"Completion today: {completion}%")
    return 0


def cmd_insights(args: argparse.Namespace) -> int:
    """Print ranked insights."""
    store = _open_store(args)
    engine = InsightEngine.with_defaults(store)
    insights = asyncio.run(
        engine.generate(as_of=args.as_of, window_span=args.window_days, max_results=args.limit)
    )

    for i, insight in enumerate(insights, 1):
        print(f"\n[{i}] {insight.title} (priority {insight.priority}, {insight.type})")
        print(f"    {insight.content}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Healthlog CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--db-path",
        help="Path to the SQLite database (default: data/healthlog.db)",
    )
    parser.add_argument(
        "--tz",
        help="IANA time zone for date keys (default: HEALTHLOG_TZ or UTC)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # log command
    log_parser = subparsers.add_parser("log", help="Record an entry")
    log_parser.add_argument("category", help="food, mood, exercise, sleep or water")
    log_parser.add_argument("payload", help="JSON object with the entry fields")
    log_parser.add_argument("--date", help="YYYY-MM-DD (default: today)")

    # day command
    day_parser = subparsers.add_parser("day", help="Show one day's entries")
    day_parser.add_argument("category", help="food, mood, exercise, sleep or water")
    day_parser.add_argument("--date", help="YYYY-MM-DD (default: today)")

    # streak command
    streak_parser = subparsers.add_parser("streak", help="Show streaks")
    streak_parser.add_argument("--as-of", help="YYYY-MM-DD (default: today)")

    # insights command
    insights_parser = subparsers.add_parser("insights", help="Show ranked insights")
    insights_parser.add_argument("--as-of", help="YYYY-MM-DD (default: today)")
    insights_parser.add_argument(
        "--window-days",
        type=int,
        default=None,
        help=f"History window (default: {settings.insight_window_days})",
    )
    insights_parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Max insights to show (default: all)",
    )

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    commands = {
        "log": cmd_log,
        "day": cmd_day,
        "streak": cmd_streak,
        "insights": cmd_insights,
    }

    try:
        return commands[args.command](args)
    except HealthlogError as exc:
        print(f"Error: {exc}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
