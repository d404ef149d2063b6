"""
Command-line interface for the application.

This module provides the main entry point for the CLI. State lives in a
``FileStore`` under ``settings.data_dir``; save a birth profile first with
``energy-today profile``.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from datetime import date
from typing import Any

from energy_today import __version__
from energy_today.analysis.common import InsufficientData
from energy_today.config import get_settings
from energy_today.engine import EngineContext, snapshot_to_dict
from energy_today.errors import EnergyTodayError, ValidationError
from energy_today.flows import insights
from energy_today.schemas import BirthProfile, ObservationCategory, Rating
from energy_today.store import FileStore
from energy_today.systems.numerology import parse_date
from energy_today.tracking import CorrelationEngine, PredictionAccuracyTracker, ProfileRepository

logger = logging.getLogger(__name__)

_TRUE_WORDS = {"true", "yes", "y", "done"}
_FALSE_WORDS = {"false", "no", "n", "skipped"}


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="energy-today",
        description="Daily energy scores from birth data, and how well they track your days",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("info", help="Show application info")

    profile_parser = subparsers.add_parser("profile", help="Show or save the birth profile")
    profile_parser.add_argument("--name", type=str, help="Name")
    profile_parser.add_argument("--birth-date", type=str, help="Date of birth (YYYY-MM-DD)")
    profile_parser.add_argument("--birth-time", type=str, help="Time of birth (HH:MM)")
    profile_parser.add_argument("--city", type=str, help="City of birth")
    profile_parser.add_argument("--country", type=str, help="Country of birth")
    profile_parser.add_argument("--latitude", type=float, help="Birthplace latitude")
    profile_parser.add_argument("--longitude", type=float, help="Birthplace longitude")

    snapshot_parser = subparsers.add_parser("snapshot", help="Score one date")
    snapshot_parser.add_argument("--date", type=str, default=None, help="ISO date (default: today)")
    snapshot_parser.add_argument("--activity", type=str, default=None, help="Activity category")

    forecast_parser = subparsers.add_parser("forecast", help="Score the coming days")
    forecast_parser.add_argument(
        "--start", type=str, default=None, help="ISO date (default: today)"
    )
    forecast_parser.add_argument("--days", type=int, default=7, help="Number of days (default: 7)")
    forecast_parser.add_argument("--activity", type=str, default=None, help="Activity category")

    observe_parser = subparsers.add_parser("observe", help="Record an observation")
    observe_parser.add_argument("category", choices=[c.value for c in ObservationCategory])
    observe_parser.add_argument("subject", type=str, help="Habit id or measured quantity")
    observe_parser.add_argument("outcome", type=str, help="yes/no or a number")
    observe_parser.add_argument("--date", type=str, default=None, help="ISO date (default: today)")
    observe_parser.add_argument(
        "--activity",
        dest="activities",
        action="append",
        default=None,
        help="Activity done that day (repeatable)",
    )
    observe_parser.add_argument(
        "--followed-advice",
        choices=["yes", "no"],
        default=None,
        help="Whether the day's advice was followed",
    )

    impact_parser = subparsers.add_parser("impact", help="Rank observation impacts")
    impact_parser.add_argument("category", choices=[c.value for c in ObservationCategory])
    impact_parser.add_argument("subjects", nargs="*", help="Subjects (default: all)")
    impact_parser.add_argument("--threshold", type=float, default=None, help="Numeric cutoff")

    rate_parser = subparsers.add_parser("rate", help="Rate a forecast")
    rate_parser.add_argument("forecast_id", type=str)
    rate_parser.add_argument("rating", choices=[r.value for r in Rating])
    rate_parser.add_argument("--category", type=str, default="general")
    rate_parser.add_argument("--confidence", type=float, default=None, help="0-100")

    stats_parser = subparsers.add_parser("stats", help="Forecast accuracy")
    stats_parser.add_argument("--days", type=int, default=None, help="Only the last N days")

    # 'refresh' command - fetch weather then rebuild the insights report
    subparsers.add_parser("refresh", help="Fetch weather and rebuild insights")

    return parser


def parse_outcome(text: str) -> bool | float:
    """``yes``/``no`` words become bools, anything else must be a number."""
    lowered = text.strip().lower()
    if lowered in _TRUE_WORDS:
        return True
    if lowered in _FALSE_WORDS:
        return False
    try:
        return float(lowered)
    except ValueError:
        msg = f"Outcome must be yes/no or a number, got {text!r}"
        raise argparse.ArgumentTypeError(msg) from None


def _store() -> FileStore:
    return FileStore(get_settings().data_dir)


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2))


def _load_profile() -> BirthProfile | None:
    profile = asyncio.run(ProfileRepository(_store(), get_settings().user_id).get())
    if profile is None:
        print("No birth profile saved. Run 'energy-today profile' first.", file=sys.stderr)
    return profile


def _check_activity(engine: EngineContext, activity: str | None) -> None:
    if activity is not None and not engine.table.knows(activity):
        known = ", ".join(engine.table.activities)
        msg = f"Unknown activity {activity!r}; choose from: {known}"
        raise ValidationError(msg)


def _birthplace(args: argparse.Namespace) -> dict[str, Any] | None:
    fields = {
        "city": args.city,
        "country": args.country,
        "latitude": args.latitude,
        "longitude": args.longitude,
    }
    given = [value is not None for value in fields.values()]
    if not any(given):
        return None
    if not all(given):
        msg = "--city, --country, --latitude and --longitude must be given together"
        raise ValidationError(msg)
    return fields


def _correlations(profile: BirthProfile) -> CorrelationEngine:
    settings = get_settings()
    engine = EngineContext.from_settings(settings)
    return CorrelationEngine.from_settings(_store(), engine, profile, settings)


def cmd_info(_args: argparse.Namespace) -> int:
    """Handle the 'info' command."""
    settings = get_settings()
    print(f"Application: {settings.app_name}")
    print(f"Version: {__version__}")
    print(f"Environment: {settings.app_env}")
    print(f"Debug: {settings.debug}")
    print(f"Data dir: {settings.data_dir}")
    print(f"User: {settings.user_id}")
    table = EngineContext.from_settings(settings).table
    print(f"Activities: {', '.join(table.activities)}")
    return 0


def cmd_profile(args: argparse.Namespace) -> int:
    """Handle the 'profile' command: save when fields are given, else show."""
    repo = ProfileRepository(_store(), get_settings().user_id)
    if args.name is None and args.birth_date is None:
        profile = asyncio.run(repo.get())
        if profile is None:
            print("No birth profile saved.", file=sys.stderr)
            return 1
        _print_json({"profile_id": profile.profile_id, **profile.model_dump(mode="json")})
        return 0

    if args.name is None or args.birth_date is None:
        print("Both --name and --birth-date are required to save a profile.", file=sys.stderr)
        return 1
    data = {
        "name": args.name,
        "date_of_birth": args.birth_date,
        "time_of_birth": args.birth_time,
        "place_of_birth": _birthplace(args),
    }
    profile = asyncio.run(repo.save(data))
    print(f"Saved profile {profile.profile_id}")
    return 0


def cmd_snapshot(args: argparse.Namespace) -> int:
    """Handle the 'snapshot' command."""
    profile = _load_profile()
    if profile is None:
        return 1
    day = parse_date(args.date) if args.date else date.today()
    engine = EngineContext.from_settings(get_settings())
    _check_activity(engine, args.activity)
    _print_json(snapshot_to_dict(engine.snapshot(profile, day, args.activity)))
    return 0


def cmd_forecast(args: argparse.Namespace) -> int:
    """Handle the 'forecast' command: one line per day."""
    profile = _load_profile()
    if profile is None:
        return 1
    start = parse_date(args.start) if args.start else date.today()
    engine = EngineContext.from_settings(get_settings())
    _check_activity(engine, args.activity)
    for snapshot in engine.forecast(profile, start, args.days, args.activity):
        print(
            f"{snapshot.date.isoformat()}  {snapshot.composite.score:6.2f}  "
            f"{snapshot.composite.category.value:<11}  {snapshot.lunar_phase.value}"
        )
    return 0


def cmd_observe(args: argparse.Namespace) -> int:
    """Handle the 'observe' command."""
    profile = _load_profile()
    if profile is None:
        return 1
    outcome = parse_outcome(args.outcome)
    day = parse_date(args.date) if args.date else date.today()
    followed = None if args.followed_advice is None else args.followed_advice == "yes"
    observation = asyncio.run(
        _correlations(profile).record_observation(
            args.category,
            day,
            outcome,
            args.subject,
            activities=args.activities,
            followed_advice=followed,
        )
    )
    print(f"Recorded {observation.category.value}/{observation.subject} on {observation.date}")
    return 0


def cmd_impact(args: argparse.Namespace) -> int:
    """Handle the 'impact' command."""
    profile = _load_profile()
    if profile is None:
        return 1
    ranked = asyncio.run(
        _correlations(profile).rank_impacts(args.category, args.subjects or None, args.threshold)
    )
    if not ranked:
        print("Not enough observations yet to measure any impact.")
        return 0
    for result in ranked:
        print(f"{result.impact:+7.2f}  {result.recommendation}")
    return 0


def cmd_rate(args: argparse.Namespace) -> int:
    """Handle the 'rate' command."""
    tracker = PredictionAccuracyTracker.from_settings(_store(), get_settings())
    record = asyncio.run(
        tracker.rate(args.forecast_id, args.rating, args.category, args.confidence)
    )
    print(f"Rated {record.forecast_id} as {record.rating.value}")
    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    """Handle the 'stats' command."""
    tracker = PredictionAccuracyTracker.from_settings(_store(), get_settings())
    if args.days is None:
        stats = asyncio.run(tracker.stats())
    else:
        stats = asyncio.run(tracker.recent(args.days, date.today()))
    if isinstance(stats, InsufficientData):
        print(stats.reason)
        return 0
    _print_json(asdict(stats))
    return 0


def cmd_refresh(_args: argparse.Namespace) -> int:
    """Handle the 'refresh' command: fetch weather then rebuild insights."""
    settings = get_settings()
    insights.store = _store()
    print(f"Fetching weather for ({settings.lat}, {settings.lon})...")
    asyncio.run(insights.refresh_weather(lat=settings.lat, lon=settings.lon))

    print("Building insights...")
    asyncio.run(insights.build_insights())

    print("Done.")
    return 0


def main() -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "info": cmd_info,
        "profile": cmd_profile,
        "snapshot": cmd_snapshot,
        "forecast": cmd_forecast,
        "observe": cmd_observe,
        "impact": cmd_impact,
        "rate": cmd_rate,
        "stats": cmd_stats,
        "refresh": cmd_refresh,
    }

    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(args)
    except (EnergyTodayError, argparse.ArgumentTypeError) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
