"""Command-line timeline viewer.

Reads prayers, updates and settings from the SQLite stores and prints one
month of the lifecycle timeline.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date, datetime

from prayer_timeline.config import settings
from prayer_timeline.core.local_calendar import LocalCalendar, parse_timestamp
from prayer_timeline.core.presenter import TimelineState, go_to_month
from prayer_timeline.core.rendering import render_timeline
from prayer_timeline.core.timeline_service import TimelineService
from prayer_timeline.data.db import AdminSettingsDB, PrayerDB, PrayerUpdateDB
from prayer_timeline.data.models import TimelineSettings
from prayer_timeline.ports.store_port import StoreError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prayer-timeline",
        description="Show the reminder/archive timeline of prayer requests.",
    )
    parser.add_argument("--month", help="month to show, YYYY-MM (default: current month)")
    parser.add_argument("--timezone", help="IANA timezone (default: TIMEZONE, TZ, then UTC)")
    parser.add_argument("--db", help="SQLite database path (default: DATABASE_PATH)")
    parser.add_argument("--now", help="ISO timestamp to treat as the current time")
    return parser


def build_service(
    db_path: str, timezone_name: str | None, now: datetime | None = None,
) -> TimelineService:
    defaults = TimelineSettings(
        reminder_interval_days=settings.DEFAULT_REMINDER_INTERVAL_DAYS,
        days_before_archive=settings.DEFAULT_DAYS_BEFORE_ARCHIVE,
    )
    kwargs = {}
    if now is not None:
        kwargs["clock"] = lambda: now
    return TimelineService(
        prayer_store=PrayerDB(db_path=db_path),
        update_store=PrayerUpdateDB(db_path=db_path),
        settings_store=AdminSettingsDB(
            db_path=db_path,
            default_reminder_interval_days=defaults.reminder_interval_days,
            default_days_before_archive=defaults.days_before_archive,
        ),
        timezone_name=timezone_name,
        default_settings=defaults,
        grace_days=settings.MISSED_EVENT_GRACE_DAYS,
        **kwargs,
    )


async def show_timeline(service: TimelineService, month: date | None) -> TimelineState:
    state = await service.refresh()
    if month is not None:
        state = go_to_month(state, month)
    return state


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        month = LocalCalendar.parse_month(args.month) if args.month else None
        now = parse_timestamp(args.now) if args.now else None
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    try:
        service = build_service(
            db_path=args.db or settings.DATABASE_PATH,
            timezone_name=args.timezone or settings.TIMEZONE,
            now=now,
        )
    except StoreError as exc:
        logger.error("Could not open prayer database: %s", exc)
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    state = asyncio.run(show_timeline(service, month))
    print(render_timeline(state), end="")
    return 0
