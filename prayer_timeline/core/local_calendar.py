"""Local calendar — timezone-aware, day-granular date math.

Prayer timestamps are stored in UTC, but the timeline is about the days a
person sees on their own calendar. Everything here converts instants to
local calendar dates first and then does arithmetic on whole days, which
keeps "add N days" correct across DST transitions.

No I/O apart from reading the TZ environment variable.
"""

from __future__ import annotations

import logging
import os
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from prayer_timeline.data.models import Timestamp

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"


def parse_timestamp(value: Timestamp) -> datetime:
    """Return an aware datetime for a stored timestamp.

    Accepts datetimes and ISO-8601 strings (a trailing "Z" means UTC).
    Naive values are taken to be UTC, the storage timezone.

    Raises ValueError on malformed input.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        raw = value.strip()
        if not raw:
            raise ValueError("Empty timestamp")
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        parsed = datetime.fromisoformat(raw)
    else:
        raise ValueError(f"Unsupported timestamp type: {type(value).__name__}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def get_zone(tz_name: str) -> ZoneInfo:
    """Return the ZoneInfo for tz_name, or UTC if the name is unknown."""
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        logger.warning("Unknown timezone %r, falling back to UTC: %s", tz_name, exc)
        return ZoneInfo(DEFAULT_TIMEZONE)


def resolve_user_timezone(preferred: str | None = None) -> str:
    """Pick the IANA timezone used for all local-date math.

    Order: the preferred (configured) name, then the TZ environment
    variable, then UTC. Names that don't resolve are skipped.
    """
    for candidate in (preferred, os.getenv("TZ", "")):
        if not candidate:
            continue
        name = candidate.strip().lstrip(":")
        try:
            ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Ignoring unknown timezone %r", candidate)
            continue
        return name
    return DEFAULT_TIMEZONE


class LocalCalendar:
    """Calendar-day arithmetic in a single timezone."""

    def __init__(self, tz_name: str = DEFAULT_TIMEZONE) -> None:
        self.tz_name = tz_name
        self._zone = get_zone(tz_name)

    def to_local_date(self, instant: Timestamp) -> date:
        """The local calendar date on which instant falls.

        Raises ValueError on malformed timestamps, and on instants whose
        local date falls outside the supported date range.
        """
        parsed = parse_timestamp(instant)
        try:
            return parsed.astimezone(self._zone).date()
        except OverflowError as exc:
            raise ValueError(f"Timestamp out of range: {instant!r}") from exc

    def today(self, now: Timestamp | None = None) -> date:
        if now is None:
            now = datetime.now(timezone.utc)
        return self.to_local_date(now)

    @staticmethod
    def add_days(day: date, days: int) -> date:
        """Raises ValueError if the result is outside the supported date range."""
        try:
            return day + timedelta(days=days)
        except OverflowError as exc:
            raise ValueError(f"{day} + {days} days is out of range") from exc

    @staticmethod
    def day_diff(later: date, earlier: date) -> int:
        """Whole calendar days from earlier to later (negative if later is before)."""
        return (later - earlier).days

    @staticmethod
    def first_of_month(day: date) -> date:
        return day.replace(day=1)

    @staticmethod
    def add_months(month: date, months: int) -> date:
        """Step a first-of-month date by whole months, across year boundaries."""
        index = month.year * 12 + (month.month - 1) + months
        return date(index // 12, index % 12 + 1, 1)

    @staticmethod
    def month_key(day: date) -> str:
        """Year-month string, e.g. "2026-01"."""
        return f"{day.year:04d}-{day.month:02d}"

    @staticmethod
    def parse_month(raw: str) -> date:
        """Parse "YYYY-MM" into a first-of-month date.

        Raises ValueError on malformed input.
        """
        try:
            year_str, month_str = raw.strip().split("-")
            return date(int(year_str), int(month_str), 1)
        except (ValueError, TypeError) as exc:
            raise ValueError(f"Invalid month {raw!r}, expected YYYY-MM") from exc
