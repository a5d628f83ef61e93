"""
Prayer Timeline — Data Models.

Prayer snapshots are owned by the prayer store and handed to the timeline
read-only. Timeline events and days are derived here and never persisted:
they are recomputed in full whenever prayers, settings or the viewed month
change.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

# Stored timestamps arrive as aware datetimes or ISO-8601 strings
Timestamp = datetime | str

DEFAULT_REMINDER_INTERVAL_DAYS = 30
DEFAULT_DAYS_BEFORE_ARCHIVE = 30


class PrayerStatus(str, Enum):
    """Lifecycle status of a stored prayer."""
    CURRENT = "current"
    ANSWERED = "answered"
    ARCHIVED = "archived"


class EventType(str, Enum):
    """Kind of lifecycle event shown on the timeline."""
    REMINDER_UPCOMING = "reminder-upcoming"
    REMINDER_SENT = "reminder-sent"
    REMINDER_MISSED = "reminder-missed"
    ARCHIVE_UPCOMING = "archive-upcoming"
    ARCHIVE_MISSED = "archive-missed"
    ANSWERED = "answered"
    ARCHIVED = "archived"


# Display order of events that fall on the same day
EVENT_TYPE_ORDER: dict[EventType, int] = {
    EventType.REMINDER_UPCOMING: 1,
    EventType.REMINDER_SENT: 2,
    EventType.REMINDER_MISSED: 3,
    EventType.ARCHIVE_UPCOMING: 4,
    EventType.ARCHIVE_MISSED: 5,
    EventType.ANSWERED: 6,
    EventType.ARCHIVED: 7,
}


@dataclass(frozen=True)
class PrayerSnapshot:
    """Read-only view of a stored prayer, as supplied by the prayer store.

    most_recent_update_at is the newest created_at over the prayer's
    updates, filled in by the update store. A newer update resets the
    reminder timer.
    """

    id: str
    title: str
    status: str                                  # "current" | "answered" | "archived"
    created_at: Timestamp
    updated_at: Timestamp
    last_reminder_sent: Timestamp | None = None  # set by the reminder job
    most_recent_update_at: Timestamp | None = None


@dataclass(frozen=True)
class PrayerRef:
    """Lookup-only reference from an event back to its prayer."""

    id: str
    title: str


@dataclass(frozen=True)
class TimelineEvent:
    """A single derived lifecycle event, anchored to a local calendar day."""

    date: date
    prayer: PrayerRef
    event_type: EventType
    days_until: int = 0   # 0 for already-resolved events


@dataclass(frozen=True)
class TimelineDay:
    """All events of one local calendar day, in display order."""

    date: date
    date_key: str          # YYYY-MM-DD
    display_label: str     # "Today", "Tomorrow" or "Sat, Jan 31, 2026"
    events: tuple[TimelineEvent, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class TimelineSettings:
    """Reminder and archive intervals, as configured by administrators."""

    reminder_interval_days: int = DEFAULT_REMINDER_INTERVAL_DAYS
    days_before_archive: int = DEFAULT_DAYS_BEFORE_ARCHIVE


@dataclass(frozen=True)
class MonthBounds:
    """First and last month (first-of-month dates) spanned by all events."""

    min_month: date
    max_month: date


@dataclass(frozen=True)
class SettingsSummary:
    """What the timeline header displays about its configuration."""

    reminder_interval_days: int
    days_before_archive: int
    timezone: str
