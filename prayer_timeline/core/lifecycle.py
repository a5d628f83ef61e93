"""Lifecycle event deriver — pure business logic.

Projects each prayer onto the reminder/archive lifecycle the external job
drives: when a reminder is due (or was sent, or was missed) and when the
prayer will be (or should have been) archived. Answered and archived
prayers contribute a single event dated at their last update.

The job runs asynchronously, so a reminder or archive is only reported as
missed once it is grace_days past due. Inside that window a due reminder
still reads as upcoming and a due archive is not shown at all.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import logging
from datetime import date

from prayer_timeline.core.local_calendar import LocalCalendar
from prayer_timeline.data.models import (
    EventType,
    PrayerRef,
    PrayerSnapshot,
    PrayerStatus,
    TimelineEvent,
    TimelineSettings,
    Timestamp,
)

logger = logging.getLogger(__name__)

DEFAULT_GRACE_DAYS = 2


def derive_events(
    prayers: list[PrayerSnapshot],
    settings: TimelineSettings,
    now: Timestamp,
    timezone: str,
    grace_days: int = DEFAULT_GRACE_DAYS,
) -> list[TimelineEvent]:
    """Derive the lifecycle events for a batch of prayers.

    Args:
        prayers: Prayer snapshots with their most recent update timestamp.
        settings: Reminder interval and archive threshold, in days.
        now: The current instant; "today" is its local date in timezone.
        timezone: IANA timezone used for every date conversion.
        grace_days: How far past due a reminder/archive must be before it
            is reported as missed.

    Returns:
        A flat list of events, in prayer order. A prayer with a malformed
        timestamp is skipped with a warning; the rest of the batch is kept.
    """
    calendar = LocalCalendar(timezone)
    today = calendar.today(now)

    events: list[TimelineEvent] = []
    for prayer in prayers:
        try:
            events.extend(
                _events_for_prayer(prayer, settings, today, calendar, grace_days)
            )
        except (ValueError, TypeError, OverflowError) as exc:
            logger.warning("Skipping prayer %s: malformed timestamp: %s", prayer.id, exc)
    return events


def _events_for_prayer(
    prayer: PrayerSnapshot,
    settings: TimelineSettings,
    today: date,
    calendar: LocalCalendar,
    grace_days: int,
) -> list[TimelineEvent]:
    ref = PrayerRef(id=prayer.id, title=prayer.title)

    if prayer.status == PrayerStatus.ANSWERED.value:
        answered_on = calendar.to_local_date(prayer.updated_at)
        return [TimelineEvent(answered_on, ref, EventType.ANSWERED)]

    if prayer.status == PrayerStatus.ARCHIVED.value:
        archived_on = calendar.to_local_date(prayer.updated_at)
        return [TimelineEvent(archived_on, ref, EventType.ARCHIVED)]

    if prayer.status != PrayerStatus.CURRENT.value:
        return []

    last_activity: date | None = None
    if prayer.most_recent_update_at:
        last_activity = calendar.to_local_date(prayer.most_recent_update_at)

    if prayer.last_reminder_sent:
        return _sent_reminder_events(
            ref, prayer.last_reminder_sent, last_activity,
            settings, today, calendar, grace_days,
        )

    base = last_activity or calendar.to_local_date(prayer.created_at)
    next_reminder = calendar.add_days(base, settings.reminder_interval_days)
    reminder_days_until = calendar.day_diff(next_reminder, today)

    if reminder_days_until > -grace_days:
        return [TimelineEvent(
            next_reminder, ref, EventType.REMINDER_UPCOMING, reminder_days_until,
        )]

    # Reminder should have gone out but didn't; archive runs off the due date
    events = [TimelineEvent(next_reminder, ref, EventType.REMINDER_MISSED)]
    archive = _archive_event(
        ref, next_reminder, settings, today, calendar, grace_days,
    )
    if archive is not None:
        events.append(archive)
    return events


def _sent_reminder_events(
    ref: PrayerRef,
    last_reminder_sent: Timestamp,
    last_activity: date | None,
    settings: TimelineSettings,
    today: date,
    calendar: LocalCalendar,
    grace_days: int,
) -> list[TimelineEvent]:
    reminder_date = calendar.to_local_date(last_reminder_sent)

    # A reminder can't have been sent ahead of time: bad data, show nothing
    if reminder_date > today:
        logger.debug(
            "Discarding prayer %s: last_reminder_sent %s is after today %s",
            ref.id, reminder_date, today,
        )
        return []

    events = [TimelineEvent(reminder_date, ref, EventType.REMINDER_SENT)]

    # Activity after the reminder resets the timer: no archive pending
    if last_activity is not None and last_activity > reminder_date:
        return events

    archive = _archive_event(
        ref, reminder_date, settings, today, calendar, grace_days,
    )
    if archive is not None:
        events.append(archive)
    return events


def _archive_event(
    ref: PrayerRef,
    anchor: date,
    settings: TimelineSettings,
    today: date,
    calendar: LocalCalendar,
    grace_days: int,
) -> TimelineEvent | None:
    """The archive event anchored days_before_archive after anchor.

    None while the archive is pending inside the grace window.
    """
    archive_date = calendar.add_days(anchor, settings.days_before_archive)
    archive_days_until = calendar.day_diff(archive_date, today)

    if archive_days_until <= -grace_days:
        return TimelineEvent(archive_date, ref, EventType.ARCHIVE_MISSED)
    if archive_days_until > 0:
        return TimelineEvent(
            archive_date, ref, EventType.ARCHIVE_UPCOMING, archive_days_until,
        )
    return None

