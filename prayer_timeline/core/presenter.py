"""Timeline presenter — grouping, month bounds and pagination.

Turns the flat list of lifecycle events into per-day groups for one month
at a time. State is carried in an immutable TimelineState: every change
(new prayers, new settings, month navigation) produces a fresh state via
recompute(), which re-derives the full event set from scratch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime

from prayer_timeline.core.lifecycle import DEFAULT_GRACE_DAYS, derive_events
from prayer_timeline.core.local_calendar import LocalCalendar, resolve_user_timezone
from prayer_timeline.data.models import (
    EVENT_TYPE_ORDER,
    MonthBounds,
    PrayerSnapshot,
    TimelineDay,
    TimelineEvent,
    TimelineSettings,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimelineState:
    """Everything the timeline view needs, as of one recomputation.

    Callers keep the latest state and pass it back in; nothing here is
    mutated. generation increases with every refresh so callers can drop
    results that arrive out of order.
    """

    prayers: tuple[PrayerSnapshot, ...]
    settings: TimelineSettings
    timezone: str
    now: datetime
    current_month: date                       # first of month, local
    grace_days: int = DEFAULT_GRACE_DAYS
    events: tuple[TimelineEvent, ...] = ()    # all months
    bounds: MonthBounds | None = None
    days: tuple[TimelineDay, ...] = ()        # current_month only
    generation: int = 0
    stale: bool = False                       # prayers are from an earlier refresh
    load_error: str | None = None

    @property
    def today(self) -> date:
        return LocalCalendar(self.timezone).today(self.now)


# ---------------------------------------------------------------------------
# Grouping and filtering
# ---------------------------------------------------------------------------


def format_day_label(day: date, today: date) -> str:
    """Label a day as "Today", "Tomorrow", or e.g. "Sat, Jan 31, 2026"."""
    if day == today:
        return "Today"
    if day == LocalCalendar.add_days(today, 1):
        return "Tomorrow"
    return f"{day:%a}, {day:%b} {day.day}, {day.year}"


def group_by_date(events: list[TimelineEvent], today: date) -> list[TimelineDay]:
    """Bucket events by local date, ordered by date then event type.

    Sorting is stable, so events of the same type keep their input order.
    """
    grouped: dict[str, list[TimelineEvent]] = {}
    for event in events:
        grouped.setdefault(event.date.isoformat(), []).append(event)

    days = [
        TimelineDay(
            date=day_events[0].date,
            date_key=key,
            display_label=format_day_label(day_events[0].date, today),
            events=tuple(sorted(day_events, key=lambda e: EVENT_TYPE_ORDER[e.event_type])),
        )
        for key, day_events in grouped.items()
    ]
    days.sort(key=lambda d: d.date)
    return days


def compute_month_bounds(events: list[TimelineEvent]) -> MonthBounds | None:
    """First and last month spanned by the events, or None if there are none."""
    if not events:
        return None
    months = [LocalCalendar.first_of_month(e.date) for e in events]
    return MonthBounds(min_month=min(months), max_month=max(months))


def filter_to_month(events: list[TimelineEvent], month: date) -> list[TimelineEvent]:
    target = LocalCalendar.month_key(month)
    return [e for e in events if LocalCalendar.month_key(e.date) == target]


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


def initial_state(
    prayers: list[PrayerSnapshot],
    settings: TimelineSettings,
    now: datetime,
    timezone: str,
    grace_days: int = DEFAULT_GRACE_DAYS,
    current_month: date | None = None,
) -> TimelineState:
    """Build and compute a state, opening on the month of today (local).

    timezone is resolved once here, so an unknown name falls back without
    warning again on every regroup.
    """
    timezone = resolve_user_timezone(timezone)
    if current_month is None:
        current_month = LocalCalendar.first_of_month(LocalCalendar(timezone).today(now))
    state = TimelineState(
        prayers=tuple(prayers),
        settings=settings,
        timezone=timezone,
        now=now,
        current_month=LocalCalendar.first_of_month(current_month),
        grace_days=grace_days,
    )
    return recompute(state)


def recompute(state: TimelineState) -> TimelineState:
    """Re-derive all events, then bounds, then the current month's days."""
    events = derive_events(
        list(state.prayers), state.settings, state.now, state.timezone,
        grace_days=state.grace_days,
    )
    return regroup(replace(state, events=tuple(events)))


def regroup(state: TimelineState) -> TimelineState:
    """Recompute bounds and day groups from the state's existing events."""
    events = list(state.events)
    month_events = filter_to_month(events, state.current_month)
    days = group_by_date(month_events, state.today)
    logger.debug(
        "Timeline %s: %d events total, %d in %d days",
        LocalCalendar.month_key(state.current_month), len(events),
        len(month_events), len(days),
    )
    return replace(state, bounds=compute_month_bounds(events), days=tuple(days))


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


def can_go_previous(state: TimelineState) -> bool:
    if state.bounds is None:
        return False
    return state.current_month > state.bounds.min_month


def can_go_next(state: TimelineState) -> bool:
    if state.bounds is None:
        return False
    return state.current_month < state.bounds.max_month


def previous_month(state: TimelineState) -> TimelineState:
    """One calendar month back; unchanged state if already at the first month."""
    if not can_go_previous(state):
        return state
    month = LocalCalendar.add_months(state.current_month, -1)
    return recompute(replace(state, current_month=month))


def next_month(state: TimelineState) -> TimelineState:
    """One calendar month forward; unchanged state if already at the last month."""
    if not can_go_next(state):
        return state
    month = LocalCalendar.add_months(state.current_month, 1)
    return recompute(replace(state, current_month=month))


def go_to_month(state: TimelineState, month: date) -> TimelineState:
    """Jump straight to month (any day in it), without bounds checks."""
    return recompute(replace(state, current_month=LocalCalendar.first_of_month(month)))
