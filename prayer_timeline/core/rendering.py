"""Plain-text rendering of a timeline month.

Used by the CLI. Labels follow the web timeline's wording.
"""

from __future__ import annotations

from prayer_timeline.core import presenter
from prayer_timeline.core.presenter import TimelineState
from prayer_timeline.data.models import EventType, TimelineEvent

EMPTY_MESSAGE = "No prayer events scheduled for the selected timeframe"
STALE_NOTE = "(showing the last loaded timeline; refresh failed)"

EVENT_LABELS: dict[EventType, str] = {
    EventType.REMINDER_UPCOMING: "Reminder sending",
    EventType.REMINDER_SENT: "Reminder sent",
    EventType.REMINDER_MISSED: "Reminder missed",
    EventType.ARCHIVE_UPCOMING: "Will archive",
    EventType.ARCHIVE_MISSED: "Archive missed",
    EventType.ARCHIVED: "Archived",
    EventType.ANSWERED: "Prayer answered",
}


def format_month(state: TimelineState) -> str:
    """e.g. "January 2026"."""
    return f"{state.current_month:%B} {state.current_month.year}"


def format_days_until(days: int) -> str:
    if days == 0:
        return "today"
    if days == 1:
        return "in 1 day"
    if days > 1:
        return f"in {days} days"
    if days == -1:
        return "1 day ago"
    return f"{-days} days ago"


def format_event(event: TimelineEvent) -> str:
    line = f"{EVENT_LABELS[event.event_type]}: {event.prayer.title}"
    if event.event_type in (EventType.REMINDER_UPCOMING, EventType.ARCHIVE_UPCOMING):
        line += f" ({format_days_until(event.days_until)})"
    return line


def format_settings_summary(state: TimelineState) -> list[str]:
    return [
        f"Reminder Interval: {state.settings.reminder_interval_days} days of inactivity",
        f"Archive Threshold: {state.settings.days_before_archive} days after reminder sent",
        f"Timezone: {state.timezone}",
    ]


def render_timeline(state: TimelineState) -> str:
    """Render the state's current month as text."""
    lines = ["Prayer Timeline", ""]
    lines.extend(format_settings_summary(state))
    lines.append("")

    nav_prev = "< prev" if presenter.can_go_previous(state) else "      "
    nav_next = "next >" if presenter.can_go_next(state) else "      "
    lines.append(f"{nav_prev}  {format_month(state)}  {nav_next}".rstrip())
    if state.stale:
        lines.append(STALE_NOTE)
    lines.append("")

    if not state.days:
        lines.append(state.load_error or EMPTY_MESSAGE)
        return "\n".join(lines) + "\n"

    for day in state.days:
        lines.append(day.display_label)
        for event in day.events:
            lines.append(f"  - {format_event(event)}")
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"
