"""Tests for prayer_timeline.core.lifecycle — reminder/archive projection."""

from datetime import date, datetime, timezone

from prayer_timeline.core.lifecycle import derive_events
from prayer_timeline.data.models import EventType, TimelineSettings

SETTINGS = TimelineSettings(reminder_interval_days=30, days_before_archive=30)


def _now(day: str) -> datetime:
    return datetime.fromisoformat(f"{day}T12:00:00+00:00")


def _types(events):
    return [e.event_type for e in events]


# ---------------------------------------------------------------------------
# Answered / archived / other statuses
# ---------------------------------------------------------------------------


class TestResolvedStatuses:
    def test_answered_single_event_at_updated_at(self, make_prayer):
        prayer = make_prayer(
            status="answered",
            created_at="2025-11-01T10:00:00Z",
            updated_at="2026-01-10T10:00:00Z",
            last_reminder_sent="2025-12-01T10:00:00Z",
        )
        events = derive_events([prayer], SETTINGS, _now("2026-01-20"), "UTC")
        assert len(events) == 1
        assert events[0].event_type is EventType.ANSWERED
        assert events[0].date == date(2026, 1, 10)
        assert events[0].days_until == 0

    def test_archived_single_event_at_updated_at(self, make_prayer):
        prayer = make_prayer(status="archived", updated_at="2026-01-15T10:00:00Z")
        events = derive_events([prayer], SETTINGS, _now("2026-01-20"), "UTC")
        assert _types(events) == [EventType.ARCHIVED]
        assert events[0].date == date(2026, 1, 15)

    def test_answered_date_is_local_not_utc(self, make_prayer):
        # 03:00 UTC on Feb 1 is still Jan 31 in New York
        prayer = make_prayer(status="answered", updated_at="2026-02-01T03:00:00Z")
        events = derive_events([prayer], SETTINGS, _now("2026-02-05"), "America/New_York")
        assert events[0].date == date(2026, 1, 31)

    def test_answered_morning_utc_stays_same_local_day(self, make_prayer):
        prayer = make_prayer(status="answered", updated_at="2026-02-01T09:00:00Z")
        events = derive_events([prayer], SETTINGS, _now("2026-02-05"), "America/New_York")
        assert events[0].date == date(2026, 2, 1)

    def test_unknown_status_produces_nothing(self, make_prayer):
        prayer = make_prayer(status="pending")
        assert derive_events([prayer], SETTINGS, _now("2026-01-20"), "UTC") == []


# ---------------------------------------------------------------------------
# No reminder sent yet
# ---------------------------------------------------------------------------


class TestReminderNotSent:
    def test_upcoming_reminder(self, make_prayer):
        prayer = make_prayer(created_at="2026-01-01T00:00:00Z")
        events = derive_events([prayer], SETTINGS, _now("2026-01-20"), "UTC")
        assert len(events) == 1
        event = events[0]
        assert event.date == date(2026, 1, 31)
        assert event.event_type is EventType.REMINDER_UPCOMING
        assert event.days_until == 11
        assert event.prayer.id == "p1"
        assert event.prayer.title == "Healing for Mom"

    def test_missed_reminder_with_upcoming_archive(self, make_prayer):
        prayer = make_prayer(created_at="2026-01-01T00:00:00Z")
        events = derive_events([prayer], SETTINGS, _now("2026-02-05"), "UTC")
        assert [(e.date, e.event_type, e.days_until) for e in events] == [
            (date(2026, 1, 31), EventType.REMINDER_MISSED, 0),
            (date(2026, 3, 2), EventType.ARCHIVE_UPCOMING, 25),
        ]

    def test_missed_reminder_and_missed_archive(self, make_prayer):
        prayer = make_prayer(created_at="2025-10-01T00:00:00Z")
        events = derive_events([prayer], SETTINGS, _now("2026-01-20"), "UTC")
        assert [(e.date, e.event_type) for e in events] == [
            (date(2025, 10, 31), EventType.REMINDER_MISSED),
            (date(2025, 11, 30), EventType.ARCHIVE_MISSED),
        ]

    def test_missed_reminder_archive_pending_in_grace_window(self, make_prayer):
        # Reminder due Jan 31, archive due Mar 2, today Mar 3
        prayer = make_prayer(created_at="2026-01-01T00:00:00Z")
        events = derive_events([prayer], SETTINGS, _now("2026-03-03"), "UTC")
        assert _types(events) == [EventType.REMINDER_MISSED]

    def test_latest_update_moves_base_date(self, make_prayer):
        prayer = make_prayer(
            created_at="2026-01-01T00:00:00Z",
            most_recent_update_at="2026-01-20T00:00:00Z",
        )
        events = derive_events([prayer], SETTINGS, _now("2026-01-25"), "UTC")
        assert events[0].date == date(2026, 2, 19)
        assert events[0].days_until == 25

    def test_custom_reminder_interval(self, make_prayer):
        prayer = make_prayer(created_at="2026-01-01T00:00:00Z")
        settings = TimelineSettings(reminder_interval_days=7, days_before_archive=14)
        events = derive_events([prayer], settings, _now("2026-01-03"), "UTC")
        assert events[0].date == date(2026, 1, 8)
        assert events[0].days_until == 5

    def test_reminder_due_today(self, make_prayer):
        prayer = make_prayer(created_at="2026-01-01T00:00:00Z")
        events = derive_events([prayer], SETTINGS, _now("2026-01-31"), "UTC")
        assert _types(events) == [EventType.REMINDER_UPCOMING]
        assert events[0].days_until == 0

    def test_reminder_one_day_overdue_not_yet_missed(self, make_prayer):
        prayer = make_prayer(created_at="2026-01-01T00:00:00Z")
        events = derive_events([prayer], SETTINGS, _now("2026-02-01"), "UTC")
        assert EventType.REMINDER_MISSED not in _types(events)
        assert events[0].days_until == -1

    def test_reminder_two_days_overdue_is_missed(self, make_prayer):
        prayer = make_prayer(created_at="2026-01-01T00:00:00Z")
        events = derive_events([prayer], SETTINGS, _now("2026-02-02"), "UTC")
        assert _types(events)[0] is EventType.REMINDER_MISSED

    def test_larger_grace_window(self, make_prayer):
        prayer = make_prayer(created_at="2026-01-01T00:00:00Z")
        events = derive_events(
            [prayer], SETTINGS, _now("2026-02-02"), "UTC", grace_days=5,
        )
        assert _types(events) == [EventType.REMINDER_UPCOMING]


# ---------------------------------------------------------------------------
# Reminder already sent
# ---------------------------------------------------------------------------


class TestReminderSent:
    def test_sent_with_upcoming_archive(self, make_prayer):
        prayer = make_prayer(
            created_at="2025-12-01T00:00:00Z",
            last_reminder_sent="2026-01-05T08:00:00Z",
        )
        events = derive_events([prayer], SETTINGS, _now("2026-01-15"), "UTC")
        assert [(e.date, e.event_type, e.days_until) for e in events] == [
            (date(2026, 1, 5), EventType.REMINDER_SENT, 0),
            (date(2026, 2, 4), EventType.ARCHIVE_UPCOMING, 20),
        ]

    def test_update_after_reminder_resets_timer(self, make_prayer):
        prayer = make_prayer(
            created_at="2025-12-01T00:00:00Z",
            last_reminder_sent="2026-01-05T08:00:00Z",
            most_recent_update_at="2026-01-10T08:00:00Z",
        )
        events = derive_events([prayer], SETTINGS, _now("2026-01-15"), "UTC")
        assert [(e.date, e.event_type) for e in events] == [
            (date(2026, 1, 5), EventType.REMINDER_SENT),
        ]

    def test_update_before_reminder_keeps_archive(self, make_prayer):
        prayer = make_prayer(
            created_at="2025-12-01T00:00:00Z",
            last_reminder_sent="2026-01-10T08:00:00Z",
            most_recent_update_at="2026-01-05T08:00:00Z",
        )
        events = derive_events([prayer], SETTINGS, _now("2026-01-15"), "UTC")
        assert _types(events) == [EventType.REMINDER_SENT, EventType.ARCHIVE_UPCOMING]
        assert events[1].date == date(2026, 2, 9)

    def test_update_same_day_as_reminder_keeps_archive(self, make_prayer):
        prayer = make_prayer(
            last_reminder_sent="2026-01-10T08:00:00Z",
            most_recent_update_at="2026-01-10T20:00:00Z",
        )
        events = derive_events([prayer], SETTINGS, _now("2026-01-15"), "UTC")
        assert EventType.ARCHIVE_UPCOMING in _types(events)

    def test_archive_one_day_overdue_is_pending(self, make_prayer):
        # Reminder Dec 15 + 30 days = Jan 14, today Jan 15
        prayer = make_prayer(last_reminder_sent="2025-12-15T08:00:00Z")
        events = derive_events([prayer], SETTINGS, _now("2026-01-15"), "UTC")
        assert _types(events) == [EventType.REMINDER_SENT]

    def test_archive_due_today_is_pending(self, make_prayer):
        prayer = make_prayer(last_reminder_sent="2025-12-16T08:00:00Z")
        events = derive_events([prayer], SETTINGS, _now("2026-01-15"), "UTC")
        assert _types(events) == [EventType.REMINDER_SENT]

    def test_archive_two_days_overdue_is_missed(self, make_prayer):
        prayer = make_prayer(last_reminder_sent="2025-12-14T08:00:00Z")
        events = derive_events([prayer], SETTINGS, _now("2026-01-15"), "UTC")
        assert _types(events) == [EventType.REMINDER_SENT, EventType.ARCHIVE_MISSED]
        assert events[1].date == date(2026, 1, 13)
        assert events[1].days_until == 0

    def test_future_reminder_discards_prayer(self, make_prayer):
        prayer = make_prayer(last_reminder_sent="2026-01-25T08:00:00Z")
        assert derive_events([prayer], SETTINGS, _now("2026-01-15"), "UTC") == []

    def test_reminder_sent_today_is_kept(self, make_prayer):
        prayer = make_prayer(last_reminder_sent="2026-01-15T01:00:00Z")
        events = derive_events([prayer], SETTINGS, _now("2026-01-15"), "UTC")
        assert events[0].event_type is EventType.REMINDER_SENT

    def test_future_check_uses_local_today(self, make_prayer):
        # 23:00 UTC on Jan 15 is Jan 16 in Tokyo, and so is "now"
        prayer = make_prayer(last_reminder_sent="2026-01-15T23:00:00Z")
        now = datetime(2026, 1, 15, 23, 30, tzinfo=timezone.utc)
        events = derive_events([prayer], SETTINGS, now, "Asia/Tokyo")
        assert events[0].date == date(2026, 1, 16)


# ---------------------------------------------------------------------------
# Batch behaviour
# ---------------------------------------------------------------------------


class TestBatch:
    def test_malformed_timestamp_skips_only_that_prayer(self, make_prayer, caplog):
        good = make_prayer(prayer_id="good", created_at="2026-01-01T00:00:00Z")
        bad = make_prayer(prayer_id="bad", created_at="not-a-date")
        events = derive_events([bad, good], SETTINGS, _now("2026-01-20"), "UTC")
        assert [e.prayer.id for e in events] == ["good"]
        assert "Skipping prayer bad" in caplog.text

    def test_malformed_update_timestamp_skips_prayer(self, make_prayer):
        bad = make_prayer(most_recent_update_at="yesterday-ish")
        assert derive_events([bad], SETTINGS, _now("2026-01-20"), "UTC") == []

    def test_one_reminder_event_per_unsent_current_prayer(self, make_prayer):
        prayers = [
            make_prayer(prayer_id=f"p{i}", created_at=f"2025-{m:02d}-01T00:00:00Z")
            for i, m in enumerate(range(1, 13))
        ]
        events = derive_events(prayers, SETTINGS, _now("2026-01-20"), "UTC")
        reminder_types = {EventType.REMINDER_UPCOMING, EventType.REMINDER_MISSED}
        for prayer in prayers:
            reminders = [
                e for e in events
                if e.prayer.id == prayer.id and e.event_type in reminder_types
            ]
            assert len(reminders) == 1

    def test_idempotent(self, make_prayer):
        prayers = [
            make_prayer(prayer_id="a", created_at="2025-10-01T00:00:00Z"),
            make_prayer(prayer_id="b", last_reminder_sent="2026-01-05T00:00:00Z"),
            make_prayer(prayer_id="c", status="answered", updated_at="2026-01-02T00:00:00Z"),
        ]
        now = _now("2026-01-20")
        first = derive_events(prayers, SETTINGS, now, "America/Chicago")
        second = derive_events(prayers, SETTINGS, now, "America/Chicago")
        assert first == second
        assert repr(first) == repr(second)

    def test_empty_input(self):
        assert derive_events([], SETTINGS, _now("2026-01-20"), "UTC") == []

    def test_date_overflow_skips_only_that_prayer(self, make_prayer, caplog):
        good = make_prayer(prayer_id="good", created_at="2026-01-01T00:00:00Z")
        # Parses fine, but created_at + 30 days is past year 9999
        far_future = make_prayer(prayer_id="far", created_at="9999-12-20T00:00:00Z")
        events = derive_events([far_future, good], SETTINGS, _now("2026-01-20"), "UTC")
        assert [e.prayer.id for e in events] == ["good"]
        assert "Skipping prayer far" in caplog.text

    def test_year_one_answered_prayer_west_of_utc(self, make_prayer):
        good = make_prayer(prayer_id="good", created_at="2026-01-01T00:00:00Z")
        sentinel = make_prayer(
            prayer_id="sentinel", status="answered", updated_at="0001-01-01T00:00:00Z",
        )
        events = derive_events(
            [sentinel, good], SETTINGS, _now("2026-01-20"), "America/New_York",
        )
        assert [e.prayer.id for e in events] == ["good"]
