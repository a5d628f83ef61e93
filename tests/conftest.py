"""Shared test fixtures and configuration.

Sets up environment variables before any prayer_timeline imports,
and provides common fixtures like temp-file stores.
"""

import os

# Patch env vars BEFORE any prayer_timeline imports
os.environ.setdefault("TIMEZONE", "")
os.environ.setdefault("LOG_LEVEL", "DEBUG")
os.environ.setdefault("DEFAULT_REMINDER_INTERVAL_DAYS", "30")
os.environ.setdefault("DEFAULT_DAYS_BEFORE_ARCHIVE", "30")
os.environ.setdefault("MISSED_EVENT_GRACE_DAYS", "2")

import pytest


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_prayers.db")


@pytest.fixture
def prayer_db(tmp_db_path):
    """Return a PrayerDB instance backed by a temp file."""
    from prayer_timeline.data.db import PrayerDB
    return PrayerDB(db_path=tmp_db_path)


@pytest.fixture
def update_db(tmp_db_path):
    """Return a PrayerUpdateDB sharing the prayers temp file."""
    from prayer_timeline.data.db import PrayerUpdateDB
    return PrayerUpdateDB(db_path=tmp_db_path)


@pytest.fixture
def settings_db(tmp_db_path):
    """Return an AdminSettingsDB sharing the prayers temp file."""
    from prayer_timeline.data.db import AdminSettingsDB
    return AdminSettingsDB(db_path=tmp_db_path)


@pytest.fixture
def make_prayer():
    """Factory for PrayerSnapshot with sensible defaults."""
    from prayer_timeline.data.models import PrayerSnapshot

    def _make(
        prayer_id="p1",
        title="Healing for Mom",
        status="current",
        created_at="2026-01-01T12:00:00Z",
        updated_at=None,
        last_reminder_sent=None,
        most_recent_update_at=None,
    ):
        return PrayerSnapshot(
            id=prayer_id,
            title=title,
            status=status,
            created_at=created_at,
            updated_at=updated_at or created_at,
            last_reminder_sent=last_reminder_sent,
            most_recent_update_at=most_recent_update_at,
        )

    return _make
