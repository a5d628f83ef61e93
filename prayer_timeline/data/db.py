"""
Prayer Timeline — SQLite stores.

SQLite implementations of the store ports. The timeline only reads from
these; the write helpers exist to import data and to seed fixtures.
Reminders and archiving are performed by an external job that writes
last_reminder_sent, status and updated_at.
"""

from __future__ import annotations

import logging
import sqlite3
from abc import ABC, abstractmethod
import uuid
from datetime import datetime, timezone
from pathlib import Path

from prayer_timeline.core.local_calendar import parse_timestamp
from prayer_timeline.data.models import (
    DEFAULT_DAYS_BEFORE_ARCHIVE,
    DEFAULT_REMINDER_INTERVAL_DAYS,
    PrayerSnapshot,
    PrayerStatus,
    TimelineSettings,
)
from prayer_timeline.ports.store_port import StoreError

logger = logging.getLogger(__name__)

_VALID_STATUSES = {s.value for s in PrayerStatus}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _to_iso(value: datetime | str | None) -> str | None:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class _SQLiteStore(ABC):
    """Shared connection handling for the stores below."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from prayer_timeline.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        try:
            self._init_db()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to initialize {db_path}: {exc}") from exc

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    @abstractmethod
    def _init_db(self) -> None:
        """Create or migrate this store's tables."""


class PrayerDB(_SQLiteStore):
    """SQLite-backed prayer storage. Implements PrayerStorePort."""

    def _init_db(self) -> None:
        """Create the prayers table if it doesn't exist, and migrate schema."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS prayers (
                    id                 TEXT PRIMARY KEY,
                    title              TEXT NOT NULL,
                    status             TEXT NOT NULL DEFAULT 'current',
                    created_at         TEXT NOT NULL,
                    updated_at         TEXT NOT NULL,
                    last_reminder_sent TEXT
                )
            """)
            # Migrate existing DBs: add new columns if missing
            existing_cols = {
                row[1] for row in conn.execute("PRAGMA table_info(prayers)").fetchall()
            }
            if "last_reminder_sent" not in existing_cols:
                conn.execute(
                    "ALTER TABLE prayers ADD COLUMN last_reminder_sent TEXT"
                )
        logger.debug("Prayers table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_prayer(row: sqlite3.Row) -> PrayerSnapshot:
        return PrayerSnapshot(
            id=row["id"],
            title=row["title"],
            status=row["status"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            last_reminder_sent=row["last_reminder_sent"],
        )

    def add_prayer(
        self,
        title: str,
        status: str = PrayerStatus.CURRENT.value,
        created_at: datetime | str | None = None,
        updated_at: datetime | str | None = None,
        last_reminder_sent: datetime | str | None = None,
        prayer_id: str | None = None,
    ) -> PrayerSnapshot:
        """Insert a prayer. updated_at defaults to created_at (or now)."""
        if status not in _VALID_STATUSES:
            raise ValueError(f"Unknown prayer status: {status!r}")

        prayer_id = prayer_id or str(uuid.uuid4())
        created = _to_iso(created_at) or _now_iso()
        updated = _to_iso(updated_at) or created
        reminder = _to_iso(last_reminder_sent)

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO prayers
                    (id, title, status, created_at, updated_at, last_reminder_sent)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (prayer_id, title, status, created, updated, reminder),
            )

        logger.info("Prayer added: %s '%s' (%s)", prayer_id, title, status)
        return PrayerSnapshot(
            id=prayer_id,
            title=title,
            status=status,
            created_at=created,
            updated_at=updated,
            last_reminder_sent=reminder,
        )

    def get_prayer(self, prayer_id: str) -> PrayerSnapshot | None:
        """Fetch a single prayer by ID."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM prayers WHERE id = ?", (prayer_id,)
            ).fetchone()
        if row is None:
            return None
        return self._row_to_prayer(row)

    def set_status(
        self, prayer_id: str, status: str, updated_at: datetime | str | None = None,
    ) -> None:
        """Change a prayer's status, stamping updated_at."""
        if status not in _VALID_STATUSES:
            raise ValueError(f"Unknown prayer status: {status!r}")
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE prayers SET status = ?, updated_at = ? WHERE id = ?",
                (status, _to_iso(updated_at) or _now_iso(), prayer_id),
            )
            if cursor.rowcount == 0:
                raise ValueError(f"Prayer {prayer_id} not found")
        logger.info("Prayer %s marked %s", prayer_id, status)

    def record_reminder_sent(
        self, prayer_id: str, sent_at: datetime | str | None = None,
    ) -> None:
        """Store when a reminder was delivered (as reported by the reminder job)."""
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE prayers SET last_reminder_sent = ? WHERE id = ?",
                (_to_iso(sent_at) or _now_iso(), prayer_id),
            )
            if cursor.rowcount == 0:
                raise ValueError(f"Prayer {prayer_id} not found")

    async def fetch_current_prayers(self) -> list[PrayerSnapshot]:
        """Return every prayer, oldest first."""
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    "SELECT * FROM prayers ORDER BY created_at, id"
                ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to fetch prayers: {exc}") from exc
        return [self._row_to_prayer(r) for r in rows]


class PrayerUpdateDB(_SQLiteStore):
    """SQLite-backed prayer update storage. Implements UpdateStorePort."""

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS prayer_updates (
                    id         TEXT PRIMARY KEY,
                    prayer_id  TEXT NOT NULL,
                    content    TEXT NOT NULL DEFAULT '',
                    created_at TEXT NOT NULL
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_prayer_updates_prayer "
                "ON prayer_updates (prayer_id, created_at)"
            )
        logger.debug("Prayer updates table initialized at %s", self._db_path)

    def add_update(
        self, prayer_id: str, content: str = "", created_at: datetime | str | None = None,
    ) -> str:
        """Insert an update for a prayer and return its ID."""
        update_id = str(uuid.uuid4())
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO prayer_updates (id, prayer_id, content, created_at) "
                "VALUES (?, ?, ?, ?)",
                (update_id, prayer_id, content, _to_iso(created_at) or _now_iso()),
            )
        logger.info("Update %s added to prayer %s", update_id, prayer_id)
        return update_id

    @staticmethod
    def _is_later(candidate: str, current: str | None) -> bool:
        """Compare stored timestamps as instants; text order breaks across offsets.

        Unparseable values never win over a parseable one.
        """
        try:
            candidate_at = parse_timestamp(candidate)
        except ValueError:
            logger.warning("Ignoring malformed update timestamp %r", candidate)
            return False
        if current is None:
            return True
        return candidate_at > parse_timestamp(current)

    async def fetch_most_recent_update_timestamp(self, prayer_id: str) -> str | None:
        latest = await self.fetch_most_recent_update_timestamps([prayer_id])
        return latest.get(prayer_id)

    async def fetch_most_recent_update_timestamps(
        self, prayer_ids: list[str]
    ) -> dict[str, str]:
        """Latest update created_at per prayer; prayers with no updates are absent."""
        if not prayer_ids:
            return {}
        placeholders = ", ".join("?" for _ in prayer_ids)
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    f"SELECT prayer_id, created_at FROM prayer_updates "
                    f"WHERE prayer_id IN ({placeholders})",
                    list(prayer_ids),
                ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to fetch prayer updates: {exc}") from exc

        latest: dict[str, str] = {}
        for row in rows:
            if self._is_later(row["created_at"], latest.get(row["prayer_id"])):
                latest[row["prayer_id"]] = row["created_at"]
        return latest


class AdminSettingsDB(_SQLiteStore):
    """Single-row admin settings table. Implements SettingsStorePort.

    A missing row or NULL column means "use the default".
    """

    def __init__(
        self,
        db_path: str | None = None,
        default_reminder_interval_days: int = DEFAULT_REMINDER_INTERVAL_DAYS,
        default_days_before_archive: int = DEFAULT_DAYS_BEFORE_ARCHIVE,
    ) -> None:
        self._defaults = TimelineSettings(
            reminder_interval_days=default_reminder_interval_days,
            days_before_archive=default_days_before_archive,
        )
        super().__init__(db_path)

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS admin_settings (
                    id                     INTEGER PRIMARY KEY CHECK (id = 1),
                    reminder_interval_days INTEGER,
                    days_before_archive    INTEGER
                )
            """)
        logger.debug("Admin settings table initialized at %s", self._db_path)

    def save_timeline_settings(
        self,
        reminder_interval_days: int | None = None,
        days_before_archive: int | None = None,
    ) -> None:
        """Upsert the settings row. None stores NULL (falls back to default)."""
        for value in (reminder_interval_days, days_before_archive):
            if value is not None and value <= 0:
                raise ValueError(f"Interval must be positive, got {value}")
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO admin_settings (id, reminder_interval_days, days_before_archive)
                VALUES (1, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    reminder_interval_days = excluded.reminder_interval_days,
                    days_before_archive    = excluded.days_before_archive
                """,
                (reminder_interval_days, days_before_archive),
            )
        logger.info(
            "Timeline settings saved: reminder=%s archive=%s",
            reminder_interval_days, days_before_archive,
        )

    async def fetch_timeline_settings(self) -> TimelineSettings:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT reminder_interval_days, days_before_archive "
                    "FROM admin_settings WHERE id = 1"
                ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to fetch timeline settings: {exc}") from exc

        if row is None:
            return self._defaults

        reminder = row["reminder_interval_days"]
        archive = row["days_before_archive"]
        return TimelineSettings(
            reminder_interval_days=(
                reminder if reminder is not None else self._defaults.reminder_interval_days
            ),
            days_before_archive=(
                archive if archive is not None else self._defaults.days_before_archive
            ),
        )
