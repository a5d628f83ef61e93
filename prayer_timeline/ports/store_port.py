"""Store ports — abstract interfaces for the timeline's data sources.

Core modules depend on these protocols, never on a specific backend.
"""

from __future__ import annotations

from typing import Protocol

from prayer_timeline.data.models import PrayerSnapshot, TimelineSettings, Timestamp


class StoreError(Exception):
    """Raised when any store operation fails."""


class PrayerStorePort(Protocol):
    """Source of prayer snapshots (all statuses shown on the timeline)."""

    async def fetch_current_prayers(self) -> list[PrayerSnapshot]: ...


class UpdateStorePort(Protocol):
    """Source of the latest update time per prayer."""

    async def fetch_most_recent_update_timestamp(
        self, prayer_id: str
    ) -> Timestamp | None: ...

    async def fetch_most_recent_update_timestamps(
        self, prayer_ids: list[str]
    ) -> dict[str, Timestamp]: ...


class SettingsStorePort(Protocol):
    """Source of the admin-configured reminder/archive intervals."""

    async def fetch_timeline_settings(self) -> TimelineSettings: ...
