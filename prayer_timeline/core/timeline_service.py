"""
Prayer Timeline — Timeline Service.

Pulls prayers, update timestamps and settings from the store ports and
turns them into a TimelineState. This is the only part of the timeline
that awaits anything; derivation and grouping stay synchronous and pure.

Graceful degradation:
- Settings fetch fails -> default intervals
- Prayer/update fetch fails -> previous state's prayers and events (stale)
- ...and no previous state -> empty timeline with load_error set

This module is backend-agnostic: it depends on the store port protocols,
not on specific implementations.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Callable

from prayer_timeline.core import presenter
from prayer_timeline.core.lifecycle import DEFAULT_GRACE_DAYS
from prayer_timeline.core.local_calendar import LocalCalendar, resolve_user_timezone
from prayer_timeline.core.presenter import TimelineState
from prayer_timeline.data.models import (
    PrayerSnapshot,
    PrayerStatus,
    SettingsSummary,
    TimelineDay,
    TimelineSettings,
)

if TYPE_CHECKING:
    from prayer_timeline.ports.store_port import (
        PrayerStorePort,
        SettingsStorePort,
        UpdateStorePort,
    )

logger = logging.getLogger(__name__)

LOAD_ERROR_MESSAGE = "Prayer data is unavailable right now"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TimelineService:
    """Builds timeline states from the store ports.

    The service holds no timeline state of its own: refresh() takes the
    previous state and returns a new one, and the navigation helpers do
    the same.
    """

    def __init__(
        self,
        prayer_store: PrayerStorePort,
        update_store: UpdateStorePort,
        settings_store: SettingsStorePort,
        timezone_name: str | None = None,
        default_settings: TimelineSettings | None = None,
        grace_days: int = DEFAULT_GRACE_DAYS,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._prayer_store = prayer_store
        self._update_store = update_store
        self._settings_store = settings_store
        self.timezone = resolve_user_timezone(timezone_name)
        self._default_settings = default_settings or TimelineSettings()
        self._grace_days = grace_days
        self._clock = clock

    # -----------------------------------------------------------------------
    # Loading
    # -----------------------------------------------------------------------

    async def load_settings(self) -> TimelineSettings:
        """Fetch the interval settings, falling back to defaults on failure."""
        try:
            return await self._settings_store.fetch_timeline_settings()
        except Exception as exc:
            logger.error("Error loading timeline settings, using defaults: %s", exc)
            return self._default_settings

    async def load_prayers(self) -> list[PrayerSnapshot]:
        """Fetch all prayers with their latest update time attached.

        Raises whatever the stores raise; refresh() handles the fallback.
        """
        prayers = await self._prayer_store.fetch_current_prayers()
        current_ids = [p.id for p in prayers if p.status == PrayerStatus.CURRENT.value]
        latest = await self._update_store.fetch_most_recent_update_timestamps(current_ids)
        return [
            replace(p, most_recent_update_at=latest[p.id]) if p.id in latest else p
            for p in prayers
        ]

    async def refresh(self, previous: TimelineState | None = None) -> TimelineState:
        """Reload everything and return a freshly computed state.

        Keeps the previous state's month; a first refresh opens on the
        current local month. Never raises for store failures.
        """
        now = self._clock()
        settings = await self.load_settings()
        generation = previous.generation + 1 if previous is not None else 1

        if previous is not None:
            current_month = previous.current_month
        else:
            current_month = LocalCalendar.first_of_month(
                LocalCalendar(self.timezone).today(now)
            )

        try:
            prayers = await self.load_prayers()
        except Exception as exc:
            if previous is not None:
                logger.warning(
                    "Prayer fetch failed, keeping %d events from generation %d: %s",
                    len(previous.events), previous.generation, exc,
                )
                stale = replace(previous, generation=generation, stale=True)
                return presenter.regroup(stale)

            logger.error("Prayer fetch failed with no earlier timeline: %s", exc)
            empty = TimelineState(
                prayers=(),
                settings=settings,
                timezone=self.timezone,
                now=now,
                current_month=current_month,
                grace_days=self._grace_days,
                generation=generation,
                load_error=LOAD_ERROR_MESSAGE,
            )
            return presenter.regroup(empty)

        state = TimelineState(
            prayers=tuple(prayers),
            settings=settings,
            timezone=self.timezone,
            now=now,
            current_month=current_month,
            grace_days=self._grace_days,
            generation=generation,
        )
        state = presenter.recompute(state)
        logger.info(
            "Timeline refreshed (generation %d): %d prayers, %d events",
            generation, len(prayers), len(state.events),
        )
        return state

    # -----------------------------------------------------------------------
    # Views and navigation
    # -----------------------------------------------------------------------

    @staticmethod
    def timeline_for_month(state: TimelineState, month: date) -> list[TimelineDay]:
        """Day groups for any month of the state's event set."""
        if LocalCalendar.first_of_month(month) == state.current_month:
            return list(state.days)
        return list(presenter.go_to_month(state, month).days)

    @staticmethod
    def can_go_previous(state: TimelineState) -> bool:
        return presenter.can_go_previous(state)

    @staticmethod
    def can_go_next(state: TimelineState) -> bool:
        return presenter.can_go_next(state)

    @staticmethod
    def previous_month(state: TimelineState) -> TimelineState:
        return presenter.previous_month(state)

    @staticmethod
    def next_month(state: TimelineState) -> TimelineState:
        return presenter.next_month(state)

    @staticmethod
    def settings_summary(state: TimelineState) -> SettingsSummary:
        return SettingsSummary(
            reminder_interval_days=state.settings.reminder_interval_days,
            days_before_archive=state.settings.days_before_archive,
            timezone=state.timezone,
        )

    @staticmethod
    def is_newer(candidate: TimelineState, current: TimelineState | None) -> bool:
        """True if candidate should replace current (last refresh wins)."""
        return current is None or candidate.generation > current.generation
