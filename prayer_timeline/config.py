"""
Prayer Timeline — Centralized configuration.

Loads all settings from .env and validates them.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (one level up from prayer_timeline/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # SQLite
    DATABASE_PATH: str = "data/prayers.db"

    # IANA zone used for all local-date math; empty → TZ env var → UTC
    TIMEZONE: str = ""

    # Used when the admin_settings row is missing or unreadable
    DEFAULT_REMINDER_INTERVAL_DAYS: int = 30
    DEFAULT_DAYS_BEFORE_ARCHIVE: int = 30

    # Days past due before a reminder/archive is shown as missed.
    # Matches the run cadence of the external reminder/archive job.
    MISSED_EVENT_GRACE_DAYS: int = 2

    LOG_LEVEL: str = "INFO"

    @field_validator(
        "DEFAULT_REMINDER_INTERVAL_DAYS",
        "DEFAULT_DAYS_BEFORE_ARCHIVE",
        mode="before",
    )
    @classmethod
    def parse_positive_days(cls, v: str | int) -> int:
        days = int(v)
        if days <= 0:
            raise ValueError(f"day interval must be positive, got {days}")
        return days

    @field_validator("MISSED_EVENT_GRACE_DAYS", mode="before")
    @classmethod
    def parse_grace_days(cls, v: str | int) -> int:
        days = int(v)
        if days < 1:
            raise ValueError(f"grace buffer must be at least 1 day, got {days}")
        return days

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def parse_log_level(cls, v: str) -> str:
        return (v or "INFO").strip().upper()


def _load_settings() -> Settings:
    """Load settings from environment."""
    return Settings(
        DATABASE_PATH=os.getenv("DATABASE_PATH", "data/prayers.db"),
        TIMEZONE=os.getenv("TIMEZONE", ""),
        DEFAULT_REMINDER_INTERVAL_DAYS=os.getenv("DEFAULT_REMINDER_INTERVAL_DAYS", "30"),
        DEFAULT_DAYS_BEFORE_ARCHIVE=os.getenv("DEFAULT_DAYS_BEFORE_ARCHIVE", "30"),
        MISSED_EVENT_GRACE_DAYS=os.getenv("MISSED_EVENT_GRACE_DAYS", "2"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
    )


# Singleton — imported by all other modules as:
#   from prayer_timeline.config import settings
settings = _load_settings()
