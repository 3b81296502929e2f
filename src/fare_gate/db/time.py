# src/fare_gate/db/time.py
"""Time utilities for database models."""

from __future__ import annotations

from datetime import UTC, datetime, time
from zoneinfo import ZoneInfo

from sqlalchemy import DateTime
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def local_midnight(now: datetime, tz_name: str) -> datetime:
    """Return the UTC instant of the most recent midnight in ``tz_name``."""
    zone = ZoneInfo(tz_name)
    local_day = as_utc(now).astimezone(zone).date()
    return datetime.combine(local_day, time.min, tzinfo=zone).astimezone(UTC)


class UTCDateTime(TypeDecorator[datetime]):
    """DateTime column that always stores UTC and returns aware UTC values.

    SQLite drops tzinfo on the way in, so values are normalised to naive UTC
    before binding and re-tagged with UTC when loaded.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        return as_utc(value).replace(tzinfo=None)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        return as_utc(value)
