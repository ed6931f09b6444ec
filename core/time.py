"""Time-related helpers.

This module centralizes helpers for obtaining timestamps in UTC.  Services
that need a notion of "now" accept a :data:`Clock` so that tests can drive
time explicitly instead of sleeping.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current UTC time as an aware ``datetime`` instance."""

    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Return *value* as an aware UTC datetime.

    SQLite drops tzinfo on round-trip, so naive values read back from the
    store are interpreted as UTC.
    """

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
