"""Datetime helpers for rental intervals."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from dateutil import parser

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 24 * MINUTES_PER_HOUR
MINUTES_PER_WEEK = 7 * MINUTES_PER_DAY


def now() -> datetime:
    """Current local time without sub-second noise."""
    return datetime.now().replace(microsecond=0)


def truncate_to_minute(value: datetime) -> datetime:
    return value.replace(second=0, microsecond=0)


def parse_datetime(value: str | datetime) -> datetime:
    """Parse an ISO 8601 timestamp into a naive local datetime.

    Aware values are converted to local time first so that every stored
    timestamp compares correctly as text.
    """
    parsed = value if isinstance(value, datetime) else parser.isoparse(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed.replace(microsecond=0)


def parse_optional_datetime(value: Optional[str | datetime]) -> Optional[datetime]:
    if value is None or value == "":
        return None
    return parse_datetime(value)


def to_iso(value: datetime) -> str:
    return value.isoformat(timespec="seconds")


def to_optional_iso(value: Optional[datetime]) -> Optional[str]:
    return to_iso(value) if value is not None else None


def elapsed_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between two instants (partial minutes are dropped)."""
    return int((end - start).total_seconds() // 60)


def billing_units(start: datetime, end: datetime, unit_minutes: int) -> int:
    """Number of started plan units in ``[start, end)``, at least 1.

    Pricing and late fees both bill the ceiling of the elapsed time in their
    own unit: 80 minutes are 2 hours, 24h01m are 2 days.
    """
    minutes = elapsed_minutes(start, end)
    units = -(-minutes // unit_minutes)
    return max(units, 1)
