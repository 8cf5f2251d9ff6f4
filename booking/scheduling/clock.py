"""
Wall-clock helpers shared by the scheduling policy.

Everything here works on tenant-local naive datetimes; no timezone
conversion happens in this package.
"""
from datetime import date, datetime
from typing import Optional

MINUTES_PER_DAY = 24 * 60


def parse_hhmm(value) -> Optional[int]:
    """Parse "HH:MM" into minutes since midnight, or None when it is not numeric."""
    if not isinstance(value, str):
        return None
    parts = value.strip().split(":")
    if len(parts) != 2:
        return None
    hours, minutes = parts
    if not (hours.isdigit() and minutes.isdigit()):
        return None
    total = int(hours) * 60 + int(minutes)
    if int(minutes) >= 60 or total > MINUTES_PER_DAY:
        return None
    return total


def format_minutes(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def minutes_of(instant: datetime) -> int:
    return instant.hour * 60 + instant.minute


def weekday_index(day) -> int:
    """Weekday with 0 = Sunday ... 6 = Saturday, the convention stored in tenant settings."""
    if isinstance(day, datetime):
        day = day.date()
    if not isinstance(day, date):
        raise TypeError(f"Expected a date, got {type(day).__name__}")
    return (day.weekday() + 1) % 7
