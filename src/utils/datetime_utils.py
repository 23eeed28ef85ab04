"""
Date and time helpers using python-dateutil for timezone resolution.

Provides the small set of primitives the business-hours rules are built on:
- 24-hour ``HH:MM`` time-of-day parsing and formatting
- IANA timezone lookup with a typed failure
- Timezone conversion where naive datetimes are read as wall-clock time in
  the target zone
"""

import re
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional

from dateutil import tz


TIME_OF_DAY_PATTERN = re.compile(r'^([01]?[0-9]|2[0-3]):([0-5][0-9])$')


class DateTimeError(Exception):
    """Base exception for datetime processing errors."""
    pass


class TimezoneError(DateTimeError):
    """Exception raised for unknown timezone identifiers."""
    pass


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def get_timezone(name: str) -> tzinfo:
    """
    Resolve an IANA timezone name.

    Raises:
        TimezoneError: If the name is empty or unknown
    """
    zone = tz.gettz(name) if name else None
    if zone is None:
        raise TimezoneError(f"Unknown timezone: {name!r}")
    return zone


def parse_time_of_day(value: Optional[str]) -> Optional[int]:
    """
    Parse a 24-hour ``HH:MM`` string into minutes since midnight.

    Returns None instead of raising when the value is not a valid time.
    """
    if not isinstance(value, str):
        return None
    match = TIME_OF_DAY_PATTERN.match(value.strip())
    if not match:
        return None
    return int(match.group(1)) * 60 + int(match.group(2))


def format_time_of_day(minutes: int) -> str:
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def minutes_of(value: datetime) -> int:
    return value.hour * 60 + value.minute


def to_timezone(value: datetime, zone: tzinfo) -> datetime:
    """Convert to ``zone``; naive values are taken as wall-clock time in ``zone``."""
    if value.tzinfo is None:
        return value.replace(tzinfo=zone)
    return value.astimezone(zone)


def combine_in_timezone(day: date, minutes: int, zone: tzinfo) -> datetime:
    """Build an aware datetime for ``day`` at ``minutes`` past midnight in ``zone``."""
    hours, mins = divmod(minutes, 60)
    return datetime.combine(day, time(hours, mins), tzinfo=zone)


def add_minutes(value: datetime, minutes: int) -> datetime:
    return value + timedelta(minutes=minutes)
