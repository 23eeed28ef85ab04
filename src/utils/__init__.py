"""
Utils Package

- datetime_utils: ``HH:MM`` parsing and formatting, IANA timezone lookup
  (python-dateutil) and timezone-aware datetime construction.
"""

from src.utils.datetime_utils import (
    DateTimeError,
    TimezoneError,
    combine_in_timezone,
    format_time_of_day,
    get_timezone,
    parse_time_of_day,
    to_timezone,
    utc_now,
)

__all__ = [
    'DateTimeError',
    'TimezoneError',
    'combine_in_timezone',
    'format_time_of_day',
    'get_timezone',
    'parse_time_of_day',
    'to_timezone',
    'utc_now',
]
