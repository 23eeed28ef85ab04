"""
Business hours validation.

``BusinessHoursValidator`` answers whether a requested appointment falls on
a working day inside the configured booking window, in the business
timezone. All checks are pure functions of the immutable
``BusinessHoursConfig`` and an injected clock, so one validator instance is
safe to share across concurrent submissions.

Validators:
    BusinessHoursValidator: Working day, time window and past checks
    TimeSlot: A bookable slot on a given day
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional, Union

import structlog

from src.config.settings import BusinessHoursConfig
from src.utils.datetime_utils import (
    add_minutes,
    combine_in_timezone,
    format_time_of_day,
    minutes_of,
    parse_time_of_day,
    to_timezone,
    utc_now,
)

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]

NEXT_BUSINESS_DAY_SEARCH_LIMIT = 14


@dataclass(frozen=True)
class TimeSlot:
    time: str
    available: bool
    start: datetime


class BusinessHoursValidator:
    """
    Validates appointment slots against business hours.

    Args:
        config: Business hours configuration
        clock: Returns the current instant, UTC now by default

    Example:
        validator = BusinessHoursValidator(BusinessHoursConfig())
        validator.is_valid_business_time("14:00")   # True
        validator.is_valid_business_time("16:30")   # False, window is [start, end)
    """

    def __init__(self, config: Optional[BusinessHoursConfig] = None, clock: Optional[Clock] = None):
        self.config = config or BusinessHoursConfig()
        self.clock = clock or utc_now
        self._zone = self.config.tzinfo

    def get_config(self) -> BusinessHoursConfig:
        return self.config

    def now(self) -> datetime:
        return to_timezone(self.clock(), self._zone)

    def today(self) -> date:
        return self.now().date()

    def is_in_past(self, value: Union[date, datetime]) -> bool:
        """
        A datetime is past when strictly earlier than now; naive values are
        read in the business timezone. A date is past when strictly earlier
        than today in the business timezone.
        """
        if isinstance(value, datetime):
            return to_timezone(value, self._zone) < self.now()
        return value < self.today()

    def is_valid_business_day(self, value: Union[date, datetime]) -> bool:
        if isinstance(value, datetime):
            value = to_timezone(value, self._zone)
        return value.isoweekday() in self.config.working_days

    def is_valid_business_time(self, time_of_day: str) -> bool:
        minutes = parse_time_of_day(time_of_day)
        if minutes is None:
            return False
        return self.config.start_minutes <= minutes < self.config.end_minutes

    def is_valid_business_date_time(self, day: Union[date, datetime], time_of_day: str) -> bool:
        return self.is_valid_business_day(day) and self.is_valid_business_time(time_of_day)

    def is_valid_business_date_time_object(self, value: datetime) -> bool:
        """Not in the past, on a working day and inside the window, in business time."""
        local = to_timezone(value, self._zone)
        not_past = not self.is_in_past(local)
        working_day = self.is_valid_business_day(local)
        in_window = self.config.start_minutes <= minutes_of(local) < self.config.end_minutes
        return not_past and working_day and in_window

    def combine(self, day: date, time_of_day: str) -> datetime:
        """
        Build the aware start datetime for ``day`` at ``time_of_day``.

        Raises:
            ValueError: If ``time_of_day`` is not a 24-hour ``HH:MM`` string
        """
        minutes = parse_time_of_day(time_of_day)
        if minutes is None:
            raise ValueError(f"Invalid time of day: {time_of_day!r}")
        return combine_in_timezone(day, minutes, self._zone)

    def slot_end(self, start: datetime) -> datetime:
        return add_minutes(start, self.config.slot_duration)

    def get_available_time_slots(self, day: date) -> List[TimeSlot]:
        if not self.is_valid_business_day(day):
            return []

        slots = []
        for minutes in range(self.config.start_minutes, self.config.end_minutes, self.config.slot_duration):
            start = combine_in_timezone(day, minutes, self._zone)
            slots.append(TimeSlot(
                time=format_time_of_day(minutes),
                available=not self.is_in_past(start),
                start=start,
            ))
        return slots

    def get_next_business_day(self, from_day: date) -> Optional[date]:
        """Next working day strictly after ``from_day``, searching at most 14 days."""
        for offset in range(1, NEXT_BUSINESS_DAY_SEARCH_LIMIT + 1):
            candidate = from_day + timedelta(days=offset)
            if self.is_valid_business_day(candidate):
                return candidate
        logger.warning("No business day found", from_day=from_day.isoformat(),
                       search_limit=NEXT_BUSINESS_DAY_SEARCH_LIMIT)
        return None
