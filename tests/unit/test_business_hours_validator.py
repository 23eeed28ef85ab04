"""
Unit tests for the business hours validator.

Covers the half-open booking window, working day checks in the business
timezone, past detection against the injected clock, slot generation and
the next business day search.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from src.business.validators import BusinessHoursValidator
from src.config.settings import BusinessHoursConfig
from tests.conftest import FIXED_NOW, NEXT_MONDAY, SATURDAY, TODAY, YESTERDAY, fixed_clock


@pytest.fixture
def validator(business_hours):
    return BusinessHoursValidator(business_hours, clock=fixed_clock)


class TestBusinessTimeWindow:
    """Window is [start, end): start inclusive, end exclusive."""

    @pytest.mark.parametrize('time_of_day, expected', [
        ('14:00', True),
        ('14:30', True),
        ('16:29', True),
        ('16:30', False),
        ('13:59', False),
        ('09:00', False),
        ('23:59', False),
    ])
    def test_window_boundaries(self, validator, time_of_day, expected):
        assert validator.is_valid_business_time(time_of_day) is expected

    @pytest.mark.parametrize('bad_value', ['', '24:00', '14h30', '14:60', 'noon', '1430', None])
    def test_invalid_format_returns_false(self, validator, bad_value):
        assert validator.is_valid_business_time(bad_value) is False

    @pytest.mark.parametrize('start, end', [('08:00', '12:00'), ('00:00', '23:59'), ('09:15', '09:45')])
    def test_boundaries_hold_for_other_windows(self, start, end):
        validator = BusinessHoursValidator(BusinessHoursConfig(start_time=start, end_time=end),
                                           clock=fixed_clock)
        assert validator.is_valid_business_time(start) is True
        assert validator.is_valid_business_time(end) is False

    def test_single_digit_hour_accepted(self, validator):
        assert validator.is_valid_business_time('9:00') is False
        assert BusinessHoursValidator(
            BusinessHoursConfig(start_time='9:00', end_time='10:00'), clock=fixed_clock,
        ).is_valid_business_time('9:30') is True


class TestBusinessDay:

    def test_weekdays_are_business_days(self, validator):
        assert validator.is_valid_business_day(NEXT_MONDAY) is True
        assert validator.is_valid_business_day(TODAY) is True

    def test_weekend_is_not_business_day(self, validator):
        assert validator.is_valid_business_day(SATURDAY) is False
        assert validator.is_valid_business_day(SATURDAY + timedelta(days=1)) is False

    def test_aware_datetime_uses_business_timezone(self, validator):
        # Friday 23:30 UTC is already Saturday 01:30 in Paris
        friday_night_utc = datetime(2026, 10, 16, 23, 30, tzinfo=timezone.utc)
        assert validator.is_valid_business_day(friday_night_utc) is False

    def test_custom_working_days(self):
        validator = BusinessHoursValidator(BusinessHoursConfig(working_days={6, 7}), clock=fixed_clock)
        assert validator.is_valid_business_day(SATURDAY) is True
        assert validator.is_valid_business_day(NEXT_MONDAY) is False

    def test_date_time_combines_day_and_time(self, validator):
        assert validator.is_valid_business_date_time(NEXT_MONDAY, '15:00') is True
        assert validator.is_valid_business_date_time(NEXT_MONDAY, '09:00') is False
        assert validator.is_valid_business_date_time(SATURDAY, '15:00') is False


class TestIsInPast:

    def test_dates(self, validator):
        assert validator.is_in_past(YESTERDAY) is True
        assert validator.is_in_past(TODAY) is False
        assert validator.is_in_past(NEXT_MONDAY) is False

    def test_aware_datetimes(self, validator):
        assert validator.is_in_past(FIXED_NOW - timedelta(minutes=1)) is True
        assert validator.is_in_past(FIXED_NOW) is False
        assert validator.is_in_past(FIXED_NOW + timedelta(minutes=1)) is False

    def test_naive_datetime_read_in_business_timezone(self, validator):
        # Clock is 12:00 in Paris
        assert validator.is_in_past(datetime(2026, 10, 14, 11, 59)) is True
        assert validator.is_in_past(datetime(2026, 10, 14, 12, 1)) is False

    def test_today_uses_business_timezone(self):
        # 23:30 UTC on the 14th is already the 15th in Paris
        late_clock = lambda: datetime(2026, 10, 14, 23, 30, tzinfo=timezone.utc)
        validator = BusinessHoursValidator(BusinessHoursConfig(), clock=late_clock)
        assert validator.today() == date(2026, 10, 15)
        assert validator.is_in_past(TODAY) is True


class TestCombinedDateTimeObject:

    def test_valid_future_slot(self, validator):
        start = validator.combine(NEXT_MONDAY, '14:30')
        assert validator.is_valid_business_date_time_object(start) is True

    def test_rejects_past_slot_inside_window(self, validator):
        past_monday = NEXT_MONDAY - timedelta(days=14)
        assert validator.is_valid_business_date_time_object(validator.combine(past_monday, '14:30')) is False

    def test_rejects_weekend_and_outside_window(self, validator):
        assert validator.is_valid_business_date_time_object(validator.combine(SATURDAY, '14:30')) is False
        assert validator.is_valid_business_date_time_object(validator.combine(NEXT_MONDAY, '16:30')) is False

    def test_converts_to_business_timezone(self, validator):
        # 12:30 UTC on Monday 19 October is 14:30 in Paris
        assert validator.is_valid_business_date_time_object(
            datetime(2026, 10, 19, 12, 30, tzinfo=timezone.utc)
        ) is True

    def test_combine_rejects_invalid_time(self, validator):
        with pytest.raises(ValueError):
            validator.combine(NEXT_MONDAY, '25:00')

    def test_slot_end_adds_duration(self, validator):
        start = validator.combine(NEXT_MONDAY, '16:00')
        assert validator.slot_end(start).strftime('%H:%M') == '16:30'


class TestTimeSlots:

    def test_slots_step_by_duration_across_window(self, validator):
        slots = validator.get_available_time_slots(NEXT_MONDAY)
        assert [slot.time for slot in slots] == ['14:00', '14:30', '15:00', '15:30', '16:00']
        assert all(slot.available for slot in slots)
        assert slots[0].start.tzinfo is not None

    def test_no_slots_on_non_working_day(self, validator):
        assert validator.get_available_time_slots(SATURDAY) == []

    def test_slots_today_marked_by_clock(self):
        # 13:15 UTC is 15:15 in Paris
        afternoon = lambda: datetime(2026, 10, 14, 13, 15, tzinfo=timezone.utc)
        validator = BusinessHoursValidator(BusinessHoursConfig(), clock=afternoon)
        availability = {slot.time: slot.available for slot in validator.get_available_time_slots(TODAY)}
        assert availability == {
            '14:00': False, '14:30': False, '15:00': False, '15:30': True, '16:00': True,
        }


class TestNextBusinessDay:

    def test_friday_to_monday(self, validator):
        assert validator.get_next_business_day(date(2026, 10, 16)) == NEXT_MONDAY

    def test_strictly_after_from_day(self, validator):
        assert validator.get_next_business_day(TODAY) == date(2026, 10, 15)

    def test_single_working_day(self):
        validator = BusinessHoursValidator(BusinessHoursConfig(working_days={3}), clock=fixed_clock)
        assert validator.get_next_business_day(TODAY) == date(2026, 10, 21)

    def test_get_config_returns_config(self, validator, business_hours):
        assert validator.get_config() is business_hours
