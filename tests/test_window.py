import pytest
from datetime import date

from booking.schemas.calendar import WorkingCalendarConfig, WorkingHours
from booking.scheduling.clock import weekday_index
from booking.scheduling.errors import SchedulingErrorKind
from booking.scheduling.window import (
    is_end_within_working_hours,
    is_within_working_hours,
    is_working_day,
    validate_booking_window,
)

from conftest import FRIDAY, MONDAY, TUESDAY, at


@pytest.fixture
def config():
    return WorkingCalendarConfig()


def test_weekday_index_starts_on_sunday():
    assert weekday_index(date(2030, 1, 6)) == 0  # Sunday
    assert weekday_index(MONDAY) == 1
    assert weekday_index(date(2030, 1, 12)) == 6  # Saturday


def test_working_days(config):
    assert is_working_day(date(2030, 1, 6), config)
    assert is_working_day(MONDAY, config)
    assert not is_working_day(FRIDAY, config)


def test_start_check_is_half_open(config):
    assert is_within_working_hours(at(MONDAY, 9), config)
    assert is_within_working_hours(at(MONDAY, 17, 59), config)
    assert not is_within_working_hours(at(MONDAY, 18), config)
    assert not is_within_working_hours(at(MONDAY, 8, 59), config)


def test_end_check_is_inclusive(config):
    assert is_end_within_working_hours(at(MONDAY, 18), config)
    assert not is_end_within_working_hours(at(MONDAY, 18, 1), config)


def test_booking_ending_at_closing_time_is_valid(config):
    assert validate_booking_window(at(MONDAY, 17, 30), at(MONDAY, 18), config) is None


@pytest.mark.parametrize("start,end,kind", [
    (at(FRIDAY, 10), at(FRIDAY, 10, 30), SchedulingErrorKind.NOT_WORKING_DAY),
    (at(MONDAY, 18), at(MONDAY, 18, 30), SchedulingErrorKind.OUTSIDE_WORKING_HOURS),
    (at(MONDAY, 8, 30), at(MONDAY, 9), SchedulingErrorKind.OUTSIDE_WORKING_HOURS),
    (at(MONDAY, 17, 45), at(MONDAY, 18, 15), SchedulingErrorKind.END_OUTSIDE_WORKING_HOURS),
])
def test_window_rejections(config, start, end, kind):
    error = validate_booking_window(start, end, config)
    assert error is not None
    assert error.kind == kind
    assert error.status_code == 400


def test_unparsable_hours_do_not_restrict():
    config = WorkingCalendarConfig(working_hours=WorkingHours(start="open", end="close"))
    assert validate_booking_window(at(MONDAY, 6), at(MONDAY, 23), config) is None


def test_start_after_end_hours_rejected():
    with pytest.raises(ValueError):
        WorkingHours(start="18:00", end="09:00")


def test_midnight_closing_accepts_the_last_slot():
    config = WorkingCalendarConfig(working_hours=WorkingHours(start="22:00", end="24:00"))
    tuesday_midnight = at(TUESDAY, 0)

    assert validate_booking_window(at(MONDAY, 23, 30), tuesday_midnight, config) is None
    assert is_end_within_working_hours(tuesday_midnight, config, day=MONDAY)
    assert not is_end_within_working_hours(tuesday_midnight.replace(minute=15), config, day=MONDAY)
