"""
Booking Window Validation

Decides whether a proposed appointment falls on a working day and inside
working hours. The start check is half-open [start, end) while the end
check is inclusive (an appointment may finish exactly at closing time).
"""
from datetime import date, datetime
from typing import Optional

from booking.schemas.calendar import WorkingCalendarConfig
from booking.scheduling.clock import MINUTES_PER_DAY, minutes_of, weekday_index
from booking.scheduling.errors import SchedulingError, SchedulingErrorKind, scheduling_error


def is_working_day(day: date, config: WorkingCalendarConfig) -> bool:
    return weekday_index(day) in config.working_days


def is_within_working_hours(instant: datetime, config: WorkingCalendarConfig) -> bool:
    hours = config.working_hours
    if not hours.is_parsable:
        # Unparsable hours impose no restriction
        return True
    return hours.start_minutes <= minutes_of(instant) < hours.end_minutes


def ends_by_closing(end_minutes: int, config: WorkingCalendarConfig) -> bool:
    """End check on minutes counted from the booking day's midnight ("24:00" is 1440)."""
    hours = config.working_hours
    if not hours.is_parsable:
        return True
    return end_minutes <= hours.end_minutes


def is_end_within_working_hours(
        end_instant: datetime,
        config: WorkingCalendarConfig,
        day: Optional[date] = None
) -> bool:
    if isinstance(day, datetime):
        day = day.date()
    day = day or end_instant.date()
    end_minutes = (end_instant.date() - day).days * MINUTES_PER_DAY + minutes_of(end_instant)
    return ends_by_closing(end_minutes, config)


def validate_booking_window(
        start: datetime,
        end: datetime,
        config: WorkingCalendarConfig
) -> Optional[SchedulingError]:
    """Return the first failing window check, or None when the booking fits."""
    if not is_working_day(start, config):
        return scheduling_error(SchedulingErrorKind.NOT_WORKING_DAY, date=start.date().isoformat())

    if not is_within_working_hours(start, config):
        return scheduling_error(
            SchedulingErrorKind.OUTSIDE_WORKING_HOURS,
            working_hours=config.working_hours.model_dump(),
        )

    if not is_end_within_working_hours(end, config, day=start):
        return scheduling_error(
            SchedulingErrorKind.END_OUTSIDE_WORKING_HOURS,
            working_hours=config.working_hours.model_dump(),
        )

    return None
