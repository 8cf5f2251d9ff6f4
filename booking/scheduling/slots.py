"""
Slot Generation

Produces the discrete "HH:MM" start times a tenant offers for a day,
from the working hours and slot gap in its calendar config.
"""
import logging
from typing import Iterator

from booking.schemas.calendar import WorkingCalendarConfig
from booking.scheduling.clock import format_minutes

logger = logging.getLogger(__name__)

FALLBACK_START = 9 * 60
FALLBACK_END = 18 * 60
FALLBACK_GAP = 60


class TimeSlots:
    """
    Lazy, restartable sequence of slot start times.

    Each iteration walks from working_hours.start (inclusive) to
    working_hours.end (exclusive) in steps of slot_gap_minutes. When the
    configured hours do not parse, a 09:00-18:00 hourly day is used.

    >>> list(TimeSlots(config))  # 09:00-11:00, gap 30
    ['09:00', '09:30', '10:00', '10:30']
    """

    def __init__(self, config: WorkingCalendarConfig):
        hours = config.working_hours
        if hours.is_parsable:
            self.start = hours.start_minutes
            self.end = hours.end_minutes
            self.gap = config.slot_gap_minutes
        else:
            logger.warning(
                f"Unparsable working hours {hours.start!r}-{hours.end!r}, using default day"
            )
            self.start = FALLBACK_START
            self.end = FALLBACK_END
            self.gap = FALLBACK_GAP

    def minutes(self) -> Iterator[int]:
        current = self.start
        while current < self.end:
            yield current
            current += self.gap

    def __iter__(self) -> Iterator[str]:
        return (format_minutes(m) for m in self.minutes())

    def __len__(self) -> int:
        if self.end <= self.start:
            return 0
        return (self.end - self.start + self.gap - 1) // self.gap


def generate_time_slots(config: WorkingCalendarConfig) -> TimeSlots:
    return TimeSlots(config)
