# booking/schemas/__init__.py
from .calendar import (
    DEFAULT_REMINDER_MESSAGE,
    WorkingHours,
    WorkingCalendarConfig,
    ReminderSettings
)

from .appointment import (
    AppointmentCreate,
    AppointmentUpdate,
    ParticipantCreate,
    RescheduleRejection,
    RescheduleRequest
)
