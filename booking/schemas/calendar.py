"""
Typed tenant settings.

Settings are stored as loosely shaped JSON on the business row. They are
resolved into these models once per request, with every default applied
here instead of at each call site.
"""
from typing import List, Optional, Set
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from booking.scheduling.clock import parse_hhmm

DEFAULT_REMINDER_MESSAGE = (
    "A reminder that you have an appointment for {{service}} on {{date}} "
    "at {{time}} with {{worker}}, see you soon!"
)


class WorkingHours(BaseModel):
    start: str = "09:00"
    end: str = "18:00"

    @model_validator(mode="after")
    def check_start_before_end(self):
        start, end = parse_hhmm(self.start), parse_hhmm(self.end)
        if start is not None and end is not None and start >= end:
            raise ValueError("working hours start must be before end")
        return self

    @property
    def start_minutes(self) -> Optional[int]:
        return parse_hhmm(self.start)

    @property
    def end_minutes(self) -> Optional[int]:
        return parse_hhmm(self.end)

    @property
    def is_parsable(self) -> bool:
        return self.start_minutes is not None and self.end_minutes is not None


class WorkingCalendarConfig(BaseModel):
    """Which weekdays and hours a tenant accepts bookings (0 = Sunday)"""
    model_config = ConfigDict(populate_by_name=True)

    working_days: Set[int] = Field(default_factory=lambda: {0, 1, 2, 3, 4}, alias="workingDays")
    working_hours: WorkingHours = Field(default_factory=WorkingHours, alias="workingHours")
    slot_gap_minutes: int = Field(30, gt=0, alias="timeSlotGap")
    week_start_day: int = Field(0, ge=0, le=6, alias="weekStartDay")

    @field_validator("working_days")
    @classmethod
    def validate_working_days(cls, v):
        if any(day < 0 or day > 6 for day in v):
            raise ValueError("working days must be weekday indexes 0-6")
        return v

    def to_blob(self) -> dict:
        return {
            "workingDays": sorted(self.working_days),
            "workingHours": self.working_hours.model_dump(),
            "timeSlotGap": self.slot_gap_minutes,
            "weekStartDay": self.week_start_day,
        }


class ReminderSettings(BaseModel):
    """Automated reminder preferences for a tenant"""
    model_config = ConfigDict(populate_by_name=True)

    enabled: bool = True
    sms_enabled: bool = Field(True, alias="smsEnabled")
    whatsapp_enabled: bool = Field(False, alias="whatsappEnabled")
    days_before: List[int] = Field(default_factory=lambda: [1], alias="daysBefore")
    default_time: str = Field("09:00", alias="defaultTime")
    reminder_message: str = Field(DEFAULT_REMINDER_MESSAGE, alias="reminderMessage")
    personal_addition: Optional[str] = Field(None, alias="personalAddition")

    @field_validator("days_before")
    @classmethod
    def validate_days_before(cls, v):
        if any(days < 0 for days in v):
            raise ValueError("days before must not be negative")
        return sorted(set(v))

    @field_validator("default_time")
    @classmethod
    def validate_default_time(cls, v):
        if parse_hhmm(v) is None:
            raise ValueError("default time must be HH:MM")
        return v

    @property
    def default_time_minutes(self) -> int:
        return parse_hhmm(self.default_time)

    def to_blob(self) -> dict:
        return {"reminders": self.model_dump(by_alias=True)}
