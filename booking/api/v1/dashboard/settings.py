"""
Tenant settings routes
Working calendar and reminder preferences
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from booking.api.dependencies import get_current_business
from booking.config.database import get_db
from booking.models.business import Business
from booking.schemas.calendar import ReminderSettings, WorkingCalendarConfig
from booking.scheduling.slots import TimeSlots
from booking.services.settings.settings_service import SettingsService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/settings", tags=["settings"])


def _calendar_response(config: WorkingCalendarConfig) -> dict:
    return {
        "calendar": config.to_blob(),
        "time_slots": list(TimeSlots(config)),
    }


@router.get("/calendar")
async def get_calendar_settings(
        business: Business = Depends(get_current_business)
):
    """Working days, hours and slot gap, with defaults applied."""
    return _calendar_response(SettingsService.calendar_config(business))


@router.put("/calendar")
async def update_calendar_settings(
        payload: WorkingCalendarConfig,
        business: Business = Depends(get_current_business),
        db: Session = Depends(get_db)
):
    """Replace the working calendar. Start must be before end (422 otherwise)."""
    config = SettingsService.update_calendar_config(db, business, payload)
    return _calendar_response(config)


@router.get("/reminders")
async def get_reminder_settings(
        business: Business = Depends(get_current_business)
):
    return SettingsService.reminder_settings(business).model_dump(by_alias=True)


@router.put("/reminders")
async def update_reminder_settings(
        payload: ReminderSettings,
        business: Business = Depends(get_current_business),
        db: Session = Depends(get_db)
):
    """Replace the reminder preferences. Existing queue items are not rescheduled."""
    reminder_settings = SettingsService.update_reminder_settings(db, business, payload)
    return reminder_settings.model_dump(by_alias=True)
