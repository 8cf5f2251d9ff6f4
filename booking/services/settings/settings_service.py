# booking/services/settings/settings_service.py
"""Resolves tenant settings blobs into typed configs, and persists updates"""
import logging
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from booking.models.business import Business
from booking.schemas.calendar import ReminderSettings, WorkingCalendarConfig

logger = logging.getLogger(__name__)


class SettingsService:
    """Handles tenant calendar and reminder settings"""

    @staticmethod
    def get_business(db: Session, business_id) -> Optional[Business]:
        return db.query(Business).filter(
            Business.id == business_id,
            Business.is_active == True
        ).first()

    @staticmethod
    def calendar_config(business: Optional[Business]) -> WorkingCalendarConfig:
        """Typed working calendar for a business; defaults when unset or invalid"""
        blob = (business.calendar_settings if business else None) or {}
        try:
            return WorkingCalendarConfig.model_validate(blob)
        except ValidationError as e:
            logger.warning(
                f"Invalid calendar settings for business {business.id if business else None}, "
                f"using defaults: {e.error_count()} errors"
            )
            return WorkingCalendarConfig()

    @staticmethod
    def reminder_settings(business: Optional[Business]) -> ReminderSettings:
        """Typed reminder preferences for a business; defaults when unset or invalid"""
        notifications = (business.notification_settings if business else None) or {}
        blob = dict(notifications.get("reminders") or {})

        # Older tenants keep the template next to the reminders block
        if "reminderMessage" not in blob and notifications.get("reminderMessage"):
            blob["reminderMessage"] = notifications["reminderMessage"]

        try:
            return ReminderSettings.model_validate(blob)
        except ValidationError as e:
            logger.warning(
                f"Invalid reminder settings for business {business.id if business else None}, "
                f"using defaults: {e.error_count()} errors"
            )
            return ReminderSettings()

    @staticmethod
    def get_calendar_config(db: Session, business_id) -> WorkingCalendarConfig:
        return SettingsService.calendar_config(SettingsService.get_business(db, business_id))

    @staticmethod
    def get_reminder_settings(db: Session, business_id) -> ReminderSettings:
        return SettingsService.reminder_settings(SettingsService.get_business(db, business_id))

    @staticmethod
    def update_calendar_config(
            db: Session,
            business: Business,
            config: WorkingCalendarConfig
    ) -> WorkingCalendarConfig:
        business.calendar_settings = config.to_blob()
        db.commit()
        db.refresh(business)
        logger.info(f"Updated calendar settings for business {business.id}")
        return SettingsService.calendar_config(business)

    @staticmethod
    def update_reminder_settings(
            db: Session,
            business: Business,
            reminder_settings: ReminderSettings
    ) -> ReminderSettings:
        notifications = dict(business.notification_settings or {})
        notifications.update(reminder_settings.to_blob())
        notifications.pop("reminderMessage", None)
        business.notification_settings = notifications
        db.commit()
        db.refresh(business)
        logger.info(f"Updated reminder settings for business {business.id}")
        return SettingsService.reminder_settings(business)
