import pytest
from pydantic import ValidationError

from booking.schemas.calendar import DEFAULT_REMINDER_MESSAGE, ReminderSettings, WorkingCalendarConfig
from booking.services.settings.settings_service import SettingsService


def test_stored_calendar_is_resolved(business):
    config = SettingsService.calendar_config(business)
    assert config.working_days == {0, 1, 2, 3, 4}
    assert config.working_hours.start == "09:00"
    assert config.slot_gap_minutes == 30


def test_missing_settings_use_defaults(db, business):
    business.calendar_settings = None
    business.notification_settings = None
    db.commit()

    config = SettingsService.calendar_config(business)
    reminders = SettingsService.reminder_settings(business)

    assert config == WorkingCalendarConfig()
    assert reminders.enabled
    assert reminders.days_before == [1]
    assert reminders.reminder_message == DEFAULT_REMINDER_MESSAGE


def test_invalid_blob_falls_back_to_defaults(db, business):
    business.calendar_settings = {"workingDays": [9], "timeSlotGap": -5}
    db.commit()

    assert SettingsService.calendar_config(business) == WorkingCalendarConfig()


def test_legacy_top_level_message_is_used(db, business):
    business.notification_settings = {
        "reminders": {"daysBefore": [2]},
        "reminderMessage": "See you at {{time}}",
    }
    db.commit()

    reminders = SettingsService.reminder_settings(business)
    assert reminders.days_before == [2]
    assert reminders.reminder_message == "See you at {{time}}"


def test_update_calendar_persists_camel_case_blob(db, business):
    config = WorkingCalendarConfig.model_validate({
        "workingDays": [1, 2, 3],
        "workingHours": {"start": "08:00", "end": "12:00"},
        "timeSlotGap": 15,
    })

    saved = SettingsService.update_calendar_config(db, business, config)

    assert business.calendar_settings["workingHours"] == {"start": "08:00", "end": "12:00"}
    assert business.calendar_settings["timeSlotGap"] == 15
    assert SettingsService.get_calendar_config(db, business.id) == saved


def test_update_reminders_keeps_other_notification_keys(db, business):
    business.notification_settings = {"reminders": {}, "reminderMessage": "old", "digest": True}
    db.commit()

    SettingsService.update_reminder_settings(db, business, ReminderSettings(days_before=[0, 2]))

    assert business.notification_settings["digest"] is True
    assert "reminderMessage" not in business.notification_settings
    assert business.notification_settings["reminders"]["daysBefore"] == [0, 2]


def test_reminder_settings_validation():
    with pytest.raises(ValidationError):
        ReminderSettings(default_time="nine")
    with pytest.raises(ValidationError):
        ReminderSettings(days_before=[-1])
    assert ReminderSettings(days_before=[3, 1, 1]).days_before == [1, 3]
