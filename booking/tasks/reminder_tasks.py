# booking/tasks/reminder_tasks.py
"""Periodic reminder dispatch"""
import logging

from sqlalchemy import select

from booking.config.celery_config import celery_app
from booking.config.database import get_db
from booking.config.settings import get_settings
from booking.core.context import tenant_now
from booking.models.business import Business
from booking.models.reminder import ReminderQueueItem
from booking.services.reminder.reminder_service import ReminderService
from booking.services.twilio.sms_service import get_messaging_service

logger = logging.getLogger(__name__)


def run_reminder_dispatch(db, messaging=None, batch_size=None) -> dict:
    """
    One dispatch pass over every tenant with pending reminders.

    Reminder times are tenant-local, so "now" is computed per tenant.
    Shared by the Celery task and the cron endpoint.
    """
    settings = get_settings()
    messaging = messaging or get_messaging_service()
    batch_size = batch_size or settings.REMINDER_BATCH_SIZE

    totals = {"processed": 0, "sent": 0, "failed": 0, "cancelled": 0}

    businesses = db.query(Business).filter(
        Business.id.in_(
            select(ReminderQueueItem.business_id).where(ReminderQueueItem.status == "pending")
        )
    ).all()

    for business in businesses:
        stats = ReminderService.process_reminder_queue(
            db,
            messaging,
            tenant_now(business.timezone or settings.DEFAULT_TIMEZONE),
            batch_size=batch_size,
            business_id=business.id,
        )
        for key, value in stats.items():
            totals[key] += value

    return totals


@celery_app.task(name="booking.tasks.reminder_tasks.process_reminders")
def process_reminders():
    """Send due reminders; failed deliveries are recorded and not retried"""
    db = next(get_db())
    try:
        stats = run_reminder_dispatch(db)
        logger.info(f"Reminder dispatch finished: {stats}")
        return stats
    finally:
        db.close()
