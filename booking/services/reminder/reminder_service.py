# booking/services/reminder/reminder_service.py
"""
Reminder queue management

Scheduling, cancelling and dispatching appointment reminders.

Item lifecycle:
    pending -> sent       delivered by the dispatch job
    pending -> failed     delivery error, never retried automatically
    pending -> cancelled  appointment cancelled, deleted or rescheduled
"""
import logging
from datetime import datetime, timedelta
from typing import Dict, List

from sqlalchemy.orm import Session

from booking.models.appointment import Appointment
from booking.models.business import Business
from booking.models.customer import Customer
from booking.models.reminder import ReminderQueueItem
from booking.schemas.calendar import ReminderSettings
from booking.scheduling.errors import DeliveryError, SchedulingServiceError
from booking.services.reminder.template import render_reminder
from booking.services.settings.settings_service import SettingsService

logger = logging.getLogger(__name__)


class ReminderService:
    """Handles the reminder queue"""

    @staticmethod
    def calculate_scheduled_time(
            appointment_start: datetime,
            days_before: int,
            default_time_minutes: int
    ) -> datetime:
        """Appointment start moved back ``days_before`` days, at the tenant's default reminder time"""
        scheduled = appointment_start - timedelta(days=days_before)
        return scheduled.replace(
            hour=default_time_minutes // 60,
            minute=default_time_minutes % 60,
            second=0,
            microsecond=0,
        )

    @staticmethod
    def reminder_recipients(appointment: Appointment) -> List:
        """Customer ids that should be reminded about an appointment"""
        if appointment.is_group_appointment:
            return [p.customer_id for p in appointment.participants if p.status == "confirmed"]
        return [appointment.customer_id]

    @staticmethod
    def schedule_reminders(
            db: Session,
            appointment: Appointment,
            settings: ReminderSettings,
            now: datetime
    ) -> List[ReminderQueueItem]:
        """
        Queue reminders for a confirmed appointment.

        Any pending reminders for the appointment are cancelled first, so
        calling this after a reschedule regenerates them from the new start.
        Reminders whose time is not strictly after ``now`` are skipped.
        The caller commits.
        """
        if not settings.enabled:
            logger.info(f"[Reminders] Reminders disabled for business {appointment.business_id}")
            return []

        ReminderService.cancel_reminders(db, appointment.id)

        if appointment.status != "confirmed":
            logger.info(f"[Reminders] Appointment {appointment.id} is not confirmed, skipping reminders")
            return []

        channels = []
        if settings.sms_enabled:
            channels.append("sms")
        if settings.whatsapp_enabled:
            channels.append("whatsapp")

        items = []
        for days_before in settings.days_before:
            scheduled_for = ReminderService.calculate_scheduled_time(
                appointment.start, days_before, settings.default_time_minutes
            )
            if scheduled_for <= now:
                continue

            for customer_id in ReminderService.reminder_recipients(appointment):
                for channel in channels:
                    items.append(ReminderQueueItem(
                        appointment_id=appointment.id,
                        business_id=appointment.business_id,
                        customer_id=customer_id,
                        scheduled_for=scheduled_for,
                        channel=channel,
                        days_before=days_before,
                        status="pending",
                    ))

        if items:
            db.add_all(items)
            db.flush()
            logger.info(f"[Reminders] Scheduled {len(items)} reminders for appointment {appointment.id}")

        return items

    @staticmethod
    def cancel_reminders(db: Session, appointment_id) -> int:
        """Move every pending reminder of an appointment to cancelled. The caller commits."""
        pending = db.query(ReminderQueueItem).filter(
            ReminderQueueItem.appointment_id == appointment_id,
            ReminderQueueItem.status == "pending"
        ).all()

        for item in pending:
            item.status = "cancelled"

        if pending:
            db.flush()
            logger.info(f"[Reminders] Cancelled {len(pending)} reminders for appointment {appointment_id}")

        return len(pending)

    @staticmethod
    def list_reminders(db: Session, appointment_id) -> List[ReminderQueueItem]:
        return db.query(ReminderQueueItem).filter(
            ReminderQueueItem.appointment_id == appointment_id
        ).order_by(ReminderQueueItem.scheduled_for.asc()).all()

    @staticmethod
    def process_reminder_queue(
            db: Session,
            messaging,
            now: datetime,
            batch_size: int = 50,
            business_id=None
    ) -> Dict[str, int]:
        """
        Dispatch due reminders.

        Picks pending items with scheduled_for <= now, oldest first. Items
        whose appointment is gone or no longer confirmed are cancelled; the
        rest are sent and marked sent or failed. Each item is committed on
        its own so one bad row does not roll back the batch.
        When business_id is given only that tenant's queue is read.
        """
        stats = {"processed": 0, "sent": 0, "failed": 0, "cancelled": 0}

        query = db.query(ReminderQueueItem).filter(
            ReminderQueueItem.status == "pending",
            ReminderQueueItem.scheduled_for <= now
        )
        if business_id is not None:
            query = query.filter(ReminderQueueItem.business_id == business_id)

        due = query.order_by(ReminderQueueItem.scheduled_for.asc()).limit(batch_size).all()

        if not due:
            logger.info("[Reminders] No pending reminders to process")
            return stats

        logger.info(f"[Reminders] Processing {len(due)} reminders")

        for item in due:
            stats["processed"] += 1
            appointment = db.get(Appointment, item.appointment_id)

            if appointment is None or appointment.status != "confirmed":
                item.status = "cancelled"
                db.commit()
                stats["cancelled"] += 1
                continue

            try:
                ReminderService._deliver(db, messaging, item, appointment)
                item.status = "sent"
                item.sent_at = now
                item.error_message = None
                stats["sent"] += 1
                logger.info(f"[Reminders] Sent {item.channel} reminder for appointment {item.appointment_id}")
            except SchedulingServiceError as e:
                item.status = "failed"
                item.error_message = str(e)
                stats["failed"] += 1
                logger.error(f"[Reminders] Failed to send reminder {item.id}: {e}")
            except Exception as e:
                item.status = "failed"
                item.error_message = str(e) or type(e).__name__
                stats["failed"] += 1
                logger.exception(f"[Reminders] Error processing reminder {item.id}")

            db.commit()

        return stats

    @staticmethod
    def _deliver(db: Session, messaging, item: ReminderQueueItem, appointment: Appointment) -> None:
        customer = db.get(Customer, item.customer_id)
        if customer is None or not customer.phone:
            raise DeliveryError(f"Customer {item.customer_id} has no phone number")

        business = db.get(Business, appointment.business_id)
        settings = SettingsService.reminder_settings(business)

        body = render_reminder(
            settings.reminder_message,
            service_name=appointment.service.name if appointment.service else "",
            start=appointment.start,
            worker_name=appointment.worker.name if appointment.worker else "",
            business_name=business.name if business else "",
            personal_addition=settings.personal_addition,
        )
        messaging.send(item.channel, customer.phone, body)
