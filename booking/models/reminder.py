# booking/models/reminder.py
"""Reminder queue - one row per (appointment, channel, days_before) notification"""
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from booking.models.base import Base
import uuid


REMINDER_CHANNELS = ("sms", "whatsapp")
REMINDER_STATUSES = ("pending", "sent", "cancelled", "failed")


class ReminderQueueItem(Base):
    __tablename__ = "reminder_queue"
    __table_args__ = (
        Index("idx_reminder_queue_status_scheduled", "status", "scheduled_for"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    appointment_id = Column(
        UUID(as_uuid=True),
        ForeignKey("appointments.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False)

    scheduled_for = Column(DateTime, nullable=False)  # tenant-local
    channel = Column(String(20), nullable=False)  # sms, whatsapp
    days_before = Column(Integer, nullable=False)
    status = Column(String(20), default="pending", nullable=False)  # pending, sent, cancelled, failed

    sent_at = Column(DateTime, nullable=True)
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<ReminderQueueItem(id={self.id}, appointment_id={self.appointment_id}, status={self.status})>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "appointment_id": str(self.appointment_id),
            "scheduled_for": self.scheduled_for.isoformat(),
            "channel": self.channel,
            "days_before": self.days_before,
            "status": self.status,
            "sent_at": self.sent_at.isoformat() if self.sent_at else None,
            "error_message": self.error_message,
        }
