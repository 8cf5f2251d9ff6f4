# booking/models/business.py
"""
Business Model - one row per tenant
Calendar and notification preferences are stored as JSON blobs and resolved
into typed configs by SettingsService.
"""
from sqlalchemy import Column, String, Boolean, DateTime, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
import uuid
from booking.models.base import Base


class Business(Base):
    __tablename__ = "businesses"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    phone_number = Column(String(20), nullable=True)

    # System configuration
    timezone = Column(String(50), default="UTC")
    calendar_settings = Column(JSON, default=dict)  # workingDays, workingHours, timeSlotGap, weekStartDay
    notification_settings = Column(JSON, default=dict)  # {"reminders": {...}}

    # Technical fields
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    is_active = Column(Boolean, default=True)

    def __repr__(self):
        return f"<Business(id={self.id}, name={self.name})>"

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            "id": str(self.id),
            "name": self.name,
            "phone_number": self.phone_number,
            "timezone": self.timezone,
            "calendar_settings": self.calendar_settings or {},
            "notification_settings": self.notification_settings or {},
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "is_active": self.is_active,
        }
