# booking/models/service.py
"""
Service Model - bookable offerings
A group service accepts several participants in the same slot, up to max_capacity.
"""
from sqlalchemy import Column, String, Integer, ForeignKey, Boolean, DateTime, Text, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from booking.models.base import Base


class Service(Base):
    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint(
            "is_group_service = false OR (max_capacity IS NOT NULL AND max_capacity > 1)",
            name="check_group_service_capacity",
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(
        UUID(as_uuid=True),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    # Duration in minutes
    duration = Column(Integer, nullable=False, default=30)

    # Group bookings
    is_group_service = Column(Boolean, default=False, nullable=False)
    max_capacity = Column(Integer, nullable=True)
    min_capacity = Column(Integer, nullable=True)
    allow_waitlist = Column(Boolean, default=False, nullable=False)

    is_active = Column(Boolean, default=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )

    business = relationship("Business")

    def __repr__(self):
        return f"<Service(id={self.id}, name={self.name}, business_id={self.business_id})>"

    @property
    def is_group(self) -> bool:
        """Group semantics only apply when there is room for more than one participant"""
        return bool(self.is_group_service) and (self.max_capacity or 0) > 1

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            "id": str(self.id),
            "business_id": str(self.business_id),
            "name": self.name,
            "description": self.description,
            "duration": self.duration,
            "is_group_service": self.is_group_service,
            "max_capacity": self.max_capacity,
            "min_capacity": self.min_capacity,
            "allow_waitlist": self.allow_waitlist,
            "is_active": self.is_active,
        }
