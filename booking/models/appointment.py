# booking/models/appointment.py
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, CheckConstraint, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from booking.models.base import Base
import uuid


APPOINTMENT_STATUSES = ("confirmed", "pending", "cancelled")
PARTICIPANT_STATUSES = ("confirmed", "waitlist", "cancelled")
RESCHEDULE_STATUSES = ("pending", "approved", "rejected")


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        CheckConstraint('"end" > start', name="check_appointment_end_after_start"),
        CheckConstraint("current_participants >= 0", name="check_appointment_participants"),
        Index("idx_appointments_worker_window", "business_id", "worker_id", "start", "end"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # References
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id"), nullable=False)
    service_id = Column(UUID(as_uuid=True), ForeignKey("services.id"), nullable=False)
    worker_id = Column(UUID(as_uuid=True), ForeignKey("workers.id"), nullable=False)

    # Tenant-local wall clock times
    start = Column(DateTime, nullable=False)
    end = Column(DateTime, nullable=False)

    status = Column(String(20), default="confirmed", nullable=False)  # confirmed, pending, cancelled

    # Group bookings
    is_group_appointment = Column(Boolean, default=False, nullable=False)
    current_participants = Column(Integer, default=1, nullable=False)

    # Optimistic concurrency guard for participant counts and reschedules
    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    cancelled_at = Column(DateTime, nullable=True)

    # Customer reschedule request awaiting staff review; the booked slot is unchanged until approval
    reschedule_status = Column(String(20), nullable=True)  # pending, approved, rejected
    requested_start = Column(DateTime, nullable=True)
    requested_end = Column(DateTime, nullable=True)
    reschedule_requested_at = Column(DateTime, nullable=True)
    reschedule_rejection_reason = Column(String(500), nullable=True)

    service = relationship("Service")
    worker = relationship("Worker")
    customer = relationship("Customer")
    participants = relationship(
        "AppointmentParticipant",
        back_populates="appointment",
        cascade="all, delete-orphan",
        order_by="AppointmentParticipant.joined_at",
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Appointment(id={self.id}, worker_id={self.worker_id}, start={self.start}, status={self.status})>"

    @property
    def max_capacity(self):
        if self.service is None:
            return None
        return self.service.max_capacity

    def reschedule_to_dict(self):
        if self.reschedule_status is None:
            return None
        return {
            "status": self.reschedule_status,
            "requested_start": self.requested_start.isoformat() if self.requested_start else None,
            "requested_end": self.requested_end.isoformat() if self.requested_end else None,
            "requested_at": self.reschedule_requested_at.isoformat() if self.reschedule_requested_at else None,
            "rejection_reason": self.reschedule_rejection_reason,
        }

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            "id": str(self.id),
            "business_id": str(self.business_id),
            "customer_id": str(self.customer_id),
            "customer": self.customer.name if self.customer else None,
            "service_id": str(self.service_id),
            "service": self.service.name if self.service else None,
            "worker_id": str(self.worker_id),
            "worker": self.worker.name if self.worker else None,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "status": self.status,
            "is_group_appointment": self.is_group_appointment,
            "current_participants": self.current_participants,
            "max_capacity": self.max_capacity,
            "reschedule": self.reschedule_to_dict(),
        }


class AppointmentParticipant(Base):
    """A customer attending a group appointment"""
    __tablename__ = "appointment_participants"
    __table_args__ = (
        UniqueConstraint("appointment_id", "customer_id", name="uq_appointment_participant"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    appointment_id = Column(
        UUID(as_uuid=True),
        ForeignKey("appointments.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(20), default="confirmed", nullable=False)  # confirmed, waitlist, cancelled
    joined_at = Column(DateTime, nullable=False)

    appointment = relationship("Appointment", back_populates="participants")

    def to_dict(self):
        return {
            "id": str(self.id),
            "appointment_id": str(self.appointment_id),
            "customer_id": str(self.customer_id),
            "status": self.status,
            "joined_at": self.joined_at.isoformat() if self.joined_at else None,
        }
