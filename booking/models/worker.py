# booking/models/worker.py
"""Worker (staff member) model and the services each worker can perform"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Table
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from booking.models.base import Base


worker_services = Table(
    "worker_services",
    Base.metadata,
    Column("worker_id", UUID(as_uuid=True), ForeignKey("workers.id", ondelete="CASCADE"), primary_key=True),
    Column("service_id", UUID(as_uuid=True), ForeignKey("services.id", ondelete="CASCADE"), primary_key=True),
)


class Worker(Base):
    __tablename__ = "workers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(
        UUID(as_uuid=True),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    name = Column(String(200), nullable=False)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    services = relationship("Service", secondary=worker_services, lazy="selectin")

    def __repr__(self):
        return f"<Worker(id={self.id}, name={self.name})>"

    def can_provide(self, service_id) -> bool:
        return any(service.id == service_id for service in self.services)
