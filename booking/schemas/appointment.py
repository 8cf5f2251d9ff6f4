"""
Pydantic schemas for appointment requests.

Times without an offset are read as tenant wall-clock time. Times that
carry an offset are converted into the tenant's timezone by the service
layer, which knows the tenant.
"""
from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class AppointmentCreate(BaseModel):
    """Schema for booking a new appointment"""
    customer_id: UUID
    service_id: UUID
    worker_id: UUID
    start: datetime = Field(..., description="Start time (ISO 8601); tenant-local when no offset is given")
    end: datetime = Field(..., description="End time (ISO 8601); tenant-local when no offset is given")
    # Dashboard bookings are confirmed unless the caller asks for pending
    status: Literal["confirmed", "pending"] = "confirmed"


class AppointmentUpdate(BaseModel):
    """
    Schema for editing an appointment.
    All fields are optional - only send what you want to change.
    """
    service_id: Optional[UUID] = None
    worker_id: Optional[UUID] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    status: Optional[Literal["confirmed", "pending", "cancelled"]] = None


class RescheduleRequest(BaseModel):
    """A customer's request to move an appointment, awaiting staff review"""
    requested_start: datetime = Field(..., description="Proposed start time (ISO 8601)")
    requested_end: datetime = Field(..., description="Proposed end time (ISO 8601)")


class RescheduleRejection(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class ParticipantCreate(BaseModel):
    customer_id: UUID
