"""
Typed failures for scheduling decisions.

Policy checks return a ``SchedulingError`` (or ``None``) instead of raising,
so callers can map each kind to a response without catching exceptions.
Exceptions are kept for collaborator failures (messaging, storage).
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class SchedulingErrorKind(str, Enum):
    NOT_WORKING_DAY = "not_working_day"
    OUTSIDE_WORKING_HOURS = "outside_working_hours"
    END_OUTSIDE_WORKING_HOURS = "end_outside_working_hours"
    SLOT_CONFLICT = "slot_conflict"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    APPOINTMENT_NOT_FOUND = "appointment_not_found"
    DELIVERY_FAILED = "delivery_failed"

    # Request validation
    INVALID_TIME_RANGE = "invalid_time_range"
    CUSTOMER_NOT_FOUND = "customer_not_found"
    CUSTOMER_BLOCKED = "customer_blocked"
    SERVICE_NOT_FOUND = "service_not_found"
    WORKER_NOT_FOUND = "worker_not_found"
    WORKER_CANNOT_PROVIDE_SERVICE = "worker_cannot_provide_service"
    DURATION_MISMATCH = "duration_mismatch"
    NOT_GROUP_APPOINTMENT = "not_group_appointment"
    ALREADY_PARTICIPANT = "already_participant"

    # Reschedule requests
    RESCHEDULE_SAME_TIME = "reschedule_same_time"
    RESCHEDULE_NOT_PENDING = "reschedule_not_pending"


ERROR_MESSAGES: Dict[SchedulingErrorKind, str] = {
    SchedulingErrorKind.NOT_WORKING_DAY: "The selected date is not a working day",
    SchedulingErrorKind.OUTSIDE_WORKING_HOURS: "Appointment must start within working hours",
    SchedulingErrorKind.END_OUTSIDE_WORKING_HOURS: "Appointment must end within working hours",
    SchedulingErrorKind.SLOT_CONFLICT: "Time slot is already booked",
    SchedulingErrorKind.CAPACITY_EXCEEDED: "This group appointment is full",
    SchedulingErrorKind.APPOINTMENT_NOT_FOUND: "Appointment not found",
    SchedulingErrorKind.DELIVERY_FAILED: "Reminder could not be delivered",
    SchedulingErrorKind.INVALID_TIME_RANGE: "End time must be after start time and start must not be in the past",
    SchedulingErrorKind.CUSTOMER_NOT_FOUND: "Customer not found",
    SchedulingErrorKind.CUSTOMER_BLOCKED: "Cannot create appointment for blocked customer",
    SchedulingErrorKind.SERVICE_NOT_FOUND: "Service not found or inactive",
    SchedulingErrorKind.WORKER_NOT_FOUND: "Worker not found or inactive",
    SchedulingErrorKind.WORKER_CANNOT_PROVIDE_SERVICE: "Worker cannot provide this service",
    SchedulingErrorKind.DURATION_MISMATCH: "Appointment length does not match the service duration",
    SchedulingErrorKind.NOT_GROUP_APPOINTMENT: "This is not a group appointment",
    SchedulingErrorKind.ALREADY_PARTICIPANT: "Customer is already a participant",
    SchedulingErrorKind.RESCHEDULE_SAME_TIME: "Cannot reschedule to the same date and time",
    SchedulingErrorKind.RESCHEDULE_NOT_PENDING: "Reschedule request not found or already processed",
}

HTTP_STATUS: Dict[SchedulingErrorKind, int] = {
    SchedulingErrorKind.NOT_WORKING_DAY: 400,
    SchedulingErrorKind.OUTSIDE_WORKING_HOURS: 400,
    SchedulingErrorKind.END_OUTSIDE_WORKING_HOURS: 400,
    SchedulingErrorKind.SLOT_CONFLICT: 409,
    SchedulingErrorKind.CAPACITY_EXCEEDED: 409,
    SchedulingErrorKind.APPOINTMENT_NOT_FOUND: 404,
    SchedulingErrorKind.DELIVERY_FAILED: 502,
    SchedulingErrorKind.INVALID_TIME_RANGE: 400,
    SchedulingErrorKind.CUSTOMER_NOT_FOUND: 404,
    SchedulingErrorKind.CUSTOMER_BLOCKED: 403,
    SchedulingErrorKind.SERVICE_NOT_FOUND: 404,
    SchedulingErrorKind.WORKER_NOT_FOUND: 404,
    SchedulingErrorKind.WORKER_CANNOT_PROVIDE_SERVICE: 400,
    SchedulingErrorKind.DURATION_MISMATCH: 400,
    SchedulingErrorKind.NOT_GROUP_APPOINTMENT: 400,
    SchedulingErrorKind.ALREADY_PARTICIPANT: 409,
    SchedulingErrorKind.RESCHEDULE_SAME_TIME: 400,
    SchedulingErrorKind.RESCHEDULE_NOT_PENDING: 404,
}


@dataclass(frozen=True)
class SchedulingError:
    kind: SchedulingErrorKind
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def message(self) -> str:
        return ERROR_MESSAGES[self.kind]

    @property
    def status_code(self) -> int:
        return HTTP_STATUS[self.kind]

    def to_dict(self) -> Dict[str, Any]:
        body = {"error": self.kind.value, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


def scheduling_error(kind: SchedulingErrorKind, **details) -> SchedulingError:
    return SchedulingError(kind=kind, details=details)


class SchedulingServiceError(Exception):
    """Base exception for collaborator failures."""

    def __init__(self, message: str, *, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


class DeliveryError(SchedulingServiceError):
    """Raised when the messaging provider rejects or cannot deliver a message."""

    kind = SchedulingErrorKind.DELIVERY_FAILED
