"""
Conflict and Capacity Checking

Detects overlaps between a requested time range and a worker's existing
confirmed appointments, and decides whether a group appointment still has
room for more participants.

Overlap uses half-open intervals: existing.start < end AND existing.end > start,
so back-to-back appointments never conflict.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from booking.models.appointment import Appointment
from booking.models.service import Service
from booking.scheduling.errors import SchedulingError, SchedulingErrorKind, scheduling_error


def intervals_overlap(start1: datetime, end1: datetime, start2: datetime, end2: datetime) -> bool:
    return start1 < end2 and start2 < end1


@dataclass
class ConflictResult:
    error: Optional[SchedulingError] = None
    group_appointment: Optional[Appointment] = None
    overlapping: List[Appointment] = field(default_factory=list)

    @property
    def has_conflict(self) -> bool:
        return self.error is not None


@dataclass
class CapacityDecision:
    accepted: bool
    waitlisted: bool = False
    error: Optional[SchedulingError] = None
    available: int = 0
    meets_minimum: bool = True


def find_overlapping_appointments(
        db: Session,
        business_id,
        worker_id,
        start: datetime,
        end: datetime,
        exclude_appointment_id=None,
        lock: bool = False
) -> List[Appointment]:
    """
    Confirmed appointments of a worker overlapping [start, end).

    With lock=True the rows are read FOR UPDATE so that the caller's
    subsequent write happens before any concurrent booking can read them.
    """
    query = db.query(Appointment).filter(
        Appointment.business_id == business_id,
        Appointment.worker_id == worker_id,
        Appointment.status == "confirmed",
        Appointment.start < end,
        Appointment.end > start,
    )

    if exclude_appointment_id:
        query = query.filter(Appointment.id != exclude_appointment_id)

    if lock:
        query = query.with_for_update(of=Appointment)

    return query.order_by(Appointment.start.asc()).all()


def check_conflict(
        db: Session,
        business_id,
        worker_id,
        start: datetime,
        end: datetime,
        service: Service,
        exclude_appointment_id=None,
        lock: bool = False
) -> ConflictResult:
    """
    Decide whether [start, end) is free for the worker.

    For a group service, a confirmed group appointment of the same service
    in exactly the same slot is not a conflict: it is returned as
    ``group_appointment`` so the caller can join it after a capacity check.
    """
    overlapping = find_overlapping_appointments(
        db, business_id, worker_id, start, end,
        exclude_appointment_id=exclude_appointment_id,
        lock=lock,
    )

    group_appointment = None
    if service.is_group:
        group_appointment = next(
            (
                appt for appt in overlapping
                if appt.is_group_appointment
                and appt.service_id == service.id
                and appt.start == start
                and appt.end == end
            ),
            None,
        )

    blocking = [appt for appt in overlapping if appt is not group_appointment]
    if blocking:
        conflict = blocking[0]
        return ConflictResult(
            error=scheduling_error(
                SchedulingErrorKind.SLOT_CONFLICT,
                appointment_id=str(conflict.id),
                start=conflict.start.isoformat(),
                end=conflict.end.isoformat(),
            ),
            overlapping=overlapping,
        )

    return ConflictResult(group_appointment=group_appointment, overlapping=overlapping)


def check_group_capacity(
        current_participants: int,
        service: Service,
        requested: int = 1
) -> CapacityDecision:
    """Capacity decision for adding ``requested`` participants to a group slot."""
    max_capacity = service.max_capacity or 1
    current = current_participants or 0
    available = max(0, max_capacity - current)

    if current + requested <= max_capacity:
        return CapacityDecision(
            accepted=True,
            available=available - requested,
            meets_minimum=service.min_capacity is None or current + requested >= service.min_capacity,
        )

    if service.allow_waitlist:
        return CapacityDecision(
            accepted=False,
            waitlisted=True,
            available=available,
            meets_minimum=service.min_capacity is None or current >= service.min_capacity,
        )

    return CapacityDecision(
        accepted=False,
        error=scheduling_error(
            SchedulingErrorKind.CAPACITY_EXCEEDED,
            max_capacity=max_capacity,
            current_participants=current,
        ),
        available=available,
        meets_minimum=service.min_capacity is None or current >= service.min_capacity,
    )
