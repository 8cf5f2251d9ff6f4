# ============================================================================
# FILE: booking/api/v1/dashboard/appointments.py
# Tenant-scoped endpoints - thin HTTP layer
# ============================================================================
from fastapi import APIRouter, Depends, HTTPException, Query, Path, status
from sqlalchemy.orm import Session
from datetime import date
from typing import Optional
from uuid import UUID

from booking.api.dependencies import get_request_context
from booking.api.errors import raise_for_result
from booking.config.database import get_db
from booking.core.context import RequestContext
from booking.schemas.appointment import (
    AppointmentCreate,
    AppointmentUpdate,
    ParticipantCreate,
    RescheduleRejection,
    RescheduleRequest
)
from booking.services.appointment.appointment_query_service import AppointmentQueryService
from booking.services.appointment.appointment_service import AppointmentService, BookingResult
from booking.services.availability.availability_service import AvailabilityService

router = APIRouter(prefix="/appointments", tags=["appointments"])


def _booking_response(result: BookingResult) -> dict:
    body = {
        "success": True,
        "appointment": result.appointment.to_dict() if result.appointment else None,
    }
    if result.participant is not None:
        body["participant"] = result.participant.to_dict()
        body["waitlisted"] = result.waitlisted
    return body


@router.get("")
async def list_appointments(
        start_date: Optional[date] = Query(None, description="Filter appointments on or after this date"),
        end_date: Optional[date] = Query(None, description="Filter appointments on or before this date"),
        status: Optional[str] = Query(None, description="Filter by status (confirmed, pending, cancelled)"),
        worker_id: Optional[UUID] = Query(None, description="Filter by worker"),
        skip: int = Query(0, ge=0, description="Number of records to skip"),
        limit: int = Query(50, ge=1, le=100, description="Number of records to return"),
        ctx: RequestContext = Depends(get_request_context),
        db: Session = Depends(get_db)
):
    """Get a list of appointments for the current business."""
    return AppointmentQueryService.list_appointments(
        db=db,
        business_id=ctx.business_id,
        start_date=start_date,
        end_date=end_date,
        status=status,
        worker_id=worker_id,
        skip=skip,
        limit=limit
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_appointment(
        payload: AppointmentCreate,
        ctx: RequestContext = Depends(get_request_context),
        db: Session = Depends(get_db)
):
    """
    Book an appointment.
    Group services join the existing group slot when there is one.
    """
    result = raise_for_result(AppointmentService.create_appointment(db, ctx, payload))
    return _booking_response(result)


@router.get("/available")
async def get_available_slots(
        day: date = Query(..., alias="date", description="Day to look up"),
        service_id: UUID = Query(..., description="Service to book"),
        worker_id: Optional[UUID] = Query(None, description="Restrict to one worker"),
        ctx: RequestContext = Depends(get_request_context),
        db: Session = Depends(get_db)
):
    """Free slots for a service on a given day."""
    slots = AvailabilityService.get_available_slots(db, ctx, day, service_id, worker_id)
    if slots is None:
        raise HTTPException(status_code=404, detail="Service not found or inactive")

    return {
        "success": True,
        "date": day.isoformat(),
        "available_slots": slots,
    }


@router.get("/{appointment_id}")
async def get_appointment(
        appointment_id: UUID = Path(..., description="The appointment ID"),
        ctx: RequestContext = Depends(get_request_context),
        db: Session = Depends(get_db)
):
    """Get detailed information about a specific appointment."""
    result = AppointmentQueryService.get_appointment_by_id(
        db=db,
        business_id=ctx.business_id,
        appointment_id=appointment_id
    )

    if not result:
        raise HTTPException(
            status_code=404,
            detail="Appointment not found or you don't have access to it"
        )

    return result


@router.patch("/{appointment_id}")
async def update_appointment(
        payload: AppointmentUpdate,
        appointment_id: UUID = Path(..., description="The appointment ID"),
        ctx: RequestContext = Depends(get_request_context),
        db: Session = Depends(get_db)
):
    """Reschedule, reassign or change the status of an appointment."""
    result = raise_for_result(AppointmentService.update_appointment(db, ctx, appointment_id, payload))
    return _booking_response(result)


@router.post("/{appointment_id}/cancel")
async def cancel_appointment(
        appointment_id: UUID = Path(..., description="The appointment ID"),
        ctx: RequestContext = Depends(get_request_context),
        db: Session = Depends(get_db)
):
    """Cancel an appointment and its pending reminders."""
    result = raise_for_result(AppointmentService.cancel_appointment(db, ctx, appointment_id))
    return _booking_response(result)


@router.delete("/{appointment_id}")
async def delete_appointment(
        appointment_id: UUID = Path(..., description="The appointment ID"),
        ctx: RequestContext = Depends(get_request_context),
        db: Session = Depends(get_db)
):
    """Permanently delete an appointment."""
    raise_for_result(AppointmentService.delete_appointment(db, ctx, appointment_id))
    return {"success": True, "deleted": str(appointment_id)}


@router.post("/{appointment_id}/reschedule-request")
async def request_reschedule(
        payload: RescheduleRequest,
        appointment_id: UUID = Path(..., description="The appointment ID"),
        ctx: RequestContext = Depends(get_request_context),
        db: Session = Depends(get_db)
):
    """
    Ask to move an appointment to a new time.
    The appointment keeps its current slot until the request is approved.
    """
    result = raise_for_result(
        AppointmentService.request_reschedule(db, ctx, appointment_id, payload)
    )
    return _booking_response(result)


@router.post("/{appointment_id}/reschedule/approve")
async def approve_reschedule(
        appointment_id: UUID = Path(..., description="The appointment ID"),
        ctx: RequestContext = Depends(get_request_context),
        db: Session = Depends(get_db)
):
    """Move the appointment to the requested time."""
    result = raise_for_result(AppointmentService.approve_reschedule(db, ctx, appointment_id))
    return _booking_response(result)


@router.post("/{appointment_id}/reschedule/reject")
async def reject_reschedule(
        payload: Optional[RescheduleRejection] = None,
        appointment_id: UUID = Path(..., description="The appointment ID"),
        ctx: RequestContext = Depends(get_request_context),
        db: Session = Depends(get_db)
):
    """Decline a pending reschedule request."""
    reason = payload.reason if payload else None
    result = raise_for_result(
        AppointmentService.reject_reschedule(db, ctx, appointment_id, reason)
    )
    return _booking_response(result)


@router.post("/{appointment_id}/participants", status_code=status.HTTP_201_CREATED)
async def add_participant(
        payload: ParticipantCreate,
        appointment_id: UUID = Path(..., description="The group appointment ID"),
        ctx: RequestContext = Depends(get_request_context),
        db: Session = Depends(get_db)
):
    """Add a customer to a group appointment (or its waitlist)."""
    result = raise_for_result(
        AppointmentService.add_participant(db, ctx, appointment_id, payload.customer_id)
    )
    return _booking_response(result)


@router.delete("/{appointment_id}/participants/{customer_id}")
async def remove_participant(
        appointment_id: UUID = Path(..., description="The group appointment ID"),
        customer_id: UUID = Path(..., description="The participant's customer ID"),
        ctx: RequestContext = Depends(get_request_context),
        db: Session = Depends(get_db)
):
    """Remove a customer from a group appointment."""
    result = raise_for_result(
        AppointmentService.remove_participant(db, ctx, appointment_id, customer_id)
    )
    return _booking_response(result)
