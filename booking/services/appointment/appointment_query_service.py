# ============================================================================
# booking/services/appointment/appointment_query_service.py
# Pure read logic - no FastAPI dependencies, fully testable
# ============================================================================
from sqlalchemy.orm import Session
from datetime import datetime, date, time, timedelta
from typing import Optional, Dict, Any
from uuid import UUID

from booking.models.appointment import Appointment
from booking.services.reminder.reminder_service import ReminderService


class AppointmentQueryService:
    """Service layer for appointment reads."""

    @staticmethod
    def list_appointments(
            db: Session,
            business_id: UUID,
            start_date: Optional[date] = None,
            end_date: Optional[date] = None,
            status: Optional[str] = None,
            worker_id: Optional[UUID] = None,
            skip: int = 0,
            limit: int = 50
    ) -> Dict[str, Any]:
        """Get paginated list of appointments with filters."""
        query = db.query(Appointment).filter(Appointment.business_id == business_id)

        if start_date:
            query = query.filter(Appointment.start >= datetime.combine(start_date, time.min))
        if end_date:
            query = query.filter(Appointment.start < datetime.combine(end_date + timedelta(days=1), time.min))
        if status:
            query = query.filter(Appointment.status == status)
        if worker_id:
            query = query.filter(Appointment.worker_id == worker_id)

        query = query.order_by(Appointment.start.asc())
        total = query.count()
        appointments = query.offset(skip).limit(limit).all()

        return {
            "business_id": str(business_id),
            "total_appointments": total,
            "page": {
                "skip": skip,
                "limit": limit,
                "total_pages": (total + limit - 1) // limit if total > 0 else 0
            },
            "filters": {
                "start_date": start_date.isoformat() if start_date else None,
                "end_date": end_date.isoformat() if end_date else None,
                "status": status,
                "worker_id": str(worker_id) if worker_id else None,
            },
            "appointments": [appt.to_dict() for appt in appointments]
        }

    @staticmethod
    def get_appointment_by_id(
            db: Session,
            business_id: UUID,
            appointment_id: UUID
    ) -> Optional[Dict[str, Any]]:
        """Get a single appointment with participants and reminders. Returns None if not found."""
        appointment = db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.business_id == business_id
        ).first()

        if not appointment:
            return None

        data = appointment.to_dict()
        data["participants"] = [p.to_dict() for p in appointment.participants]
        data["reminders"] = [r.to_dict() for r in ReminderService.list_reminders(db, appointment.id)]
        data["cancelled_at"] = appointment.cancelled_at.isoformat() if appointment.cancelled_at else None
        return data
