# ===== booking/services/availability/availability_service.py =====
from typing import List, Dict, Optional
from datetime import date, datetime, timedelta
from sqlalchemy.orm import Session
import logging

from booking.core.context import RequestContext
from booking.models.business import Business
from booking.models.service import Service
from booking.models.worker import Worker
from booking.scheduling.clock import MINUTES_PER_DAY
from booking.scheduling.conflicts import check_conflict, check_group_capacity
from booking.scheduling.slots import TimeSlots
from booking.scheduling.window import ends_by_closing, is_working_day
from booking.services.settings.settings_service import SettingsService

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Bookable slots for a service on a given day"""

    @staticmethod
    def get_available_slots(
            db: Session,
            ctx: RequestContext,
            day: date,
            service_id,
            worker_id=None
    ) -> Optional[List[Dict]]:
        """
        Slots from the tenant's working calendar that are still free.

        Returns None when the service does not exist, and an empty list on
        non-working days. A group slot stays available while the existing
        group appointment has capacity left.
        """
        service = db.query(Service).filter(
            Service.id == service_id,
            Service.business_id == ctx.business_id,
            Service.is_active == True
        ).first()
        if not service:
            return None

        config = SettingsService.calendar_config(db.get(Business, ctx.business_id))
        if not is_working_day(day, config):
            logger.info(f"{day.isoformat()} is not a working day for business {ctx.business_id}")
            return []

        workers_query = db.query(Worker).filter(
            Worker.business_id == ctx.business_id,
            Worker.is_active == True
        )
        if worker_id:
            workers_query = workers_query.filter(Worker.id == worker_id)
        workers = [w for w in workers_query.order_by(Worker.name.asc()).all() if w.can_provide(service.id)]

        slots = []
        duration = timedelta(minutes=service.duration)
        day_start = datetime.combine(day, datetime.min.time())

        for worker in workers:
            for minutes in TimeSlots(config).minutes():
                slot_start = day_start + timedelta(minutes=minutes)
                slot_end = slot_start + duration

                if slot_start < ctx.now:
                    continue
                end_minutes = minutes + service.duration
                if end_minutes > MINUTES_PER_DAY or not ends_by_closing(end_minutes, config):
                    continue

                conflict = check_conflict(db, ctx.business_id, worker.id, slot_start, slot_end, service)
                if conflict.has_conflict:
                    continue

                if conflict.group_appointment is not None:
                    decision = check_group_capacity(conflict.group_appointment.current_participants, service)
                    if not decision.accepted:
                        continue
                    capacity_remaining = decision.available + 1
                else:
                    capacity_remaining = service.max_capacity if service.is_group else 1

                slots.append({
                    "start": slot_start.isoformat(),
                    "end": slot_end.isoformat(),
                    "worker_id": str(worker.id),
                    "worker_name": worker.name,
                    "capacity_remaining": capacity_remaining,
                })

        return slots
