# ============================================================================
# booking/services/appointment/appointment_service.py
# Booking writes - no FastAPI dependencies, fully testable
# ============================================================================
"""
Service for creating and changing appointments.

Every operation takes an explicit RequestContext and returns a
BookingResult. Policy failures (window, conflict, capacity, lookups) come
back as typed errors; only storage and collaborator faults raise.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booking.core.context import RequestContext
from booking.models.appointment import Appointment, AppointmentParticipant
from booking.models.business import Business
from booking.models.customer import Customer
from booking.models.service import Service
from booking.models.worker import Worker
from booking.schemas.appointment import AppointmentCreate, AppointmentUpdate, RescheduleRequest
from booking.scheduling.conflicts import check_conflict, check_group_capacity
from booking.scheduling.errors import SchedulingError, SchedulingErrorKind, scheduling_error
from booking.scheduling.retry import BoundedRetry
from booking.scheduling.window import validate_booking_window
from booking.services.reminder.reminder_service import ReminderService
from booking.services.settings.settings_service import SettingsService

logger = logging.getLogger(__name__)

# Allowed difference between the booked length and the service duration
DURATION_TOLERANCE_MINUTES = 5


@dataclass
class BookingResult:
    appointment: Optional[Appointment] = None
    error: Optional[SchedulingError] = None
    participant: Optional[AppointmentParticipant] = None
    waitlisted: bool = False
    joined_existing: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, kind: SchedulingErrorKind, **details) -> "BookingResult":
        return cls(error=scheduling_error(kind, **details))


class AppointmentService:
    """Handles appointment write operations"""

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @staticmethod
    def get_appointment(db: Session, ctx: RequestContext, appointment_id) -> Optional[Appointment]:
        return db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.business_id == ctx.business_id
        ).first()

    @staticmethod
    def _load_customer(db: Session, ctx: RequestContext, customer_id) -> Tuple[Optional[Customer], Optional[SchedulingError]]:
        customer = db.query(Customer).filter(
            Customer.id == customer_id,
            Customer.business_id == ctx.business_id
        ).first()
        if not customer:
            return None, scheduling_error(SchedulingErrorKind.CUSTOMER_NOT_FOUND)
        if customer.is_blocked:
            return None, scheduling_error(SchedulingErrorKind.CUSTOMER_BLOCKED)
        return customer, None

    @staticmethod
    def _load_service(db: Session, ctx: RequestContext, service_id) -> Tuple[Optional[Service], Optional[SchedulingError]]:
        service = db.query(Service).filter(
            Service.id == service_id,
            Service.business_id == ctx.business_id,
            Service.is_active == True
        ).first()
        if not service:
            return None, scheduling_error(SchedulingErrorKind.SERVICE_NOT_FOUND)
        return service, None

    @staticmethod
    def _load_worker(db: Session, ctx: RequestContext, worker_id, service: Service) -> Optional[SchedulingError]:
        worker = db.query(Worker).filter(
            Worker.id == worker_id,
            Worker.business_id == ctx.business_id,
            Worker.is_active == True
        ).first()
        if not worker:
            return scheduling_error(SchedulingErrorKind.WORKER_NOT_FOUND)
        if not worker.can_provide(service.id):
            return scheduling_error(SchedulingErrorKind.WORKER_CANNOT_PROVIDE_SERVICE)
        return None

    @staticmethod
    def _check_duration(service: Service, start: datetime, end: datetime) -> Optional[SchedulingError]:
        booked_minutes = (end - start).total_seconds() / 60
        if abs(booked_minutes - service.duration) > DURATION_TOLERANCE_MINUTES:
            return scheduling_error(
                SchedulingErrorKind.DURATION_MISMATCH,
                expected_minutes=service.duration,
                booked_minutes=round(booked_minutes),
            )
        return None

    @staticmethod
    def _validate_slot(
            db: Session,
            ctx: RequestContext,
            service: Service,
            worker_id,
            start: datetime,
            end: datetime
    ) -> Optional[SchedulingError]:
        """Worker, duration and working-calendar checks; runs before any write"""
        error = AppointmentService._load_worker(db, ctx, worker_id, service)
        if error:
            return error

        error = AppointmentService._check_duration(service, start, end)
        if error:
            return error

        config = SettingsService.calendar_config(db.get(Business, ctx.business_id))
        return validate_booking_window(start, end, config)

    @staticmethod
    def _lock_worker(db: Session, worker_id) -> Optional[SchedulingError]:
        """Lock the worker row so writes to one worker's calendar run one at a time, until commit or rollback"""
        worker = db.query(Worker).filter(Worker.id == worker_id).with_for_update().first()
        if worker is None:
            return scheduling_error(SchedulingErrorKind.WORKER_NOT_FOUND)
        return None

    @staticmethod
    def _recheck_after_write(
            db: Session,
            ctx: RequestContext,
            appointment: Appointment,
            service: Service
    ) -> Optional[SchedulingError]:
        """Any other confirmed booking now sharing the slot means a concurrent writer won"""
        if appointment.status != "confirmed":
            return None
        return AppointmentService._slot_taken(
            db, ctx, appointment.worker_id, appointment.start, appointment.end, service, appointment.id
        )

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @staticmethod
    def create_appointment(db: Session, ctx: RequestContext, data: AppointmentCreate) -> BookingResult:
        """Book an appointment, or join the matching group appointment"""
        start, end = ctx.wall_clock(data.start), ctx.wall_clock(data.end)

        if end <= start or start < ctx.now:
            return BookingResult.failure(SchedulingErrorKind.INVALID_TIME_RANGE)

        customer, error = AppointmentService._load_customer(db, ctx, data.customer_id)
        if error:
            return BookingResult(error=error)

        service, error = AppointmentService._load_service(db, ctx, data.service_id)
        if error:
            return BookingResult(error=error)

        error = AppointmentService._validate_slot(db, ctx, service, data.worker_id, start, end)
        if error:
            return BookingResult(error=error)

        def attempt():
            error = AppointmentService._lock_worker(db, data.worker_id)
            if error:
                return error

            conflict = check_conflict(
                db, ctx.business_id, data.worker_id, start, end, service, lock=True
            )
            if conflict.has_conflict:
                return conflict.error

            if conflict.group_appointment is not None:
                return AppointmentService._join_group(
                    db, ctx, conflict.group_appointment, service, customer.id
                )

            appointment = Appointment(
                business_id=ctx.business_id,
                customer_id=customer.id,
                service_id=service.id,
                worker_id=data.worker_id,
                start=start,
                end=end,
                status=data.status,
                is_group_appointment=service.is_group,
                current_participants=1,
            )
            db.add(appointment)

            participant = None
            if service.is_group:
                participant = AppointmentParticipant(
                    appointment=appointment,
                    customer_id=customer.id,
                    status="confirmed",
                    joined_at=ctx.now,
                )
                db.add(participant)

            db.flush()
            error = AppointmentService._recheck_after_write(db, ctx, appointment, service)
            if error:
                return error
            return BookingResult(appointment=appointment, participant=participant)

        def recheck():
            return check_conflict(db, ctx.business_id, data.worker_id, start, end, service).error

        outcome = BoundedRetry().run(db, attempt, recheck)
        if not outcome.ok:
            logger.info(f"Booking rejected for business {ctx.business_id}: {outcome.error.kind.value}")
            return BookingResult(error=outcome.error)

        result = outcome.result
        logger.info(
            f"{'Joined' if result.joined_existing else 'Created'} appointment {result.appointment.id} "
            f"for customer {customer.id} (waitlisted={result.waitlisted})"
        )

        if not result.waitlisted:
            AppointmentService._refresh_reminders(db, ctx, result.appointment)

        return result

    @staticmethod
    def _join_group(
            db: Session,
            ctx: RequestContext,
            appointment: Appointment,
            service: Service,
            customer_id
    ):
        """Add a customer to a group appointment, or to its waitlist when full"""
        existing = db.query(AppointmentParticipant).filter(
            AppointmentParticipant.appointment_id == appointment.id,
            AppointmentParticipant.customer_id == customer_id
        ).first()

        if existing and existing.status != "cancelled":
            return scheduling_error(SchedulingErrorKind.ALREADY_PARTICIPANT)

        decision = check_group_capacity(appointment.current_participants, service)
        if decision.error:
            return decision.error

        status = "confirmed" if decision.accepted else "waitlist"
        if existing:
            existing.status = status
            existing.joined_at = ctx.now
            participant = existing
        else:
            participant = AppointmentParticipant(
                customer_id=customer_id,
                status=status,
                joined_at=ctx.now,
            )
            appointment.participants.append(participant)

        if decision.accepted:
            # Version-checked UPDATE; a concurrent join raises StaleDataError
            appointment.current_participants = appointment.current_participants + 1

        db.flush()

        if not decision.meets_minimum:
            logger.info(
                f"Group appointment {appointment.id} below minimum capacity "
                f"({appointment.current_participants}/{service.min_capacity})"
            )

        return BookingResult(
            appointment=appointment,
            participant=participant,
            waitlisted=not decision.accepted,
            joined_existing=True,
        )

    # ------------------------------------------------------------------
    # Update / cancel / delete
    # ------------------------------------------------------------------

    @staticmethod
    def update_appointment(
            db: Session,
            ctx: RequestContext,
            appointment_id,
            data: AppointmentUpdate
    ) -> BookingResult:
        """Reschedule, reassign or change the status of an appointment"""
        appointment = AppointmentService.get_appointment(db, ctx, appointment_id)
        if not appointment:
            return BookingResult.failure(SchedulingErrorKind.APPOINTMENT_NOT_FOUND)

        if data.status == "cancelled":
            return AppointmentService.cancel_appointment(db, ctx, appointment_id)

        service_id = data.service_id or appointment.service_id
        worker_id = data.worker_id or appointment.worker_id
        start = ctx.wall_clock(data.start) or appointment.start
        end = ctx.wall_clock(data.end) or appointment.end
        new_status = data.status or appointment.status

        schedule_changed = (
            service_id != appointment.service_id
            or worker_id != appointment.worker_id
            or start != appointment.start
            or end != appointment.end
        )
        status_changed = new_status != appointment.status

        if not schedule_changed and not status_changed:
            return BookingResult(appointment=appointment)

        if end <= start or (start != appointment.start and start < ctx.now):
            return BookingResult.failure(SchedulingErrorKind.INVALID_TIME_RANGE)

        service, error = AppointmentService._load_service(db, ctx, service_id)
        if error:
            return BookingResult(error=error)

        if schedule_changed:
            error = AppointmentService._validate_slot(db, ctx, service, worker_id, start, end)
            if error:
                return BookingResult(error=error)

        def attempt():
            if new_status == "confirmed":
                error = AppointmentService._lock_worker(db, worker_id) or AppointmentService._slot_taken(
                    db, ctx, worker_id, start, end, service, appointment_id, lock=True
                )
                if error:
                    return error

            appt = AppointmentService.get_appointment(db, ctx, appointment_id)
            if appt is None:
                return scheduling_error(SchedulingErrorKind.APPOINTMENT_NOT_FOUND)

            appt.service_id = service.id
            appt.worker_id = worker_id
            appt.start = start
            appt.end = end
            appt.status = new_status
            db.flush()
            error = AppointmentService._recheck_after_write(db, ctx, appt, service)
            if error:
                return error
            return BookingResult(appointment=appt)

        def recheck():
            if new_status != "confirmed":
                return None
            return AppointmentService._slot_taken(db, ctx, worker_id, start, end, service, appointment_id)

        outcome = BoundedRetry().run(db, attempt, recheck)
        if not outcome.ok:
            return BookingResult(error=outcome.error)

        updated = outcome.result.appointment
        logger.info(f"Updated appointment {updated.id} (rescheduled={schedule_changed}, status={updated.status})")

        AppointmentService._refresh_reminders(db, ctx, updated)
        return outcome.result

    @staticmethod
    def cancel_appointment(db: Session, ctx: RequestContext, appointment_id) -> BookingResult:
        """Cancel an appointment and every pending reminder it has"""

        def attempt():
            appointment = AppointmentService.get_appointment(db, ctx, appointment_id)
            if not appointment:
                return scheduling_error(SchedulingErrorKind.APPOINTMENT_NOT_FOUND)

            if appointment.status != "cancelled":
                appointment.status = "cancelled"
                appointment.cancelled_at = ctx.now

            ReminderService.cancel_reminders(db, appointment.id)
            db.flush()
            return BookingResult(appointment=appointment)

        outcome = BoundedRetry().run(db, attempt)
        if not outcome.ok:
            return BookingResult(error=outcome.error)

        logger.info(f"Cancelled appointment {appointment_id}")
        return outcome.result

    @staticmethod
    def delete_appointment(db: Session, ctx: RequestContext, appointment_id) -> BookingResult:
        """Hard delete (admin only); pending reminders are cancelled first"""
        appointment = AppointmentService.get_appointment(db, ctx, appointment_id)
        if not appointment:
            return BookingResult.failure(SchedulingErrorKind.APPOINTMENT_NOT_FOUND)

        ReminderService.cancel_reminders(db, appointment.id)
        db.delete(appointment)
        db.commit()

        logger.info(f"Deleted appointment {appointment_id}")
        return BookingResult()

    # ------------------------------------------------------------------
    # Customer reschedule requests
    # ------------------------------------------------------------------

    @staticmethod
    def request_reschedule(
            db: Session,
            ctx: RequestContext,
            appointment_id,
            data: RescheduleRequest
    ) -> BookingResult:
        """
        Record a customer's request to move an appointment.

        The appointment keeps its current slot until staff approve. The
        requested slot must pass the same checks as a direct reschedule at
        request time, and is checked again on approval. A new request
        replaces any earlier one.
        """
        appointment = AppointmentService.get_appointment(db, ctx, appointment_id)
        if not appointment or appointment.status == "cancelled":
            return BookingResult.failure(SchedulingErrorKind.APPOINTMENT_NOT_FOUND)

        start, end = ctx.wall_clock(data.requested_start), ctx.wall_clock(data.requested_end)

        if start == appointment.start:
            return BookingResult.failure(SchedulingErrorKind.RESCHEDULE_SAME_TIME)

        if end <= start or start < ctx.now:
            return BookingResult.failure(SchedulingErrorKind.INVALID_TIME_RANGE)

        service = appointment.service
        error = AppointmentService._validate_slot(db, ctx, service, appointment.worker_id, start, end)
        if error:
            return BookingResult(error=error)

        error = AppointmentService._slot_taken(db, ctx, appointment.worker_id, start, end, service, appointment_id)
        if error:
            return BookingResult(error=error)

        def attempt():
            appt = AppointmentService.get_appointment(db, ctx, appointment_id)
            if appt is None:
                return scheduling_error(SchedulingErrorKind.APPOINTMENT_NOT_FOUND)

            appt.reschedule_status = "pending"
            appt.requested_start = start
            appt.requested_end = end
            appt.reschedule_requested_at = ctx.now
            appt.reschedule_rejection_reason = None
            db.flush()
            return BookingResult(appointment=appt)

        outcome = BoundedRetry().run(db, attempt)
        if not outcome.ok:
            return BookingResult(error=outcome.error)

        logger.info(f"Reschedule requested for appointment {appointment_id}: {start.isoformat()} - {end.isoformat()}")
        return outcome.result

    @staticmethod
    def approve_reschedule(db: Session, ctx: RequestContext, appointment_id) -> BookingResult:
        """Move the appointment to the requested slot and confirm it"""
        appointment = AppointmentService.get_appointment(db, ctx, appointment_id)
        if not appointment:
            return BookingResult.failure(SchedulingErrorKind.APPOINTMENT_NOT_FOUND)
        if appointment.reschedule_status != "pending" or appointment.status == "cancelled":
            return BookingResult.failure(SchedulingErrorKind.RESCHEDULE_NOT_PENDING)

        start, end = appointment.requested_start, appointment.requested_end
        worker_id = appointment.worker_id
        service = appointment.service

        if start < ctx.now:
            return BookingResult.failure(SchedulingErrorKind.INVALID_TIME_RANGE)

        # The calendar may have changed since the request was made
        error = AppointmentService._validate_slot(db, ctx, service, worker_id, start, end)
        if error:
            return BookingResult(error=error)

        def attempt():
            error = AppointmentService._lock_worker(db, worker_id)
            if error:
                return error

            error = AppointmentService._slot_taken(
                db, ctx, worker_id, start, end, service, appointment_id, lock=True
            )
            if error:
                return error

            appt = AppointmentService.get_appointment(db, ctx, appointment_id)
            if appt is None or appt.reschedule_status != "pending":
                return scheduling_error(SchedulingErrorKind.RESCHEDULE_NOT_PENDING)

            appt.start = start
            appt.end = end
            appt.status = "confirmed"
            appt.reschedule_status = "approved"
            appt.requested_start = None
            appt.requested_end = None
            db.flush()

            error = AppointmentService._recheck_after_write(db, ctx, appt, service)
            if error:
                return error
            return BookingResult(appointment=appt)

        def recheck():
            return AppointmentService._slot_taken(db, ctx, worker_id, start, end, service, appointment_id)

        outcome = BoundedRetry().run(db, attempt, recheck)
        if not outcome.ok:
            logger.info(f"Reschedule approval for {appointment_id} rejected: {outcome.error.kind.value}")
            return BookingResult(error=outcome.error)

        logger.info(f"Approved reschedule of appointment {appointment_id} to {start.isoformat()}")
        AppointmentService._refresh_reminders(db, ctx, outcome.result.appointment)
        return outcome.result

    @staticmethod
    def reject_reschedule(db: Session, ctx: RequestContext, appointment_id, reason: Optional[str] = None) -> BookingResult:
        """Decline a pending request; the appointment keeps its current slot"""

        def attempt():
            appointment = AppointmentService.get_appointment(db, ctx, appointment_id)
            if not appointment:
                return scheduling_error(SchedulingErrorKind.APPOINTMENT_NOT_FOUND)
            if appointment.reschedule_status != "pending":
                return scheduling_error(SchedulingErrorKind.RESCHEDULE_NOT_PENDING)

            appointment.reschedule_status = "rejected"
            appointment.reschedule_rejection_reason = reason
            appointment.requested_start = None
            appointment.requested_end = None
            db.flush()
            return BookingResult(appointment=appointment)

        outcome = BoundedRetry().run(db, attempt)
        if not outcome.ok:
            return BookingResult(error=outcome.error)

        logger.info(f"Rejected reschedule request for appointment {appointment_id}")
        return outcome.result

    @staticmethod
    def _slot_taken(
            db: Session,
            ctx: RequestContext,
            worker_id,
            start: datetime,
            end: datetime,
            service: Service,
            appointment_id,
            lock: bool = False
    ) -> Optional[SchedulingError]:
        """Moving an existing appointment never joins a group slot, so any overlap is a conflict"""
        conflict = check_conflict(
            db, ctx.business_id, worker_id, start, end, service,
            exclude_appointment_id=appointment_id, lock=lock,
        )
        if conflict.has_conflict:
            return conflict.error
        if conflict.group_appointment is not None:
            return scheduling_error(
                SchedulingErrorKind.SLOT_CONFLICT,
                appointment_id=str(conflict.group_appointment.id),
            )
        return None

    # ------------------------------------------------------------------
    # Group participants
    # ------------------------------------------------------------------

    @staticmethod
    def add_participant(db: Session, ctx: RequestContext, appointment_id, customer_id) -> BookingResult:
        """Add a customer to an existing group appointment"""
        appointment = AppointmentService.get_appointment(db, ctx, appointment_id)
        if not appointment:
            return BookingResult.failure(SchedulingErrorKind.APPOINTMENT_NOT_FOUND)

        service = appointment.service
        if not appointment.is_group_appointment or service is None or not service.is_group:
            return BookingResult.failure(SchedulingErrorKind.NOT_GROUP_APPOINTMENT)

        if appointment.status == "cancelled":
            return BookingResult.failure(SchedulingErrorKind.APPOINTMENT_NOT_FOUND)

        customer, error = AppointmentService._load_customer(db, ctx, customer_id)
        if error:
            return BookingResult(error=error)

        def attempt():
            locked = db.query(Appointment).filter(
                Appointment.id == appointment_id
            ).with_for_update(of=Appointment).first()
            if locked is None:
                return scheduling_error(SchedulingErrorKind.APPOINTMENT_NOT_FOUND)
            return AppointmentService._join_group(db, ctx, locked, service, customer.id)

        outcome = BoundedRetry(give_up_kind=SchedulingErrorKind.CAPACITY_EXCEEDED).run(db, attempt)
        if not outcome.ok:
            return BookingResult(error=outcome.error)

        result = outcome.result
        if not result.waitlisted:
            AppointmentService._refresh_reminders(db, ctx, result.appointment)
        return result

    @staticmethod
    def remove_participant(db: Session, ctx: RequestContext, appointment_id, customer_id) -> BookingResult:
        """
        Remove a customer from a group appointment.

        Freeing a confirmed seat promotes the longest-waiting waitlisted participant.
        """

        def attempt():
            appointment = AppointmentService.get_appointment(db, ctx, appointment_id)
            if not appointment:
                return scheduling_error(SchedulingErrorKind.APPOINTMENT_NOT_FOUND)

            participant = next(
                (p for p in appointment.participants
                 if p.customer_id == customer_id and p.status != "cancelled"),
                None,
            )
            if participant is None:
                return scheduling_error(SchedulingErrorKind.CUSTOMER_NOT_FOUND)

            was_confirmed = participant.status == "confirmed"
            participant.status = "cancelled"

            promoted = None
            if was_confirmed:
                waiting = [p for p in appointment.participants if p.status == "waitlist"]
                if waiting:
                    promoted = min(waiting, key=lambda p: p.joined_at)
                    promoted.status = "confirmed"
                else:
                    appointment.current_participants = max(0, appointment.current_participants - 1)

            db.flush()
            if promoted is not None:
                logger.info(f"Promoted customer {promoted.customer_id} from waitlist on {appointment.id}")
            return BookingResult(appointment=appointment, participant=participant)

        outcome = BoundedRetry().run(db, attempt)
        if not outcome.ok:
            return BookingResult(error=outcome.error)

        AppointmentService._refresh_reminders(db, ctx, outcome.result.appointment)
        return outcome.result

    # ------------------------------------------------------------------
    # Reminders
    # ------------------------------------------------------------------

    @staticmethod
    def _refresh_reminders(db: Session, ctx: RequestContext, appointment: Appointment) -> None:
        """Drop pending reminders and regenerate them; never fails the booking"""
        try:
            ReminderService.cancel_reminders(db, appointment.id)
            settings = SettingsService.reminder_settings(db.get(Business, ctx.business_id))
            ReminderService.schedule_reminders(db, appointment, settings, ctx.now)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to schedule reminders for appointment {appointment.id}: {e}")
