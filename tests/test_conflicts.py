from booking.models.appointment import Appointment
from booking.models.service import Service
from booking.schemas.appointment import AppointmentCreate
from booking.scheduling.conflicts import check_conflict, check_group_capacity, intervals_overlap
from booking.scheduling.errors import SchedulingErrorKind
from booking.services.appointment.appointment_service import AppointmentService

from conftest import MONDAY, at


def _group_service(max_capacity=5, allow_waitlist=False, min_capacity=None):
    return Service(
        name="Spin",
        duration=60,
        is_group_service=True,
        max_capacity=max_capacity,
        min_capacity=min_capacity,
        allow_waitlist=allow_waitlist,
    )


def _book(db, ctx, customer, service, worker, start, end):
    return AppointmentService.create_appointment(db, ctx, AppointmentCreate(
        customer_id=customer.id,
        service_id=service.id,
        worker_id=worker.id,
        start=start,
        end=end,
    ))


def test_intervals_overlap_is_half_open():
    assert intervals_overlap(at(MONDAY, 10), at(MONDAY, 10, 30), at(MONDAY, 10, 15), at(MONDAY, 10, 45))
    assert not intervals_overlap(at(MONDAY, 10), at(MONDAY, 10, 30), at(MONDAY, 10, 30), at(MONDAY, 11))


def test_overlapping_booking_is_rejected(db, ctx, worker, service, make_customer):
    first = _book(db, ctx, make_customer(), service, worker, at(MONDAY, 10), at(MONDAY, 10, 30))
    assert first.ok

    clash = _book(db, ctx, make_customer(), service, worker, at(MONDAY, 10, 15), at(MONDAY, 10, 45))
    assert not clash.ok
    assert clash.error.kind == SchedulingErrorKind.SLOT_CONFLICT
    assert clash.error.details["appointment_id"] == str(first.appointment.id)


def test_back_to_back_booking_is_accepted(db, ctx, worker, service, make_customer):
    assert _book(db, ctx, make_customer(), service, worker, at(MONDAY, 10), at(MONDAY, 10, 30)).ok
    assert _book(db, ctx, make_customer(), service, worker, at(MONDAY, 10, 30), at(MONDAY, 11)).ok
    assert db.query(Appointment).count() == 2


def test_cancelled_appointments_do_not_block(db, ctx, worker, service, make_customer):
    first = _book(db, ctx, make_customer(), service, worker, at(MONDAY, 10), at(MONDAY, 10, 30))
    AppointmentService.cancel_appointment(db, ctx, first.appointment.id)

    assert _book(db, ctx, make_customer(), service, worker, at(MONDAY, 10), at(MONDAY, 10, 30)).ok


def test_check_conflict_returns_joinable_group_slot(db, ctx, worker, group_service, make_customer):
    created = _book(db, ctx, make_customer(), group_service, worker, at(MONDAY, 10), at(MONDAY, 11))

    result = check_conflict(db, ctx.business_id, worker.id, at(MONDAY, 10), at(MONDAY, 11), group_service)
    assert not result.has_conflict
    assert result.group_appointment.id == created.appointment.id

    shifted = check_conflict(db, ctx.business_id, worker.id, at(MONDAY, 10, 30), at(MONDAY, 11, 30), group_service)
    assert shifted.has_conflict


def test_group_at_capacity_is_rejected(db, ctx, worker, group_service, make_customer):
    for _ in range(4):
        assert _book(db, ctx, make_customer(), group_service, worker, at(MONDAY, 10), at(MONDAY, 11)).ok

    fifth = _book(db, ctx, make_customer(), group_service, worker, at(MONDAY, 10), at(MONDAY, 11))
    assert fifth.ok
    assert fifth.joined_existing
    assert fifth.appointment.current_participants == 5

    sixth = _book(db, ctx, make_customer(), group_service, worker, at(MONDAY, 10), at(MONDAY, 11))
    assert sixth.error.kind == SchedulingErrorKind.CAPACITY_EXCEEDED
    assert db.query(Appointment).count() == 1


def test_capacity_decision_accepts_until_full():
    service = _group_service(max_capacity=5)

    decision = check_group_capacity(4, service)
    assert decision.accepted
    assert decision.available == 0

    full = check_group_capacity(5, service)
    assert not full.accepted
    assert full.error.kind == SchedulingErrorKind.CAPACITY_EXCEEDED
    assert full.error.details == {"max_capacity": 5, "current_participants": 5}


def test_capacity_decision_waitlists_when_allowed():
    decision = check_group_capacity(2, _group_service(max_capacity=2, allow_waitlist=True))
    assert not decision.accepted
    assert decision.waitlisted
    assert decision.error is None


def test_minimum_capacity_is_reported_only():
    service = _group_service(max_capacity=5, min_capacity=3)
    assert not check_group_capacity(0, service).meets_minimum
    assert check_group_capacity(2, service).meets_minimum
    assert check_group_capacity(0, service).accepted


def test_requesting_several_seats():
    service = _group_service(max_capacity=5)
    assert check_group_capacity(3, service, requested=2).accepted
    assert not check_group_capacity(4, service, requested=2).accepted
