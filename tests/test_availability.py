import uuid
from datetime import date

from booking.schemas.appointment import AppointmentCreate
from booking.services.appointment.appointment_service import AppointmentService
from booking.services.availability.availability_service import AvailabilityService

from conftest import TUESDAY, at


def _starts(slots):
    return [slot["start"][11:16] for slot in slots]


def test_free_day_offers_every_slot_that_fits(db, ctx, service, worker):
    slots = AvailabilityService.get_available_slots(db, ctx, TUESDAY.date(), service.id)

    assert len(slots) == 18
    assert _starts(slots)[0] == "09:00"
    assert _starts(slots)[-1] == "17:30"
    assert slots[0]["worker_name"] == "Dana"
    assert slots[0]["capacity_remaining"] == 1


def test_long_service_stops_before_closing(db, ctx, group_service, worker):
    slots = AvailabilityService.get_available_slots(db, ctx, TUESDAY.date(), group_service.id)
    assert _starts(slots)[-1] == "17:00"
    assert slots[0]["capacity_remaining"] == 5


def test_booked_slot_is_removed(db, ctx, customer, service, worker):
    AppointmentService.create_appointment(db, ctx, AppointmentCreate(
        customer_id=customer.id,
        service_id=service.id,
        worker_id=worker.id,
        start=at(TUESDAY, 10),
        end=at(TUESDAY, 10, 30),
    ))

    starts = _starts(AvailabilityService.get_available_slots(db, ctx, TUESDAY.date(), service.id))
    assert "10:00" not in starts
    assert "09:30" in starts and "10:30" in starts


def test_group_slot_shows_remaining_capacity(db, ctx, customer, group_service, worker):
    AppointmentService.create_appointment(db, ctx, AppointmentCreate(
        customer_id=customer.id,
        service_id=group_service.id,
        worker_id=worker.id,
        start=at(TUESDAY, 10),
        end=at(TUESDAY, 11),
    ))

    slots = AvailabilityService.get_available_slots(db, ctx, TUESDAY.date(), group_service.id)
    by_start = {slot["start"][11:16]: slot for slot in slots}

    assert by_start["10:00"]["capacity_remaining"] == 4
    assert "10:30" not in by_start
    assert "09:30" not in by_start


def test_non_working_day_and_unknown_service(db, ctx, service, worker):
    assert AvailabilityService.get_available_slots(db, ctx, date(2030, 1, 11), service.id) == []
    assert AvailabilityService.get_available_slots(db, ctx, TUESDAY.date(), uuid.uuid4()) is None


def test_hours_ending_at_midnight_keep_the_last_slot(db, ctx, business, service, group_service, worker):
    business.calendar_settings = {
        "workingDays": [0, 1, 2, 3, 4],
        "workingHours": {"start": "22:00", "end": "24:00"},
        "timeSlotGap": 30,
    }
    db.commit()

    slots = AvailabilityService.get_available_slots(db, ctx, TUESDAY.date(), service.id)
    assert _starts(slots) == ["22:00", "22:30", "23:00", "23:30"]
    assert slots[-1]["end"] == "2030-01-09T00:00:00"

    group_slots = AvailabilityService.get_available_slots(db, ctx, TUESDAY.date(), group_service.id)
    assert _starts(group_slots)[-1] == "23:00"
