from datetime import datetime

from booking.config.celery_config import celery_app
from booking.models.appointment import Appointment
from booking.models.reminder import ReminderQueueItem
from booking.tasks import reminder_tasks

from conftest import MONDAY, at


def test_beat_schedules_reminder_dispatch():
    entry = celery_app.conf.beat_schedule["process-reminder-queue"]
    assert entry["task"] == "booking.tasks.reminder_tasks.process_reminders"
    assert entry["task"] in celery_app.tasks
    assert celery_app.conf.task_serializer == "json"


def test_task_runs_a_dispatch_pass(db, business, customer, service, worker, monkeypatch):
    appointment = Appointment(
        business_id=business.id,
        customer_id=customer.id,
        service_id=service.id,
        worker_id=worker.id,
        start=at(MONDAY, 10),
        end=at(MONDAY, 10, 30),
        status="confirmed",
        current_participants=1,
    )
    db.add(appointment)
    db.commit()
    item = ReminderQueueItem(
        appointment_id=appointment.id,
        business_id=business.id,
        customer_id=customer.id,
        scheduled_for=datetime(2020, 1, 1, 9),
        channel="sms",
        days_before=1,
        status="pending",
    )
    db.add(item)
    db.commit()
    item_id = item.id

    def override_get_db():
        yield db

    monkeypatch.setattr(reminder_tasks, "get_db", override_get_db)

    # USE_MOCK_MESSAGING is on for the test run, so delivery only logs
    stats = reminder_tasks.process_reminders()

    assert stats == {"processed": 1, "sent": 1, "failed": 0, "cancelled": 0}
    assert db.get(ReminderQueueItem, item_id).status == "sent"
