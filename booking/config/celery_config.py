# booking/config/celery_config.py
"""Celery application factory and beat schedule"""
from celery import Celery

from booking.config.settings import get_settings

settings = get_settings()


def create_celery_app() -> Celery:
    """Create Celery app configured from settings"""
    app = Celery(
        "booking",
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
        include=["booking.tasks.reminder_tasks"],
    )

    app.conf.update(
        task_serializer=settings.CELERY_TASK_SERIALIZER,
        result_serializer="json",
        accept_content=["json"],
        timezone="UTC",
        enable_utc=True,
        task_acks_late=True,
        worker_prefetch_multiplier=1,
        beat_schedule={
            "process-reminder-queue": {
                "task": "booking.tasks.reminder_tasks.process_reminders",
                "schedule": float(settings.REMINDER_PROCESS_INTERVAL_SECONDS),
            },
        },
    )

    return app


celery_app = create_celery_app()
