"""
Celery worker entry point
Runs the periodic reminder dispatch (beat embedded when started directly)
"""
import logging
from celery.signals import worker_ready, worker_shutdown

from booking.config.celery_config import celery_app
from booking.utils.my_logging import setup_logging

import booking.tasks.reminder_tasks  # noqa: F401  registers tasks

setup_logging()
logger = logging.getLogger(__name__)


@worker_ready.connect
def worker_ready_handler(sender=None, **kwargs):
    reminder_tasks = [name for name in celery_app.tasks if name.startswith("booking.")]
    logger.info(f"🚀 Reminder worker ready, tasks: {reminder_tasks}")
    for name, entry in celery_app.conf.beat_schedule.items():
        logger.info(f"⏰ {name}: {entry['task']} every {entry['schedule']}s")


@worker_shutdown.connect
def worker_shutdown_handler(sender=None, **kwargs):
    logger.info("🛑 Reminder worker shutting down...")


if __name__ == "__main__":
    celery_app.start([
        'worker',
        '--beat',
        '--loglevel=info',
        '--concurrency=2',
        '--max-tasks-per-child=1000'
    ])
