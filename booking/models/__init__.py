# booking/models/__init__.py
from .base import Base
from .business import Business
from .service import Service
from .worker import Worker, worker_services
from .customer import Customer
from .appointment import Appointment, AppointmentParticipant
from .reminder import ReminderQueueItem

__all__ = [
    "Base",
    "Business",
    "Service",
    "Worker",
    "worker_services",
    "Customer",
    "Appointment",
    "AppointmentParticipant",
    "ReminderQueueItem",
]
