"""Shared fixtures: in-memory database, a seeded tenant and a fake messenger."""
import os
from datetime import datetime

# Must be set before booking.config.settings is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("USE_MOCK_MESSAGING", "true")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from booking.core.context import RequestContext
from booking.models import Base, Business, Customer, Service, Worker
from booking.scheduling.errors import DeliveryError

# Monday 2030-01-07 is weekday index 1; Friday 2030-01-11 is index 5
MONDAY = datetime(2030, 1, 7)
TUESDAY = datetime(2030, 1, 8)
FRIDAY = datetime(2030, 1, 11)
NOW = datetime(2030, 1, 6, 22, 0)


def at(day: datetime, hour: int, minute: int = 0) -> datetime:
    return day.replace(hour=hour, minute=minute)


class FakeMessaging:
    """Records deliveries; phones listed in ``failing`` raise DeliveryError."""

    def __init__(self, failing=()):
        self.sent = []
        self.failing = set(failing)

    def send(self, channel, to_phone, message_body):
        if to_phone in self.failing:
            raise DeliveryError(f"Carrier rejected {to_phone}")
        self.sent.append((channel, to_phone, message_body))
        return {"success": True, "message_sid": f"SM{len(self.sent)}"}


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def business(db):
    business = Business(
        name="Studio Nova",
        timezone="UTC",
        calendar_settings={
            "workingDays": [0, 1, 2, 3, 4],
            "workingHours": {"start": "09:00", "end": "18:00"},
            "timeSlotGap": 30,
        },
        notification_settings={
            "reminders": {
                "enabled": True,
                "smsEnabled": True,
                "whatsappEnabled": False,
                "daysBefore": [1],
                "defaultTime": "09:00",
            }
        },
        is_active=True,
    )
    db.add(business)
    db.commit()
    return business


@pytest.fixture
def service(db, business):
    service = Service(business_id=business.id, name="Haircut", duration=30, is_active=True)
    db.add(service)
    db.commit()
    return service


@pytest.fixture
def group_service(db, business):
    service = Service(
        business_id=business.id,
        name="Yoga Class",
        duration=60,
        is_group_service=True,
        max_capacity=5,
        min_capacity=2,
        allow_waitlist=False,
        is_active=True,
    )
    db.add(service)
    db.commit()
    return service


@pytest.fixture
def waitlist_service(db, business):
    service = Service(
        business_id=business.id,
        name="Pottery Workshop",
        duration=60,
        is_group_service=True,
        max_capacity=2,
        allow_waitlist=True,
        is_active=True,
    )
    db.add(service)
    db.commit()
    return service


@pytest.fixture
def worker(db, business, service, group_service, waitlist_service):
    worker = Worker(business_id=business.id, name="Dana", is_active=True)
    worker.services = [service, group_service, waitlist_service]
    db.add(worker)
    db.commit()
    return worker


@pytest.fixture
def make_customer(db, business):
    counter = {"n": 0}

    def _make(name=None, phone="default", is_blocked=False):
        counter["n"] += 1
        customer = Customer(
            business_id=business.id,
            name=name or f"Customer {counter['n']}",
            phone=f"+1555000{counter['n']:04d}" if phone == "default" else phone,
            is_blocked=is_blocked,
        )
        db.add(customer)
        db.commit()
        return customer

    return _make


@pytest.fixture
def customer(make_customer):
    return make_customer(name="Avery")


@pytest.fixture
def ctx(business):
    return RequestContext(business_id=business.id, now=NOW, timezone="UTC", correlation_id="test")


@pytest.fixture
def messaging():
    return FakeMessaging()
