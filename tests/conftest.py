from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from wellness_booking import models  # noqa: F401
from wellness_booking.database import Base
from wellness_booking.document_store import DocumentStore
from wellness_booking.domain.workflow.service import WorkflowService
from wellness_booking.services.notification_service import NotificationSink


class RecordingSink(NotificationSink):
    """Keeps every message instead of delivering it"""

    def __init__(self):
        self.messages = []

    def send(self, message):
        self.messages.append(message)
        return True


class SteppingClock:
    """Returns a later instant on every call so timestamps are strictly increasing"""

    def __init__(self, start: datetime, step: timedelta = timedelta(seconds=1)):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + self.step
        return value


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db):
    return DocumentStore(db)


@pytest.fixture
def clock():
    return SteppingClock(datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc))


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def workflow(store, sink, clock):
    return WorkflowService(store, sink, clock, number_mode="count")


@pytest.fixture
def booking_form():
    return {
        "serviceId": "soin-energetique",
        "serviceName": "Soin énergétique",
        "unitPrice": 60,
        "duration": 60,
        "participants": 1,
        "promoCode": "",
        "firstname": "Camille",
        "lastname": "Martin",
        "email": "camille.martin@example.com",
        "phone": "06 12 34 56 78",
        "date": "2026-11-02",
        "time": "10:30",
        "message": "Première séance",
    }
