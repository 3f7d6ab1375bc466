import os
from decimal import Decimal

import pytest

os.environ.setdefault('DATABASE_URL', 'sqlite://')

from doctors_portal.database import Base, build_engine, build_session_factory, create_schema  # noqa: E402
from doctors_portal.models.option import AppointmentOption  # noqa: E402
from doctors_portal.models.user import PATIENT_ROLE, User  # noqa: E402


class RecordingNotifier:
    def __init__(self, error: Exception | None = None):
        self.calls = []
        self.error = error

    def notify(self, email, treatment, appointment_date, slot):
        self.calls.append((email, treatment, appointment_date, slot))
        if self.error is not None:
            raise self.error


@pytest.fixture
def engine():
    engine = build_engine('sqlite://')
    create_schema(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(engine):
    session = build_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def braces(db) -> AppointmentOption:
    option = AppointmentOption(name='Braces', price=Decimal('120.00'), slots=['9am', '10am', '11am'])
    db.add(option)
    db.commit()
    return option


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def make_user(db):
    def _make_user(email: str, role: str = PATIENT_ROLE) -> User:
        user = User(email=email, role=role)
        db.add(user)
        db.commit()
        return user

    return _make_user


@pytest.fixture
def failing_notifier() -> RecordingNotifier:
    return RecordingNotifier(error=ConnectionRefusedError('smtp down'))
