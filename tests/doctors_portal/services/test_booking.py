import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import Decimal

import pytest
from fastapi import BackgroundTasks, HTTPException

from doctors_portal.database import build_engine, build_session_factory, create_schema
from doctors_portal.models.booking import Booking
from doctors_portal.models.option import AppointmentOption
from doctors_portal.services import booking as booking_service
from doctors_portal.services.availability import get_availability
from doctors_portal.services.booking import BookingCandidate, admit_booking

APPOINTMENT_DATE = date(2024, 1, 5)


def _candidate(slot: str = '9am', email: str = 'a@x.com', treatment: str = 'Braces') -> BookingCandidate:
    return BookingCandidate(
        patient_email=email,
        treatment=treatment,
        appointment_date=APPOINTMENT_DATE,
        slot=slot,
    )


def test_admit_booking_inserts_unpaid_booking(db, braces, notifier) -> None:
    result = admit_booking(db, _candidate(), notifier)

    assert result.success is True
    assert result.conflict is False
    assert result.booking.paid is False
    assert result.booking.transaction_id is None
    assert result.booking.price == Decimal('120.00')
    assert notifier.calls == [('a@x.com', 'Braces', APPOINTMENT_DATE, '9am')]


def test_duplicate_booking_returns_conflict_naming_the_date(db, braces, notifier) -> None:
    admit_booking(db, _candidate(slot='9am'), notifier)

    result = admit_booking(db, _candidate(slot='9am'), notifier)

    assert result.success is False
    assert result.conflict is True
    assert '2024-01-05' in result.message
    assert result.booking.slot == '9am'
    assert db.query(Booking).count() == 1
    assert len(notifier.calls) == 1


def test_same_patient_cannot_take_a_second_slot_of_the_same_treatment(db, braces) -> None:
    admit_booking(db, _candidate(slot='9am'))

    result = admit_booking(db, _candidate(slot='11am'))

    assert result.conflict is True
    assert db.query(Booking).count() == 1


def test_booked_slot_is_refused_for_another_patient(db, braces) -> None:
    admit_booking(db, _candidate(slot='10am', email='a@x.com'))

    result = admit_booking(db, _candidate(slot='10am', email='b@x.com'))

    assert result.success is False
    assert result.conflict is True
    assert result.booking is None
    assert '10am' in result.message


def test_admission_is_reflected_in_availability(db, braces) -> None:
    admit_booking(db, _candidate(slot='10am'))

    [availability] = get_availability(db, APPOINTMENT_DATE)

    assert availability.slots == ['9am', '11am']


def test_unknown_treatment_is_not_found(db, braces) -> None:
    with pytest.raises(HTTPException) as exception_info:
        admit_booking(db, _candidate(treatment='Teeth Whitening'))

    assert exception_info.value.status_code == 404


def test_slot_outside_option_capacity_is_rejected(db, braces) -> None:
    with pytest.raises(HTTPException) as exception_info:
        admit_booking(db, _candidate(slot='7pm'))

    assert exception_info.value.status_code == 400
    assert db.query(Booking).count() == 0


def test_notification_failure_does_not_fail_the_booking(db, braces, failing_notifier) -> None:
    result = admit_booking(db, _candidate(), failing_notifier)

    assert result.success is True
    assert len(failing_notifier.calls) == 1
    assert db.query(Booking).count() == 1


def test_background_confirmation_failure_is_logged(db, braces, failing_notifier, caplog: pytest.LogCaptureFixture) -> None:
    background_tasks = BackgroundTasks()

    result = admit_booking(db, _candidate(), failing_notifier, background_tasks)

    assert result.success is True
    assert failing_notifier.calls == []

    with caplog.at_level(logging.ERROR, logger=booking_service.__name__):
        asyncio.run(background_tasks())

    assert len(failing_notifier.calls) == 1
    assert f'Could not send confirmation for booking {result.booking.id}.' in caplog.text


def test_stale_uniqueness_check_is_closed_by_the_store(db, braces, monkeypatch: pytest.MonkeyPatch) -> None:
    admit_booking(db, _candidate(slot='9am'))

    real_find = booking_service.find_existing_booking
    lookups = []

    def stale_find(*args):
        lookups.append(args)
        # The first lookup misses the committed row, as a concurrent request would.
        return None if len(lookups) == 1 else real_find(*args)

    monkeypatch.setattr(booking_service, 'find_existing_booking', stale_find)
    monkeypatch.setattr(booking_service, 'get_option_availability', lambda *_: ['9am', '10am', '11am'])

    result = admit_booking(db, _candidate(slot='9am'))

    assert result.conflict is True
    assert '2024-01-05' in result.message
    assert db.query(Booking).count() == 1


def test_concurrent_identical_bookings_admit_exactly_one(tmp_path) -> None:
    engine = build_engine(f'sqlite:///{tmp_path / "race.db"}')
    create_schema(engine)
    session_factory = build_session_factory(engine)

    setup = session_factory()
    setup.add(AppointmentOption(name='Braces', price=Decimal('120.00'), slots=['9am', '10am', '11am']))
    setup.commit()
    setup.close()

    def attempt(_):
        session = session_factory()
        try:
            return admit_booking(session, _candidate(slot='9am')).success
        finally:
            session.close()

    try:
        with ThreadPoolExecutor(max_workers=4) as executor:
            outcomes = list(executor.map(attempt, range(4)))

        check = session_factory()
        try:
            assert check.query(Booking).count() == 1
        finally:
            check.close()
    finally:
        engine.dispose()

    assert outcomes.count(True) == 1
    assert outcomes.count(False) == 3
