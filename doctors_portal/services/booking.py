"""Booking admission: validate a requested booking and insert it at most once."""

import logging
from dataclasses import dataclass
from datetime import date

from fastapi import BackgroundTasks
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from doctors_portal.core.errors import InvalidSlot, NotFound
from doctors_portal.models.booking import Booking
from doctors_portal.models.option import AppointmentOption
from doctors_portal.services.availability import get_option_availability
from doctors_portal.services.notifications import NotificationSender

logger = logging.getLogger(__name__)


@dataclass
class BookingCandidate:
    patient_email: str
    treatment: str
    appointment_date: date
    slot: str
    patient_name: str | None = None


@dataclass
class AdmissionResult:
    """Outcome of an admission attempt.

    A conflict is a normal negative outcome: ``success`` is False and
    ``booking`` holds the record that blocked the request, when there is one.
    """

    success: bool
    message: str
    booking: Booking | None = None
    conflict: bool = False


def find_existing_booking(db: Session, patient_email: str, treatment: str, appointment_date: date) -> Booking | None:
    return db.query(Booking).filter(
        Booking.patient_email == patient_email,
        Booking.treatment == treatment,
        Booking.appointment_date == appointment_date,
    ).first()


def _already_booked(existing: Booking) -> AdmissionResult:
    return AdmissionResult(
        success=False,
        conflict=True,
        booking=existing,
        message=(
            f'You already have an appointment for {existing.treatment} '
            f'on {existing.appointment_date.isoformat()} at {existing.slot}.'
        ),
    )


def _slot_taken(candidate: BookingCandidate) -> AdmissionResult:
    return AdmissionResult(
        success=False,
        conflict=True,
        message=(
            f'The {candidate.slot} slot for {candidate.treatment} '
            f'on {candidate.appointment_date.isoformat()} is no longer available.'
        ),
    )


def send_confirmation(notifier: NotificationSender | None, booking: Booking) -> None:
    if notifier is None:
        return
    try:
        notifier.notify(booking.patient_email, booking.treatment, booking.appointment_date, booking.slot)
    except Exception:
        logger.exception('Could not send confirmation for booking %s.', booking.id)


def admit_booking(
    db: Session,
    candidate: BookingCandidate,
    notifier: NotificationSender | None = None,
    background_tasks: BackgroundTasks | None = None,
) -> AdmissionResult:
    """Admit ``candidate`` or report why it cannot be booked.

    With ``background_tasks`` the confirmation is sent after the response.
    """
    option = db.query(AppointmentOption).filter(AppointmentOption.name == candidate.treatment).first()
    if option is None:
        raise NotFound(f'Treatment "{candidate.treatment}" not found.')

    if candidate.slot not in (option.slots or []):
        raise InvalidSlot(f'"{candidate.slot}" is not a slot offered for {candidate.treatment}.')

    existing = find_existing_booking(db, candidate.patient_email, candidate.treatment, candidate.appointment_date)
    if existing is not None:
        return _already_booked(existing)

    if candidate.slot not in get_option_availability(db, option, candidate.appointment_date):
        return _slot_taken(candidate)

    booking = Booking(
        patient_email=candidate.patient_email,
        patient_name=candidate.patient_name,
        treatment=candidate.treatment,
        appointment_date=candidate.appointment_date,
        slot=candidate.slot,
        price=option.price,
        paid=False,
        transaction_id=None,
    )
    db.add(booking)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race against a concurrent admission for the same key.
        db.rollback()
        existing = find_existing_booking(db, candidate.patient_email, candidate.treatment, candidate.appointment_date)
        if existing is not None:
            return _already_booked(existing)
        return _slot_taken(candidate)

    db.refresh(booking)
    logger.info('Booked %s for %s on %s at %s', booking.treatment, booking.patient_email, booking.appointment_date, booking.slot)

    if background_tasks is not None:
        background_tasks.add_task(send_confirmation, notifier, booking)
    else:
        send_confirmation(notifier, booking)
    return AdmissionResult(success=True, booking=booking, message='Appointment booked.')
