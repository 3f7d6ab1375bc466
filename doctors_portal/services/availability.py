"""Slot availability derived from the options and the bookings of a day."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from doctors_portal.models.booking import Booking
from doctors_portal.models.option import AppointmentOption


@dataclass
class OptionAvailability:
    id: int
    name: str
    price: Decimal
    slots: list[str]


def remaining_slots(all_slots: list[str], consumed: set[str]) -> list[str]:
    return [slot for slot in all_slots if slot not in consumed]


def get_consumed_slots(db: Session, appointment_date: date, treatment: str | None = None) -> dict[str, set[str]]:
    query = db.query(Booking.treatment, Booking.slot).filter(Booking.appointment_date == appointment_date)
    if treatment is not None:
        query = query.filter(Booking.treatment == treatment)

    consumed: dict[str, set[str]] = {}
    for booked_treatment, booked_slot in query.all():
        consumed.setdefault(booked_treatment, set()).add(booked_slot)
    return consumed


def get_option_availability(db: Session, option: AppointmentOption, appointment_date: date) -> list[str]:
    consumed = get_consumed_slots(db, appointment_date, treatment=option.name)
    return remaining_slots(list(option.slots or []), consumed.get(option.name, set()))


def get_availability(db: Session, appointment_date: date) -> list[OptionAvailability]:
    """Return every option with its slots reduced to those still open on ``appointment_date``.

    Recomputed from the bookings table on every call. SQLAlchemy errors
    propagate to the caller.
    """
    options = db.query(AppointmentOption).order_by(AppointmentOption.name.asc()).all()
    if not options:
        return []

    consumed = get_consumed_slots(db, appointment_date)
    return [
        OptionAvailability(
            id=option.id,
            name=option.name,
            price=option.price,
            slots=remaining_slots(list(option.slots or []), consumed.get(option.name, set())),
        )
        for option in options
    ]
