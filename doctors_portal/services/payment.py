"""Record a completed charge and mark its booking paid in one transaction."""

import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from doctors_portal.core.errors import Inconsistent, NotFound
from doctors_portal.models.booking import Booking
from doctors_portal.models.payment import Payment

logger = logging.getLogger(__name__)


@dataclass
class ChargeResult:
    booking_id: int
    transaction_id: str
    amount: Decimal


def _find_payment(db: Session, transaction_id: str) -> Payment | None:
    return db.query(Payment).filter(Payment.transaction_id == transaction_id).first()


def _replayed(payment: Payment, charge: ChargeResult) -> Payment:
    if payment.booking_id != charge.booking_id:
        logger.error(
            'Transaction %s is already recorded for booking %s, not booking %s.',
            charge.transaction_id, payment.booking_id, charge.booking_id,
        )
        raise Inconsistent(f'Transaction {charge.transaction_id} is already recorded for another booking.')
    logger.info('Payment %s for booking %s already reconciled.', charge.transaction_id, charge.booking_id)
    return payment


def reconcile_payment(db: Session, charge: ChargeResult) -> Payment:
    """Append a Payment and flip its booking to paid, or neither.

    Re-applying the same ``transaction_id`` returns the recorded Payment
    without writing anything. Errors other than the handled integrity race
    leave the session rolled back for the caller to report and retry.
    """
    existing = _find_payment(db, charge.transaction_id)
    if existing is not None:
        return _replayed(existing, charge)

    booking = db.query(Booking).filter(Booking.id == charge.booking_id).first()
    if booking is None:
        raise NotFound('Booking not found.')

    if booking.paid:
        logger.error(
            'Booking %s is already paid by %s; refusing transaction %s.',
            booking.id, booking.transaction_id, charge.transaction_id,
        )
        raise Inconsistent(f'Booking {booking.id} is already paid by another transaction.')

    payment = Payment(
        booking_id=booking.id,
        transaction_id=charge.transaction_id,
        amount=charge.amount,
    )
    db.add(payment)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        winner = _find_payment(db, charge.transaction_id)
        if winner is None:
            raise
        return _replayed(winner, charge)

    updated = db.query(Booking).filter(
        Booking.id == booking.id,
        Booking.paid.is_(False),
    ).update(
        {Booking.paid: True, Booking.transaction_id: charge.transaction_id},
        synchronize_session=False,
    )
    if updated != 1:
        db.rollback()
        logger.error('Booking %s changed while reconciling %s; payment rolled back.', booking.id, charge.transaction_id)
        raise Inconsistent(f'Booking {booking.id} could not be marked paid.')

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        winner = _find_payment(db, charge.transaction_id)
        if winner is None:
            raise
        return _replayed(winner, charge)

    db.refresh(booking)
    logger.info('Booking %s paid with %s', booking.id, charge.transaction_id)
    return payment
