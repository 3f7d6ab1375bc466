from datetime import date
from decimal import Decimal

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from doctors_portal.auth.dependencies import authenticate, ensure_subject
from doctors_portal.auth.jwt_handler import normalize_email
from doctors_portal.core.errors import Forbidden, NotFound, Upstream
from doctors_portal.database import get_db
from doctors_portal.models.booking import Booking
from doctors_portal.services import roles
from doctors_portal.services.booking import BookingCandidate, admit_booking
from doctors_portal.services.notifications import NotificationSender, get_notifier
from doctors_portal.services.payment import ChargeResult, reconcile_payment

router = APIRouter(tags=['bookings'])

MAX_PATIENT_NAME_LENGTH = 120


class CreateBookingRequest(BaseModel):
    patient_email: str
    patient_name: str | None = None
    treatment: str
    appointment_date: date
    slot: str

    @field_validator('patient_email')
    @classmethod
    def validate_patient_email(cls, value: str) -> str:
        normalized = normalize_email(value)
        if not normalized:
            raise ValueError('Patient email is required.')
        return normalized

    @field_validator('treatment', 'slot')
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Treatment and slot are required.')
        return normalized

    @field_validator('patient_name')
    @classmethod
    def validate_patient_name(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_PATIENT_NAME_LENGTH:
            raise ValueError(f'Patient name must be {MAX_PATIENT_NAME_LENGTH} characters or fewer.')

        return normalized


class PaymentRequest(BaseModel):
    transaction_id: str
    amount: Decimal

    @field_validator('transaction_id')
    @classmethod
    def validate_transaction_id(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Transaction id is required.')
        return normalized

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, value: Decimal) -> Decimal:
        if value <= 0:
            raise ValueError('Amount must be positive.')
        return value


class BookingResponse(BaseModel):
    id: int
    patient_email: str
    patient_name: str | None = None
    treatment: str
    appointment_date: date
    slot: str
    price: float | None = None
    paid: bool
    transaction_id: str | None = None

    class Config:
        from_attributes = True


class BookingOutcomeResponse(BaseModel):
    success: bool
    message: str
    booking: BookingResponse | None = None


class PaymentResponse(BaseModel):
    id: int
    booking_id: int
    transaction_id: str
    amount: float

    class Config:
        from_attributes = True


class PaidBookingResponse(BaseModel):
    booking: BookingResponse
    payment: PaymentResponse


def load_booking(db: Session, booking_id: int) -> Booking:
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if booking is None:
        raise NotFound('Booking not found.')
    return booking


@router.get('', response_model=list[BookingResponse])
def list_my_bookings(
    patient: str = Query(...),
    caller_email: str = Depends(authenticate),
    db: Session = Depends(get_db),
):
    patient_email = normalize_email(patient)
    ensure_subject(caller_email, patient_email)

    try:
        return db.query(Booking).filter(
            Booking.patient_email == patient_email,
        ).order_by(Booking.appointment_date.asc(), Booking.id.asc()).all()
    except SQLAlchemyError as exc:
        raise Upstream() from exc


@router.get('/{booking_id}', response_model=BookingResponse)
def get_booking(
    booking_id: int,
    caller_email: str = Depends(authenticate),
    db: Session = Depends(get_db),
):
    try:
        booking = load_booking(db, booking_id)
        if booking.patient_email != caller_email and not roles.is_admin(db, caller_email):
            raise Forbidden()
        return booking
    except SQLAlchemyError as exc:
        raise Upstream() from exc


@router.post('', response_model=BookingOutcomeResponse)
def create_booking(
    data: CreateBookingRequest,
    background_tasks: BackgroundTasks,
    caller_email: str = Depends(authenticate),
    db: Session = Depends(get_db),
    notifier: NotificationSender = Depends(get_notifier),
):
    ensure_subject(caller_email, data.patient_email)

    candidate = BookingCandidate(
        patient_email=data.patient_email,
        patient_name=data.patient_name,
        treatment=data.treatment,
        appointment_date=data.appointment_date,
        slot=data.slot,
    )
    try:
        result = admit_booking(db, candidate, notifier, background_tasks)
    except SQLAlchemyError as exc:
        db.rollback()
        raise Upstream() from exc

    return BookingOutcomeResponse(
        success=result.success,
        message=result.message,
        booking=BookingResponse.model_validate(result.booking) if result.booking is not None else None,
    )


@router.patch('/{booking_id}', response_model=PaidBookingResponse)
def pay_booking(
    booking_id: int,
    data: PaymentRequest,
    caller_email: str = Depends(authenticate),
    db: Session = Depends(get_db),
):
    try:
        booking = load_booking(db, booking_id)
        ensure_subject(caller_email, booking.patient_email)

        payment = reconcile_payment(
            db,
            ChargeResult(booking_id=booking_id, transaction_id=data.transaction_id, amount=data.amount),
        )
        db.refresh(booking)
    except SQLAlchemyError as exc:
        db.rollback()
        raise Upstream() from exc

    return PaidBookingResponse(
        booking=BookingResponse.model_validate(booking),
        payment=PaymentResponse.model_validate(payment),
    )
