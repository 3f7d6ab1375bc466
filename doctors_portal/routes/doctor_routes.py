from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from doctors_portal.auth.dependencies import require_admin
from doctors_portal.auth.jwt_handler import normalize_email
from doctors_portal.core.errors import Conflict, InvalidRequest, NotFound, Upstream
from doctors_portal.database import get_db
from doctors_portal.models.doctor import Doctor
from doctors_portal.models.option import AppointmentOption

router = APIRouter(tags=['doctors'])


class CreateDoctorRequest(BaseModel):
    name: str
    email: str
    specialty: str
    image_url: str | None = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = normalize_email(value)
        if not normalized:
            raise ValueError('Doctor email is required.')
        return normalized

    @field_validator('name', 'specialty')
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name and specialty are required.')
        return normalized


class DoctorResponse(BaseModel):
    id: int
    name: str
    email: str
    specialty: str
    image_url: str | None = None

    class Config:
        from_attributes = True


@router.post('', response_model=DoctorResponse, status_code=status.HTTP_201_CREATED)
def add_doctor(
    data: CreateDoctorRequest,
    caller_email: str = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del caller_email
    try:
        specialty = db.query(AppointmentOption).filter(AppointmentOption.name == data.specialty).first()
        if specialty is None:
            raise InvalidRequest(f'Unknown specialty "{data.specialty}".')

        if db.query(Doctor).filter(Doctor.email == data.email).first():
            raise Conflict('A doctor with this email already exists.')

        doctor = Doctor(
            name=data.name,
            email=data.email,
            specialty=data.specialty,
            image_url=data.image_url,
        )
        db.add(doctor)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise Conflict('A doctor with this email already exists.') from exc
        db.refresh(doctor)

        return doctor
    except SQLAlchemyError as exc:
        db.rollback()
        raise Upstream() from exc


@router.get('', response_model=list[DoctorResponse])
def list_doctors(
    caller_email: str = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del caller_email
    try:
        return db.query(Doctor).order_by(Doctor.name.asc()).all()
    except SQLAlchemyError as exc:
        raise Upstream() from exc


@router.delete('/{email}', status_code=status.HTTP_204_NO_CONTENT)
def remove_doctor(
    email: str,
    caller_email: str = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del caller_email
    try:
        doctor = db.query(Doctor).filter(Doctor.email == normalize_email(email)).first()
        if doctor is None:
            raise NotFound('Doctor not found.')

        db.delete(doctor)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise Upstream() from exc
