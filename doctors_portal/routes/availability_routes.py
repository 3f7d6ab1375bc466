from datetime import date

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from doctors_portal.core.errors import Upstream
from doctors_portal.database import get_db
from doctors_portal.models.option import AppointmentOption
from doctors_portal.services.availability import get_availability

router = APIRouter(tags=['availability'])


class AvailableOptionResponse(BaseModel):
    id: int
    name: str
    price: float
    slots: list[str]

    class Config:
        from_attributes = True


class TreatmentResponse(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


@router.get('', response_model=list[AvailableOptionResponse])
def list_available_options(
    appointment_date: date = Query(alias='date'),
    db: Session = Depends(get_db),
):
    try:
        return get_availability(db, appointment_date)
    except SQLAlchemyError as exc:
        raise Upstream() from exc


@router.get('/treatments', response_model=list[TreatmentResponse])
def list_treatments(db: Session = Depends(get_db)):
    try:
        return db.query(AppointmentOption).order_by(AppointmentOption.name.asc()).all()
    except SQLAlchemyError as exc:
        raise Upstream() from exc
