"""Booking model definitions."""

from sqlalchemy import Boolean, Column, Date, Integer, Numeric, String, UniqueConstraint
from doctors_portal.database import Base


class Booking(Base):
    """A patient's reservation of one slot of a treatment on a given day."""
    __tablename__ = "bookings"
    __table_args__ = (
        UniqueConstraint('patient_email', 'treatment', 'appointment_date', name='uq_booking_patient_treatment_date'),
        UniqueConstraint('treatment', 'appointment_date', 'slot', name='uq_booking_treatment_date_slot'),
    )

    id = Column(Integer, primary_key=True)
    patient_email = Column(String, index=True, nullable=False)
    patient_name = Column(String)
    treatment = Column(String, nullable=False)
    appointment_date = Column(Date, index=True, nullable=False)
    slot = Column(String, nullable=False)
    price = Column(Numeric(10, 2))
    paid = Column(Boolean, nullable=False, default=False)
    transaction_id = Column(String)
