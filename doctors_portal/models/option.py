"""Appointment option model definitions."""

from sqlalchemy import JSON, Column, Integer, Numeric, String
from doctors_portal.database import Base


class AppointmentOption(Base):
    """A treatment and its full daily slot capacity."""
    __tablename__ = "appointment_options"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, index=True, nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    slots = Column(JSON, nullable=False, default=list)
