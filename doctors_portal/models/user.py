"""User model definitions."""

from sqlalchemy import Column, Integer, String
from doctors_portal.database import Base

PATIENT_ROLE = 'patient'
ADMIN_ROLE = 'admin'


class User(Base):
    """Represents a signed-in portal user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String)
    role = Column(String, nullable=False, default=PATIENT_ROLE)  # patient/admin
