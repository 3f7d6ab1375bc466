"""Doctor model definitions."""

from sqlalchemy import Column, Integer, String
from doctors_portal.database import Base


class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    specialty = Column(String, nullable=False)
    image_url = Column(String)
