"""Payment model definitions."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String
from doctors_portal.database import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Payment(Base):
    """A completed charge recorded against a booking. Append-only."""
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), index=True, nullable=False)
    transaction_id = Column(String, unique=True, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utc_now)
