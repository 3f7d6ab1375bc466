from datetime import datetime, timedelta, timezone

import jwt
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from doctors_portal.core import config
from doctors_portal.core.errors import InvalidToken, Unauthenticated, Upstream
from doctors_portal.models.user import User


def normalize_email(email: str) -> str:
    return email.strip().lower()


def create_access_token(subject: str, now: datetime | None = None) -> str:
    issued_at = now or datetime.now(timezone.utc)
    expire = issued_at + timedelta(hours=config.TOKEN_TTL_HOURS)
    payload = {"sub": subject, "exp": expire, "iat": issued_at}
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])


def issue_token(db: Session, email: str) -> str:
    """Mint a 24 hour bearer token for a registered email.

    Raises:
        Unauthenticated: no user record exists for ``email``.
        Upstream: the user store could not be read.
    """
    normalized = normalize_email(email)
    try:
        user = db.query(User).filter(User.email == normalized).first()
    except SQLAlchemyError as exc:
        raise Upstream() from exc
    if user is None:
        raise Unauthenticated("No account is registered for this email.")
    return create_access_token(subject=user.email)


def verify_token(token: str) -> str:
    """Return the email a token was issued for.

    Raises:
        InvalidToken: bad signature, malformed or expired token, or no subject.
    """
    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError as exc:
        raise InvalidToken() from exc

    email = payload.get("sub")
    if not email:
        raise InvalidToken("Invalid token subject")
    return email
