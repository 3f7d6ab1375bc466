from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from doctors_portal.auth import jwt_handler
from doctors_portal.core.errors import Forbidden, Unauthenticated, Upstream
from doctors_portal.database import get_db
from doctors_portal.models.user import ADMIN_ROLE, User

security = HTTPBearer(auto_error=False)


def authenticate(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str:
    """Resolve the bearer token to the caller's email."""
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Unauthorized access")
    return jwt_handler.verify_token(credentials.credentials)


def require_admin(
    caller_email: str = Depends(authenticate),
    db: Session = Depends(get_db),
) -> str:
    try:
        caller = db.query(User).filter(User.email == caller_email).first()
    except SQLAlchemyError as exc:
        raise Upstream() from exc

    if caller is None or caller.role != ADMIN_ROLE:
        raise Forbidden()
    return caller_email


def ensure_subject(caller_email: str, target_email: str) -> None:
    if jwt_handler.normalize_email(caller_email) != jwt_handler.normalize_email(target_email):
        raise Forbidden()
