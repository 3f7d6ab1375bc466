import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from doctors_portal.auth import jwt_handler
from doctors_portal.auth.dependencies import authenticate, require_admin
from doctors_portal.core.errors import Upstream
from doctors_portal.database import get_db
from doctors_portal.models.user import PATIENT_ROLE, User
from doctors_portal.services import roles

router = APIRouter(tags=['users'])

logger = logging.getLogger(__name__)


class SignInRequest(BaseModel):
    name: str | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class UserResponse(BaseModel):
    id: int
    email: str
    name: str | None = None
    role: str

    class Config:
        from_attributes = True


class AdminStatusResponse(BaseModel):
    admin: bool


def register_user(db: Session, email: str, name: str | None) -> User:
    """Create a patient account for an unseen email.

    An existing account is returned untouched. Tokens come only from
    ``POST /auth/token``.
    """
    user = db.query(User).filter(User.email == email).first()
    if user is not None:
        return user

    user = User(email=email, name=name, role=PATIENT_ROLE)
    db.add(user)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        user = db.query(User).filter(User.email == email).one()

    db.refresh(user)
    return user


@router.put('/admin/{email}', response_model=UserResponse)
def make_admin(
    email: str,
    caller_email: str = Depends(require_admin),
    db: Session = Depends(get_db),
):
    target_email = jwt_handler.normalize_email(email)
    try:
        user = roles.promote_to_admin(db, target_email)
    except SQLAlchemyError as exc:
        db.rollback()
        raise Upstream() from exc

    logger.info('%s granted admin to %s', caller_email, target_email)
    return user


@router.get('/admin/{email}', response_model=AdminStatusResponse)
def check_admin(email: str, db: Session = Depends(get_db)):
    try:
        return AdminStatusResponse(admin=roles.is_admin(db, jwt_handler.normalize_email(email)))
    except SQLAlchemyError as exc:
        raise Upstream() from exc


@router.put('/{email}', response_model=UserResponse)
def sign_in(email: str, data: SignInRequest, db: Session = Depends(get_db)):
    normalized_email = jwt_handler.normalize_email(email)
    try:
        user = register_user(db, normalized_email, data.name)
    except SQLAlchemyError as exc:
        db.rollback()
        raise Upstream() from exc

    return user


@router.get('', response_model=list[UserResponse])
def list_users(
    caller_email: str = Depends(authenticate),
    db: Session = Depends(get_db),
):
    del caller_email
    try:
        return db.query(User).order_by(User.email.asc()).all()
    except SQLAlchemyError as exc:
        raise Upstream() from exc
