from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from doctors_portal.auth import jwt_handler
from doctors_portal.auth.dependencies import authenticate
from doctors_portal.core.errors import NotFound, Upstream
from doctors_portal.database import get_db
from doctors_portal.models.user import User

router = APIRouter(tags=["auth"])


class TokenRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = jwt_handler.normalize_email(value)
        if not normalized:
            raise ValueError("Email is required.")
        return normalized


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class MeResponse(BaseModel):
    email: str
    role: str


@router.post("/token", response_model=TokenResponse)
def issue_token(data: TokenRequest, db: Session = Depends(get_db)):
    try:
        token = jwt_handler.issue_token(db, data.email)
    except SQLAlchemyError as exc:
        raise Upstream() from exc
    return TokenResponse(access_token=token)


@router.get("/me", response_model=MeResponse)
def me(caller_email: str = Depends(authenticate), db: Session = Depends(get_db)):
    try:
        user = db.query(User).filter(User.email == caller_email).first()
    except SQLAlchemyError as exc:
        raise Upstream() from exc
    if user is None:
        raise NotFound("User not found.")
    return MeResponse(email=user.email, role=user.role)
