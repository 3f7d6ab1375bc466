import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from doctors_portal.models.user import ADMIN_ROLE, User

logger = logging.getLogger(__name__)


def is_admin(db: Session, email: str) -> bool:
    user = db.query(User).filter(User.email == email).first()
    return user is not None and user.role == ADMIN_ROLE


def promote_to_admin(db: Session, target_email: str) -> User:
    """Upsert ``target_email`` with the admin role. Promoting an admin is a no-op."""
    user = db.query(User).filter(User.email == target_email).first()
    if user is not None and user.role == ADMIN_ROLE:
        return user

    if user is None:
        user = User(email=target_email, role=ADMIN_ROLE)
        db.add(user)
    else:
        user.role = ADMIN_ROLE

    try:
        db.commit()
    except IntegrityError:
        # Created concurrently; promote the row that won.
        db.rollback()
        user = db.query(User).filter(User.email == target_email).one()
        user.role = ADMIN_ROLE
        db.commit()

    db.refresh(user)
    logger.info('Promoted %s to admin', target_email)
    return user
