from typing import Optional

from sqlalchemy.orm import Session

from shared.models.users import User
from shared.utils.enums import UserStatus


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def get_or_create_user(db: Session, email: str, full_name: str) -> User:
    """Find the login identity for ``email`` or stage a new one in ``db``."""
    user = get_user_by_email(db, email)
    if user:
        return user
    user = User(email=email.strip().lower(), full_name=full_name,
                status=UserStatus.active.value)
    db.add(user)
    db.flush()
    return user
