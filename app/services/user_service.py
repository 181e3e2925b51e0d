"""User service operations."""

from datetime import datetime, timezone

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.models.user import User, normalize_user_role


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.scalar(select(User).where(func.lower(User.email) == email.strip().lower()).limit(1))


def get_user_by_id(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def identity_taken(db: Session, username: str, email: str) -> bool:
    """Return True when username or email already belongs to an account."""
    existing = db.scalar(
        select(User.id)
        .where(or_(User.username == username, func.lower(User.email) == email.strip().lower()))
        .limit(1)
    )
    return existing is not None


def create_user(
    db: Session,
    username: str,
    email: str,
    hashed_password: str,
    role: str = "CUSTOMER",
    phone: str | None = None,
    address: str | None = None,
) -> User:
    user = User(
        username=username,
        email=email.strip().lower(),
        password_hash=hashed_password,
        role=normalize_user_role(role),
        phone=phone,
        address=address,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def mark_logged_in(db: Session, user: User) -> None:
    user.last_login_at = datetime.now(timezone.utc)
    db.commit()


def count_users(db: Session) -> int:
    return int(db.scalar(select(func.count(User.id))) or 0)
