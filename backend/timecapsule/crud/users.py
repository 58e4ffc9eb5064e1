# backend/timecapsule/crud/users.py
from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from timecapsule.core.security import hash_password
from timecapsule.models.user import User


def get_by_id(db: Session, user_id: str) -> User | None:
    return db.get(User, user_id)


def get_by_email(db: Session, email: str) -> User | None:
    stmt = select(User).where(User.email == email.strip().lower())
    return db.execute(stmt).scalar_one_or_none()


def list_users(db: Session) -> List[User]:
    stmt = select(User).order_by(User.created_at)
    return list(db.execute(stmt).scalars())


def create_user(db: Session, email: str, password: str) -> User:
    """Raises sqlalchemy IntegrityError when the email is taken."""
    u = User(
        email=email,
        password_hash=hash_password(password),
    )

    db.add(u)
    db.commit()
    db.refresh(u)
    return u


def update_user(db: Session, user: User, email: Optional[str] = None, password: Optional[str] = None) -> User:
    if email is not None:
        user.email = email
    if password is not None:
        user.password_hash = hash_password(password)

    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, user: User) -> None:
    db.delete(user)
    db.commit()
