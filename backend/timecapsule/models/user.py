# backend/timecapsule/models/user.py
import uuid
from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timecapsule.core.clock import utcnow
from timecapsule.db.base import Base


def new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)

    # argon2 hash, never leaves the server
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    capsules = relationship(
        "Capsule",
        back_populates="owner",
        cascade="all,delete",
        passive_deletes=True,
    )
