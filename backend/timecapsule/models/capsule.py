# backend/timecapsule/models/capsule.py
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timecapsule.core.clock import utcnow
from timecapsule.db.base import Base
from timecapsule.models.user import new_id


class Capsule(Base):
    __tablename__ = "capsules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    unlock_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # manual override; the effective state also depends on unlock_at
    is_unlocked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    owner_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    owner = relationship("User", back_populates="capsules")
    content = relationship(
        "CapsuleContent",
        back_populates="capsule",
        uselist=False,
        cascade="all,delete-orphan",
        passive_deletes=True,
    )
    media = relationship(
        "CapsuleMedia",
        back_populates="capsule",
        cascade="all,delete-orphan",
        passive_deletes=True,
        order_by="CapsuleMedia.created_at",
    )
    recipients = relationship(
        "CapsuleRecipient",
        back_populates="capsule",
        cascade="all,delete-orphan",
        passive_deletes=True,
        order_by="CapsuleRecipient.created_at",
    )
