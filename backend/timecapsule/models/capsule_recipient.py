# backend/timecapsule/models/capsule_recipient.py
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timecapsule.core.clock import utcnow
from timecapsule.db.base import Base
from timecapsule.models.user import new_id


class CapsuleRecipient(Base):
    __tablename__ = "capsule_recipients"
    __table_args__ = (UniqueConstraint("capsule_id", "email", name="uq_capsule_recipient_email"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)

    capsule_id: Mapped[str] = mapped_column(ForeignKey("capsules.id", ondelete="CASCADE"), index=True, nullable=False)

    # stored lower-cased
    email: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    capsule = relationship("Capsule", back_populates="recipients")
