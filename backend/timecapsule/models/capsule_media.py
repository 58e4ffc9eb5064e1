# backend/timecapsule/models/capsule_media.py
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timecapsule.core.clock import utcnow
from timecapsule.db.base import Base
from timecapsule.models.user import new_id


class CapsuleMedia(Base):
    __tablename__ = "capsule_media"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)

    capsule_id: Mapped[str] = mapped_column(ForeignKey("capsules.id", ondelete="CASCADE"), index=True, nullable=False)

    file_url: Mapped[str] = mapped_column(String(512), nullable=False)
    file_type: Mapped[str] = mapped_column(String(127), nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    capsule = relationship("Capsule", back_populates="media")
