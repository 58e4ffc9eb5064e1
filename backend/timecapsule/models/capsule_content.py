# backend/timecapsule/models/capsule_content.py
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timecapsule.core.clock import utcnow
from timecapsule.db.base import Base
from timecapsule.models.user import new_id

DEFAULT_CONTENT_TYPE = "text/markdown"


class CapsuleContent(Base):
    __tablename__ = "capsule_contents"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)

    # unique: a capsule holds at most one content record
    capsule_id: Mapped[str] = mapped_column(
        ForeignKey("capsules.id", ondelete="CASCADE"), unique=True, index=True, nullable=False
    )

    message: Mapped[str] = mapped_column(Text, nullable=False)
    content_type: Mapped[str] = mapped_column(String(127), default=DEFAULT_CONTENT_TYPE, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    capsule = relationship("Capsule", back_populates="content")
