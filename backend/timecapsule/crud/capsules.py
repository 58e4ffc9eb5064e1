# backend/timecapsule/crud/capsules.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, selectinload

from timecapsule.models.capsule import Capsule
from timecapsule.models.capsule_content import DEFAULT_CONTENT_TYPE, CapsuleContent
from timecapsule.models.capsule_media import CapsuleMedia
from timecapsule.models.capsule_recipient import CapsuleRecipient


def _with_relations(stmt):
    return stmt.options(
        selectinload(Capsule.content),
        selectinload(Capsule.media),
        selectinload(Capsule.recipients),
    )


def get_capsule(db: Session, capsule_id: str) -> Capsule | None:
    stmt = _with_relations(select(Capsule).where(Capsule.id == capsule_id))
    return db.execute(stmt).scalar_one_or_none()


def list_owned(db: Session, owner_id: str) -> List[Capsule]:
    stmt = _with_relations(
        select(Capsule).where(Capsule.owner_id == owner_id).order_by(Capsule.created_at.desc())
    )
    return list(db.execute(stmt).scalars())


def list_received(db: Session, email: str) -> List[Capsule]:
    stmt = _with_relations(
        select(Capsule)
        .join(CapsuleRecipient, CapsuleRecipient.capsule_id == Capsule.id)
        .where(CapsuleRecipient.email == email.strip().lower())
        .order_by(Capsule.created_at.desc())
    )
    return list(db.execute(stmt).scalars().unique())


def media_urls_for_owner(db: Session, owner_id: str) -> List[str]:
    stmt = (
        select(CapsuleMedia.file_url)
        .join(Capsule, Capsule.id == CapsuleMedia.capsule_id)
        .where(Capsule.owner_id == owner_id)
    )
    return list(db.execute(stmt).scalars())


def create_capsule(db: Session, owner_id: str, title: str, unlock_at: datetime) -> Capsule:
    c = Capsule(
        title=title,
        unlock_at=unlock_at,
        owner_id=owner_id,
        is_unlocked=False,  # system-controlled, never taken from the client
    )
    db.add(c)
    db.commit()
    return get_capsule(db, c.id)


def update_capsule(
    db: Session,
    capsule: Capsule,
    title: Optional[str] = None,
    unlock_at: Optional[datetime] = None,
) -> Capsule:
    if title is not None:
        capsule.title = title
    if unlock_at is not None:
        capsule.unlock_at = unlock_at

    db.add(capsule)
    db.commit()
    return get_capsule(db, capsule.id)


def delete_capsule(db: Session, capsule_id: str) -> None:
    """Delete the capsule and every dependent row in a single transaction."""
    try:
        db.execute(delete(CapsuleContent).where(CapsuleContent.capsule_id == capsule_id))
        db.execute(delete(CapsuleMedia).where(CapsuleMedia.capsule_id == capsule_id))
        db.execute(delete(CapsuleRecipient).where(CapsuleRecipient.capsule_id == capsule_id))
        db.execute(delete(Capsule).where(Capsule.id == capsule_id))
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.expire_all()


def upsert_content(db: Session, capsule_id: str, message: str, content_type: Optional[str] = None) -> CapsuleContent:
    content_type = content_type or DEFAULT_CONTENT_TYPE

    stmt = select(CapsuleContent).where(CapsuleContent.capsule_id == capsule_id)
    content = db.execute(stmt).scalar_one_or_none()
    if content is None:
        content = CapsuleContent(capsule_id=capsule_id, message=message, content_type=content_type)
    else:
        content.message = message
        content.content_type = content_type

    db.add(content)
    db.commit()
    db.refresh(content)
    return content


def add_media(db: Session, capsule_id: str, file_url: str, file_type: str, size: int) -> CapsuleMedia:
    media = CapsuleMedia(
        capsule_id=capsule_id,
        file_url=file_url,
        file_type=file_type,
        size=size,
    )
    db.add(media)
    db.commit()
    db.refresh(media)
    return media


def upsert_recipients(db: Session, capsule_id: str, emails: List[str]) -> List[CapsuleRecipient]:
    """
    Add recipients by email; emails already on the capsule are returned as-is.
    All inserts commit together.
    """
    emails = [e.strip().lower() for e in emails]

    stmt = select(CapsuleRecipient).where(
        CapsuleRecipient.capsule_id == capsule_id,
        CapsuleRecipient.email.in_(emails),
    )
    existing = {r.email: r for r in db.execute(stmt).scalars()}

    result: List[CapsuleRecipient] = []
    try:
        for email in emails:
            r = existing.get(email)
            if r is None:
                r = CapsuleRecipient(capsule_id=capsule_id, email=email)
                db.add(r)
                existing[email] = r
            result.append(r)
        db.commit()
    except Exception:
        db.rollback()
        raise

    for r in result:
        db.refresh(r)
    return result


def get_recipient(db: Session, capsule_id: str, recipient_id: str) -> CapsuleRecipient | None:
    stmt = select(CapsuleRecipient).where(
        CapsuleRecipient.id == recipient_id,
        CapsuleRecipient.capsule_id == capsule_id,
    )
    return db.execute(stmt).scalar_one_or_none()


def delete_recipient(db: Session, recipient: CapsuleRecipient) -> None:
    db.delete(recipient)
    db.commit()
