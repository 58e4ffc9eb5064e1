# backend/timecapsule/api/routes/capsules.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile, status
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from timecapsule.api.errors import server_error
from timecapsule.core.identity import Identity, get_identity
from timecapsule.crud import capsules as crud_capsules
from timecapsule.crud import users as crud_users
from timecapsule.db.session import get_db
from timecapsule.models.capsule import Capsule
from timecapsule.schemas.capsule import (
    CapsuleCreate,
    CapsuleList,
    CapsuleUpdate,
    CapsuleView,
    ContentIn,
    ContentOut,
    MediaOut,
    RecipientOut,
    RecipientsIn,
)
from timecapsule.schemas.common import MessageOut
from timecapsule.security import capsule_policy
from timecapsule.storage.uploads import UploadRejected, remove_file, remove_media_files, save_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/capsules", tags=["capsules"])


def _get_capsule_or_404(db: Session, capsule_id: str) -> Capsule:
    cap = crud_capsules.get_capsule(db, capsule_id)
    if not cap:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Capsule not found")
    return cap


def _get_owned_capsule(db: Session, capsule_id: str, identity: Identity) -> Capsule:
    """Load a capsule for a write operation: 404 if missing, 403 unless owner."""
    cap = _get_capsule_or_404(db, capsule_id)
    if not capsule_policy.can_write(cap, identity):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=capsule_policy.FORBIDDEN)
    return cap


def _upload_dir(request: Request) -> Path:
    return Path(request.app.state.settings.upload_dir)


# ---------------------------------- CRUD -----------------------------------

@router.post("", response_model=CapsuleView, status_code=status.HTTP_201_CREATED)
def create_capsule(
    payload: CapsuleCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    # owner is always the caller
    if not crud_users.get_by_id(db, identity.id):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")

    try:
        cap = crud_capsules.create_capsule(db, identity.id, payload.title, payload.unlock_at)
    except Exception as e:
        raise server_error(db, "Error creating capsule", e)

    logger.info("Created capsule %s for owner %s", cap.id, identity.id)
    return CapsuleView.from_capsule(cap, owner_view=True)


@router.get("", response_model=CapsuleList)
def list_capsules(
    scope: Literal["owned", "received"] = Query("owned"),
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    """
    List capsules for the caller.
    - **owned**: capsules the caller created (default).
    - **received**: capsules the caller's email was invited to.

    Locked capsules carry the "Locked until" placeholder instead of the message.
    """
    try:
        if scope == "received":
            capsules = crud_capsules.list_received(db, identity.email) if identity.email else []
        else:
            capsules = crud_capsules.list_owned(db, identity.id)
    except Exception as e:
        raise server_error(db, "Error listing capsules", e)

    items = [CapsuleView.from_capsule(c, owner_view=capsule_policy.is_owner(c, identity)) for c in capsules]
    return CapsuleList(items=items, total=len(items))


@router.get("/{capsule_id}", response_model=CapsuleView)
def get_capsule(
    capsule_id: str,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    cap = _get_capsule_or_404(db, capsule_id)

    # one answer for "not invited" and "not unlocked yet"
    if not capsule_policy.can_read(cap, identity):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=capsule_policy.LOCKED_OR_UNAUTHORIZED)

    return CapsuleView.from_capsule(cap, owner_view=capsule_policy.is_owner(cap, identity))


@router.patch("/{capsule_id}", response_model=CapsuleView)
def update_capsule(
    capsule_id: str,
    payload: CapsuleUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    cap = _get_owned_capsule(db, capsule_id, identity)

    if payload.title is None and payload.unlock_at is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update. Provide title and/or unlockAt.",
        )

    try:
        updated = crud_capsules.update_capsule(db, cap, title=payload.title, unlock_at=payload.unlock_at)
    except Exception as e:
        raise server_error(db, "Error updating capsule", e)

    return CapsuleView.from_capsule(updated, owner_view=True)


@router.delete("/{capsule_id}", response_model=MessageOut)
def delete_capsule(
    capsule_id: str,
    request: Request,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    cap = _get_owned_capsule(db, capsule_id, identity)
    media_urls = [m.file_url for m in cap.media]

    try:
        crud_capsules.delete_capsule(db, cap.id)
    except Exception as e:
        raise server_error(db, "Error deleting capsule", e)

    # files go only after the rows are gone
    remove_media_files(_upload_dir(request), media_urls)

    logger.info("Deleted capsule %s", capsule_id)
    return MessageOut(message="Capsule deleted")


# --------------------------------- CONTENT ---------------------------------

@router.post("/{capsule_id}/content", response_model=ContentOut, status_code=status.HTTP_201_CREATED)
def upsert_content(
    capsule_id: str,
    payload: ContentIn,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    """Create or replace the capsule's message."""
    cap = _get_owned_capsule(db, capsule_id, identity)

    try:
        return crud_capsules.upsert_content(db, cap.id, payload.message, payload.content_type)
    except Exception as e:
        raise server_error(db, "Error upserting capsule content", e)


# ---------------------------------- MEDIA ----------------------------------

@router.post("/{capsule_id}/media", response_model=MediaOut, status_code=status.HTTP_201_CREATED)
async def upload_media(
    capsule_id: str,
    request: Request,
    file: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    """
    Attach one image/audio/video file (multipart field "file", max 5 MB).
    The file is served back under /uploads/<name>.
    """
    # db work stays off the event loop
    cap = await run_in_threadpool(_get_owned_capsule, db, capsule_id, identity)

    if file is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")

    settings = request.app.state.settings
    try:
        stored = await save_upload(file, _upload_dir(request), settings.max_upload_bytes)
    except UploadRejected as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    finally:
        await file.close()

    try:
        media = await run_in_threadpool(
            crud_capsules.add_media, db, cap.id, stored.url, stored.content_type, stored.size
        )
    except Exception as e:
        remove_file(stored.path)
        raise server_error(db, "Error saving media", e)

    logger.info("Added media %s to capsule %s", media.id, cap.id)
    return media


# -------------------------------- RECIPIENTS --------------------------------

@router.post("/{capsule_id}/recipients", response_model=List[RecipientOut], status_code=status.HTTP_201_CREATED)
def add_recipients(
    capsule_id: str,
    payload: RecipientsIn,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    """Invite recipients by email. Re-adding an existing email is a no-op."""
    cap = _get_owned_capsule(db, capsule_id, identity)

    try:
        recipients = crud_capsules.upsert_recipients(db, cap.id, payload.unique_emails())
    except Exception as e:
        raise server_error(db, "Error adding recipients", e)

    logger.info("Upserted %d recipient(s) on capsule %s", len(recipients), cap.id)
    return recipients


@router.delete("/{capsule_id}/recipients/{recipient_id}", response_model=MessageOut)
def delete_recipient(
    capsule_id: str,
    recipient_id: str,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    cap = _get_owned_capsule(db, capsule_id, identity)

    r = crud_capsules.get_recipient(db, cap.id, recipient_id)
    if not r:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipient not found")

    try:
        crud_capsules.delete_recipient(db, r)
    except Exception as e:
        raise server_error(db, "Error deleting recipient", e)

    logger.info("Removed recipient %s from capsule %s", recipient_id, cap.id)
    return MessageOut(message="Recipient deleted")
