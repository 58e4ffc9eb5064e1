# backend/timecapsule/api/routes/users.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from timecapsule.api.errors import server_error
from timecapsule.crud import capsules as crud_capsules
from timecapsule.crud import users as crud_users
from timecapsule.db.session import get_db
from timecapsule.models.user import User
from timecapsule.schemas.common import MessageOut
from timecapsule.schemas.user import UserCreate, UserOut, UserUpdate
from timecapsule.storage.uploads import remove_media_files

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def _email_conflict() -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")


def _get_user_or_404(db: Session, user_id: str) -> User:
    u = crud_users.get_by_id(db, user_id)
    if not u:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return u


@router.get("", response_model=List[UserOut])
def list_users(db: Session = Depends(get_db)):
    # TODO: restrict listing to admins once real authentication lands
    try:
        return crud_users.list_users(db)
    except Exception as e:
        raise server_error(db, "Error fetching users", e)


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    try:
        u = crud_users.create_user(db, payload.email, payload.password)
    except IntegrityError:
        db.rollback()
        raise _email_conflict()
    except Exception as e:
        raise server_error(db, "Error creating user", e)

    logger.info("Created user %s", u.id)
    return u


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: str, db: Session = Depends(get_db)):
    return _get_user_or_404(db, user_id)


@router.patch("/{user_id}", response_model=UserOut)
def update_user(user_id: str, payload: UserUpdate, db: Session = Depends(get_db)):
    if payload.email is None and payload.password is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

    u = _get_user_or_404(db, user_id)

    try:
        return crud_users.update_user(db, u, email=payload.email, password=payload.password)
    except IntegrityError:
        db.rollback()
        raise _email_conflict()
    except Exception as e:
        raise server_error(db, "Error updating user", e)


@router.delete("/{user_id}", response_model=MessageOut)
def delete_user(user_id: str, request: Request, db: Session = Depends(get_db)):
    u = _get_user_or_404(db, user_id)
    media_urls = crud_capsules.media_urls_for_owner(db, u.id)

    try:
        crud_users.delete_user(db, u)
    except Exception as e:
        raise server_error(db, "Error deleting user", e)

    # capsules went with the user through the FK cascade; their files go here
    remove_media_files(Path(request.app.state.settings.upload_dir), media_urls)

    logger.info("Deleted user %s", user_id)
    return MessageOut(message="User deleted successfully")
