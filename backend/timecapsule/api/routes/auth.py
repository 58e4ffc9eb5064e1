# backend/timecapsule/api/routes/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from timecapsule.core.security import create_access_token, verify_password
from timecapsule.crud.users import get_by_email as get_user_by_email
from timecapsule.db.session import get_db
from timecapsule.schemas.auth import LoginIn, TokenOut

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenOut)
def login(payload: LoginIn, request: Request, db: Session = Depends(get_db)):
    """Exchange email + password for a bearer token (used when auth_mode is "token")."""
    u = get_user_by_email(db, payload.email)
    if not u or not verify_password(payload.password, u.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    access_token = create_access_token(
        subject=u.id,
        extra={"email": u.email},
        config=request.app.state.settings,
    )
    return TokenOut(access_token=access_token)
