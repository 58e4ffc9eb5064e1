# backend/timecapsule/api/errors.py
from __future__ import annotations

import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def server_error(db: Session, what: str, exc: Exception) -> HTTPException:
    """Roll back, log the traceback, and build the generic 500 for a failed handler."""
    db.rollback()
    logger.exception(what)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": what, "details": str(exc)},
    )
