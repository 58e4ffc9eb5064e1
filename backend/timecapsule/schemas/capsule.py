from __future__ import annotations

import re
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from timecapsule.core.clock import to_naive_utc, utcnow
from timecapsule.security import capsule_policy
from timecapsule.security.sanitizer import InputSanitizer
from timecapsule.schemas.common import CamelModel, UtcDatetime


class CamelInput(BaseModel):
    """Request body: accepts camelCase or snake_case keys, rejects unknown ones."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='forbid',
    )


_ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}(?:[T ]|$)")


def _require_iso_string(v):
    # datetime fields would otherwise accept epoch numbers, as ints or digit strings
    if not isinstance(v, str) or not _ISO_DATE_PATTERN.match(v.strip()):
        raise ValueError('unlockAt must be a valid ISO date')
    return v


class CapsuleCreate(CamelInput):
    title: str = Field(min_length=1, max_length=255)
    unlock_at: datetime

    @field_validator('title')
    @classmethod
    def validate_title(cls, v: str) -> str:
        return InputSanitizer.sanitize_title(v)

    @field_validator('unlock_at', mode='before')
    @classmethod
    def require_iso(cls, v):
        return _require_iso_string(v)

    @field_validator('unlock_at')
    @classmethod
    def store_as_utc(cls, v: datetime) -> datetime:
        return to_naive_utc(v)


class CapsuleUpdate(CamelInput):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    unlock_at: Optional[datetime] = None

    @field_validator('title')
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        return InputSanitizer.sanitize_title(v) if v is not None else None

    @field_validator('unlock_at', mode='before')
    @classmethod
    def require_iso(cls, v):
        return v if v is None else _require_iso_string(v)

    @field_validator('unlock_at')
    @classmethod
    def store_as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v) if v is not None else None


class ContentIn(CamelInput):
    message: str = Field(min_length=1)
    content_type: Optional[str] = Field(default=None, max_length=127)

    @field_validator('message')
    @classmethod
    def validate_message(cls, v: str) -> str:
        return InputSanitizer.sanitize_message(v)

    @field_validator('content_type')
    @classmethod
    def validate_content_type(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = InputSanitizer.sanitize_string(v.strip(), max_length=127)
        return v or None


class RecipientIn(CamelInput):
    email: EmailStr


class RecipientsIn(CamelInput):
    recipients: List[RecipientIn] = Field(min_length=1, max_length=100)

    def unique_emails(self) -> List[str]:
        """Lower-cased emails in request order, duplicates dropped."""
        seen: dict[str, None] = {}
        for r in self.recipients:
            seen.setdefault(r.email.strip().lower(), None)
        return list(seen)


class ContentOut(CamelModel):
    id: str
    capsule_id: str
    message: str
    content_type: str
    updated_at: UtcDatetime


class MediaOut(CamelModel):
    id: str
    capsule_id: str
    file_url: str
    file_type: str
    size: int
    created_at: UtcDatetime


class RecipientOut(CamelModel):
    id: str
    capsule_id: str
    email: str
    created_at: UtcDatetime


class CapsuleView(CamelModel):
    """
    Capsule as shown to an authorized viewer.

    ``is_unlocked`` is the effective state. While locked, ``message`` holds the
    "Locked until" placeholder and ``content`` is withheld; non-owners also get
    empty ``media`` and ``recipients``.
    """
    id: str
    title: str
    unlock_at: UtcDatetime
    is_unlocked: bool
    owner_id: str
    created_at: UtcDatetime
    updated_at: UtcDatetime
    message: Optional[str] = None
    content: Optional[ContentOut] = None
    media: List[MediaOut] = []
    recipients: List[RecipientOut] = []

    @classmethod
    def from_capsule(cls, capsule, now: Optional[datetime] = None, owner_view: bool = False) -> "CapsuleView":
        now = utcnow() if now is None else now
        unlocked = capsule_policy.is_effectively_unlocked(capsule, now)
        # only the owner sees media and invitees before unlock
        full = unlocked or owner_view
        return cls(
            id=capsule.id,
            title=capsule.title,
            unlock_at=capsule.unlock_at,
            is_unlocked=unlocked,
            owner_id=capsule.owner_id,
            created_at=capsule.created_at,
            updated_at=capsule.updated_at,
            message=capsule_policy.visible_message(capsule, now),
            content=ContentOut.model_validate(capsule.content) if unlocked and capsule.content is not None else None,
            media=[MediaOut.model_validate(m) for m in capsule.media] if full else [],
            recipients=[RecipientOut.model_validate(r) for r in capsule.recipients] if full else [],
        )


class CapsuleList(BaseModel):
    items: List[CapsuleView]
    total: int
