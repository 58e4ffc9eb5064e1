from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator

from timecapsule.schemas.common import CamelModel, UtcDatetime

# clients send the plain password in a field historically named "passwordHash"
_PASSWORD_ALIASES = AliasChoices("passwordHash", "password_hash", "password")


class UserCreate(BaseModel):
    model_config = ConfigDict(extra='forbid')

    email: EmailStr
    password: str = Field(
        min_length=8,
        max_length=128,
        validation_alias=_PASSWORD_ALIASES,
        description="Plain password (8+ chars), hashed before storage",
    )

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class UserUpdate(BaseModel):
    model_config = ConfigDict(extra='forbid')

    email: Optional[EmailStr] = None
    password: Optional[str] = Field(
        default=None,
        min_length=8,
        max_length=128,
        validation_alias=_PASSWORD_ALIASES,
    )

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v is not None else None


class UserOut(CamelModel):
    """Public view of a user. Has no password field, so the hash cannot leak."""
    id: str
    email: str
    created_at: UtcDatetime
    updated_at: UtcDatetime
