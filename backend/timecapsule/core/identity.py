"""
Caller identity resolution.

The capsule policy only needs an ``Identity`` (user id plus optional email).
How that identity is established is up to the configured provider:

* ``HeaderIdentityProvider`` trusts ``X-User-Id`` / ``X-User-Email`` as sent.
  There is no verification at all, so it is only meant for local development.
* ``TokenIdentityProvider`` verifies an ``Authorization: Bearer <jwt>`` token
  issued by ``POST /auth/login``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, Request, status

from timecapsule.core.config import Settings
from timecapsule.core.security import decode_access_token


USER_ID_HEADER = "X-User-Id"
USER_EMAIL_HEADER = "X-User-Email"


@dataclass(frozen=True)
class Identity:
    id: str
    email: Optional[str] = None


class IdentityProvider:
    def resolve(self, request: Request) -> Identity:
        raise NotImplementedError


class HeaderIdentityProvider(IdentityProvider):
    def resolve(self, request: Request) -> Identity:
        user_id = (request.headers.get(USER_ID_HEADER) or "").strip()
        if not user_id:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=f"Unauthorized (send {USER_ID_HEADER} header)",
            )
        email = (request.headers.get(USER_EMAIL_HEADER) or "").strip() or None
        return Identity(id=user_id, email=email)


class TokenIdentityProvider(IdentityProvider):
    def __init__(self, config: Settings) -> None:
        self.config = config

    def resolve(self, request: Request) -> Identity:
        auth = request.headers.get("Authorization") or ""
        scheme, _, token = auth.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise _invalid_credentials()

        payload = decode_access_token(token.strip(), config=self.config)
        if not payload or not payload.get("sub"):
            raise _invalid_credentials()

        return Identity(id=str(payload["sub"]), email=payload.get("email") or None)


def _invalid_credentials() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid authentication credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def build_identity_provider(config: Settings) -> IdentityProvider:
    mode = config.auth_mode.lower()
    if mode == "header":
        return HeaderIdentityProvider()
    if mode == "token":
        return TokenIdentityProvider(config)
    raise ValueError(f"Unknown auth_mode: {config.auth_mode!r}")


def get_identity(request: Request) -> Identity:
    """Dependency: resolve the acting caller or fail with 401."""
    return request.app.state.identity_provider.resolve(request)
