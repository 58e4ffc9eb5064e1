"""
Capsule visibility and authorization rules.

Single decision point for "what may this caller see or do with this capsule":

* effective unlock is ``is_unlocked OR now >= unlock_at``
* the owner may always read and is the only one who may write
* a recipient (email match, case-insensitive) may read once effectively unlocked
* everyone else gets one combined denial, so outsiders cannot tell
  "not invited" apart from "not unlocked yet"
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from timecapsule.core.clock import isoformat_z, to_naive_utc, utcnow
from timecapsule.core.identity import Identity


LOCKED_OR_UNAUTHORIZED = "Locked or unauthorized"
FORBIDDEN = "Forbidden"


def is_effectively_unlocked(capsule, now: Optional[datetime] = None) -> bool:
    if capsule.is_unlocked:
        return True
    now = utcnow() if now is None else to_naive_utc(now)
    return now >= to_naive_utc(capsule.unlock_at)


def is_owner(capsule, identity: Identity) -> bool:
    return capsule.owner_id == identity.id


def is_recipient(capsule, identity: Identity) -> bool:
    if not identity.email:
        return False
    email = identity.email.strip().lower()
    if not email:
        return False
    return any((r.email or "").lower() == email for r in (capsule.recipients or []))


def can_read(capsule, identity: Identity, now: Optional[datetime] = None) -> bool:
    if is_owner(capsule, identity):
        return True
    return is_recipient(capsule, identity) and is_effectively_unlocked(capsule, now)


def can_write(capsule, identity: Identity) -> bool:
    return is_owner(capsule, identity)


def locked_placeholder(capsule) -> str:
    return f"🔒 Locked until {isoformat_z(capsule.unlock_at)}"


def visible_message(capsule, now: Optional[datetime] = None) -> Optional[str]:
    """Message to render: the real one when unlocked, otherwise the placeholder."""
    if not is_effectively_unlocked(capsule, now):
        return locked_placeholder(capsule)
    return capsule.content.message if capsule.content is not None else None
