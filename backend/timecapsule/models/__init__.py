# backend/timecapsule/models/__init__.py
from .user import User
from .capsule import Capsule
from .capsule_content import CapsuleContent
from .capsule_media import CapsuleMedia
from .capsule_recipient import CapsuleRecipient

__all__ = ["User", "Capsule", "CapsuleContent", "CapsuleMedia", "CapsuleRecipient"]
