# src/secure_messaging/models/__init__.py
"""SQLAlchemy models for the secure messaging store."""

from .conversation import Conversation
from .id_counter import IdCounter
from .message import Message
from .rate_limit import RateLimit
from .replay_protection import NonceReplay
from .user_key import UserKey

__all__ = [
    "Conversation",
    "IdCounter",
    "Message",
    "NonceReplay",
    "RateLimit",
    "UserKey",
]
