# src/secure_messaging/schemas/__init__.py
"""
Pydantic schemas for stored records and API request/response models.

Records are the transient copies services mutate; the store persists them.
"""

from .conversation import (
    ConversationCreate,
    ConversationMetadata,
    ConversationRecord,
    ConversationType,
    KeyLabelResponse,
    KeyRotationRequest,
)
from .envelope import Envelope
from .message import Attachment, MessageCreate, MessageRecord, MessageType
from .security import NonceRecord, RateLimitRecord
from .user_key import KeyType, UserKeyRecord, UserKeyRegister

__all__ = [
    "Attachment",
    "ConversationCreate", "ConversationMetadata", "ConversationRecord", "ConversationType",
    "Envelope",
    "KeyLabelResponse", "KeyRotationRequest",
    "KeyType", "UserKeyRecord", "UserKeyRegister",
    "MessageCreate", "MessageRecord", "MessageType",
    "NonceRecord", "RateLimitRecord",
]
