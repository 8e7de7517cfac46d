# src/secure_messaging/schemas/conversation.py
"""Conversation-related Pydantic schemas."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ConversationType(str, Enum):
    """Kinds of conversation supported by the service."""

    DIRECT = "direct"
    GROUP = "group"
    SESSION = "session"


class ConversationMetadata(BaseModel):
    """Optional descriptive data attached to a conversation."""

    title: str | None = None
    description: str | None = None
    session_id: str | None = Field(None, description="Link to an external therapy session")
    encryption_key_id: str = Field("", description="Label of the conversation key")


class ConversationRecord(BaseModel):
    """Conversation as stored and returned by the service."""

    id: str
    participants: list[str]
    conversation_type: ConversationType
    metadata: ConversationMetadata
    created_at: int
    updated_at: int
    last_message_id: int | None = None
    is_archived: bool = False

    model_config = ConfigDict(validate_assignment=True)


class ConversationCreate(BaseModel):
    """Schema for creating a new conversation."""

    participants: list[str] = Field(..., description="Identities taking part, including the caller")
    conversation_type: ConversationType = ConversationType.DIRECT
    metadata: ConversationMetadata = Field(default_factory=ConversationMetadata)


class KeyRotationRequest(BaseModel):
    """Schema for rotating a conversation key label."""

    old_key_id: str = Field(..., description="Label currently in use by clients")


class KeyLabelResponse(BaseModel):
    """Freshly minted conversation key label."""

    conversation_id: str
    key_id: str
