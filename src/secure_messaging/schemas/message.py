# src/secure_messaging/schemas/message.py
"""Message-related Pydantic schemas."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class MessageType(str, Enum):
    """Content kinds a message may carry."""

    TEXT = "text"
    IMAGE = "image"
    FILE = "file"
    AUDIO = "audio"
    VIDEO = "video"
    SYSTEM = "system"


class Attachment(BaseModel):
    """File attached to a message; ``encrypted_data`` holds an envelope once stored."""

    id: str
    filename: str
    content_type: str
    size: int = Field(..., ge=0)
    encrypted_data: str = ""


class MessageRecord(BaseModel):
    """Message as stored and returned by the service."""

    id: int
    conversation_id: str
    sender_id: str
    recipient_id: str
    content: str
    message_type: MessageType
    timestamp: int
    is_read: bool = False
    is_deleted: bool = False
    reply_to: int | None = None
    attachments: list[Attachment] = Field(default_factory=list)

    model_config = ConfigDict(validate_assignment=True)


class MessageCreate(BaseModel):
    """Schema for sending a message into a conversation."""

    recipient_id: str = Field(..., description="Identity of the participant receiving the message")
    content: str = Field(..., description="Plaintext content; encrypted before storage")
    message_type: MessageType = MessageType.TEXT
    reply_to: int | None = None
    attachments: list[Attachment] = Field(default_factory=list)
    nonce: str = Field(..., description="Single-use client nonce")
    timestamp: int = Field(..., description="Client timestamp in milliseconds")
