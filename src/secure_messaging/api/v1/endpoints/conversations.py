# src/secure_messaging/api/v1/endpoints/conversations.py
"""Conversation endpoints, including the messages nested under them."""

from __future__ import annotations

from fastapi import APIRouter, Query, status

from secure_messaging.core.settings import settings
from secure_messaging.schemas import (
    ConversationCreate,
    ConversationRecord,
    KeyLabelResponse,
    KeyRotationRequest,
    MessageCreate,
    MessageRecord,
)

from ..dependencies import CallerDep, MessagingServiceDep

router = APIRouter(prefix="/conversations", tags=["conversations"])


@router.post("/", response_model=ConversationRecord, status_code=status.HTTP_201_CREATED)
async def create_conversation(
    conversation_data: ConversationCreate,
    caller: CallerDep,
    service: MessagingServiceDep,
) -> ConversationRecord:
    """Create a conversation between the caller and the listed participants."""
    return service.create_conversation(
        caller,
        conversation_data.participants,
        conversation_data.conversation_type,
        conversation_data.metadata,
    )


@router.get("/", response_model=list[ConversationRecord])
async def list_conversations(
    caller: CallerDep,
    service: MessagingServiceDep,
) -> list[ConversationRecord]:
    """List the caller's active conversations, most recently updated first."""
    return service.get_user_conversations(caller)


@router.post("/{conversation_id}/archive", response_model=ConversationRecord)
async def archive_conversation(
    conversation_id: str,
    caller: CallerDep,
    service: MessagingServiceDep,
) -> ConversationRecord:
    """Archive a conversation the caller takes part in."""
    return service.archive_conversation(caller, conversation_id)


@router.post("/{conversation_id}/keys", response_model=KeyLabelResponse)
async def generate_key_label(
    conversation_id: str,
    caller: CallerDep,
    service: MessagingServiceDep,
) -> KeyLabelResponse:
    """Mint a fresh key label for the conversation."""
    key_id = service.generate_conversation_key_label(caller, conversation_id)
    return KeyLabelResponse(conversation_id=conversation_id, key_id=key_id)


@router.post("/{conversation_id}/keys/rotate", response_model=KeyLabelResponse)
async def rotate_key_label(
    conversation_id: str,
    rotation: KeyRotationRequest,
    caller: CallerDep,
    service: MessagingServiceDep,
) -> KeyLabelResponse:
    """Replace the conversation's advertised key label."""
    key_id = service.rotate_conversation_key_label(caller, conversation_id, rotation.old_key_id)
    return KeyLabelResponse(conversation_id=conversation_id, key_id=key_id)


@router.post(
    "/{conversation_id}/messages",
    response_model=MessageRecord,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    conversation_id: str,
    message_data: MessageCreate,
    caller: CallerDep,
    service: MessagingServiceDep,
) -> MessageRecord:
    """Encrypt and store a message. The response carries the stored envelope."""
    return service.send_message(
        caller,
        conversation_id,
        message_data.recipient_id,
        message_data.content,
        message_data.message_type,
        message_data.reply_to,
        message_data.attachments,
        nonce=message_data.nonce,
        timestamp=message_data.timestamp,
    )


@router.get("/{conversation_id}/messages", response_model=list[MessageRecord])
async def list_messages(
    conversation_id: str,
    caller: CallerDep,
    service: MessagingServiceDep,
    limit: int = Query(settings.message_page_default),
    offset: int = Query(0, ge=0),
) -> list[MessageRecord]:
    """Return decrypted messages, newest first.

    ``limit`` is capped at the configured page maximum. Conversations the
    caller cannot see look exactly like empty ones.
    """
    return service.get_conversation_messages(caller, conversation_id, limit, offset)
