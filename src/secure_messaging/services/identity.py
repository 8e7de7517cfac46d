"""Identity validation and conversation membership checks."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Final

from secure_messaging.core.errors import ValidationError
from secure_messaging.schemas import ConversationRecord

# Textual form of the host's anonymous principal.
ANONYMOUS_IDENTITY: Final[str] = "2vxsx-fae"
MIN_IDENTITY_LENGTH: Final[int] = 5
MAX_CONVERSATION_ID_LENGTH: Final[int] = 128


def validate_identity(identity: str | None, field_name: str = "identity") -> str:
    """Return ``identity`` if it is a usable, non-anonymous caller identifier.

    Raises:
        ValidationError: For the anonymous identity, empty values, or values
            shorter than the minimum length.
    """
    if identity is None or identity == ANONYMOUS_IDENTITY:
        raise ValidationError(f"Invalid {field_name}: anonymous identity not allowed")
    if not identity or len(identity) < MIN_IDENTITY_LENGTH:
        raise ValidationError(f"Invalid {field_name}: malformed identity")
    return identity


def validate_identity_set(identities: Iterable[str], field_name: str = "participant") -> list[str]:
    """Validate every member of ``identities`` and return them as a list."""
    return [validate_identity(identity, field_name) for identity in identities]


def validate_conversation_id(conversation_id: str) -> str:
    """Return ``conversation_id`` if it is non-empty and not overly long."""
    if not conversation_id:
        raise ValidationError("Conversation ID cannot be empty")
    if len(conversation_id) > MAX_CONVERSATION_ID_LENGTH:
        raise ValidationError("Conversation ID too long")
    return conversation_id


def is_participant(conversation: ConversationRecord, identity: str) -> bool:
    """Return True if ``identity`` belongs to the conversation's participant set."""
    return identity in conversation.participants
