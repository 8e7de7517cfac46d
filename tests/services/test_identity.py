# tests/services/test_identity.py
"""Tests for identity validation and text helpers."""

import pytest

from secure_messaging.core.errors import ValidationError
from secure_messaging.schemas import ConversationMetadata, ConversationRecord
from secure_messaging.services.identity import (
    ANONYMOUS_IDENTITY,
    is_participant,
    validate_conversation_id,
    validate_identity,
    validate_identity_set,
)
from secure_messaging.utils.text import sanitize_text, validate_text_length, validate_text_not_empty


def test_validate_identity_accepts_well_formed() -> None:
    assert validate_identity("alice-principal") == "alice-principal"


@pytest.mark.parametrize("identity", [ANONYMOUS_IDENTITY, "", "abcd", None])
def test_validate_identity_rejects(identity) -> None:
    with pytest.raises(ValidationError):
        validate_identity(identity)


def test_validate_identity_set_checks_every_member() -> None:
    assert validate_identity_set(["alice-principal", "bob-principal"]) == [
        "alice-principal",
        "bob-principal",
    ]
    with pytest.raises(ValidationError):
        validate_identity_set(["alice-principal", ANONYMOUS_IDENTITY])


def test_validate_conversation_id() -> None:
    assert validate_conversation_id("0123456789abcdef") == "0123456789abcdef"
    with pytest.raises(ValidationError):
        validate_conversation_id("")
    with pytest.raises(ValidationError):
        validate_conversation_id("x" * 129)


def test_is_participant() -> None:
    conversation = ConversationRecord(
        id="0123456789abcdef",
        participants=["alice-principal", "bob-principal"],
        conversation_type="direct",
        metadata=ConversationMetadata(),
        created_at=1,
        updated_at=1,
    )
    assert is_participant(conversation, "alice-principal")
    assert not is_participant(conversation, "carol-principal")


def test_sanitize_text_strips_and_collapses() -> None:
    assert sanitize_text("hi  there\n\n\U0001F600 <b>ok</b>\x07") == "hi there <b>ok</b>"
    assert sanitize_text("Grüße, 世界!") == "Grüße, 世界!"


def test_text_validators() -> None:
    validate_text_not_empty("x", "Content")
    validate_text_length("x" * 10, 10, "Content")
    with pytest.raises(ValidationError):
        validate_text_not_empty("   \n", "Content")
    with pytest.raises(ValidationError):
        validate_text_length("x" * 11, 10, "Content")
