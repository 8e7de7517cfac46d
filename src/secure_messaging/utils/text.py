# src/secure_messaging/utils/text.py
"""Input validation and sanitizing helpers for user-supplied text."""

from __future__ import annotations

from typing import Final

from secure_messaging.core.errors import ValidationError

ALLOWED_PUNCTUATION: Final[frozenset[str]] = frozenset(".,!?-_@#$%^&*()+=[]{}|;:'\"/~`<>")


def validate_text_not_empty(text: str, field_name: str) -> None:
    """Raise ValidationError if ``text`` is empty or only whitespace."""
    if not text.strip():
        raise ValidationError(f"{field_name} cannot be empty")


def validate_text_length(text: str, max_length: int, field_name: str) -> None:
    """Raise ValidationError if ``text`` is longer than ``max_length`` characters."""
    if len(text) > max_length:
        raise ValidationError(f"{field_name} exceeds maximum length of {max_length} characters")


def sanitize_text(text: str) -> str:
    """Drop characters outside the allow-list and collapse whitespace runs.

    Letters and digits from any script, whitespace and common ASCII
    punctuation survive; everything else (control characters, symbols,
    emoji) is removed.
    """
    kept = "".join(
        char for char in text if char.isalnum() or char.isspace() or char in ALLOWED_PUNCTUATION
    )
    return " ".join(kept.split())
