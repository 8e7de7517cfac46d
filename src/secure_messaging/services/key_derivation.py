"""Deterministic conversation keys and their public labels."""

from __future__ import annotations

import hashlib
from collections.abc import Iterable
from typing import Final

from secure_messaging.core.settings import settings

CONVERSATION_ID_LENGTH: Final[int] = 16
KEY_LABEL_BYTES: Final[int] = 8


def canonical_participants(participants: Iterable[str]) -> list[str]:
    """Return the participant set in its canonical (sorted, de-duplicated) order."""
    return sorted(set(participants))


def derive_key(participants: Iterable[str], domain_separator: str | None = None) -> bytes:
    """Derive the 32-byte conversation key from a participant set.

    Any participant can recompute the key without a key exchange: the result
    depends only on the set of identities and the application's domain
    separator, never on ordering.
    """
    separator = settings.key_domain_separator if domain_separator is None else domain_separator
    hasher = hashlib.sha256()
    for participant in canonical_participants(participants):
        hasher.update(participant.encode("utf-8"))
    hasher.update(separator.encode("utf-8"))
    return hasher.digest()


def conversation_id_for(participants: Iterable[str]) -> str:
    """Return the short content-derived id of the conversation between ``participants``."""
    joined = "-".join(canonical_participants(participants))
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()[:CONVERSATION_ID_LENGTH]


def key_label(key: bytes) -> str:
    """Return a non-reversible label identifying ``key``."""
    return f"phi_key_{hashlib.sha256(key).digest()[:KEY_LABEL_BYTES].hex()}"


def mint_key_label(conversation_id: str, now: int) -> str:
    """Return a fresh label for a conversation key generated or rotated at ``now``.

    The underlying key is unchanged; only the label advertised to clients moves.
    """
    return f"phi_conv_{conversation_id}_{now}"
