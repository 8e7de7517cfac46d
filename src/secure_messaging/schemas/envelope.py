# src/secure_messaging/schemas/envelope.py
"""Ciphertext envelope schema."""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from secure_messaging.core.errors import CryptoError


class Envelope(BaseModel):
    """Self-describing ciphertext bundle stored in place of plaintext."""

    encrypted_content: str = Field(..., description="Base64-encoded ciphertext")
    nonce: str = Field(..., description="Base64-encoded 12-byte nonce")
    key_id: str = Field(..., description="Label derived from the key hash; not reversible")
    tag: str = Field(..., description="Base64-encoded HMAC over nonce and ciphertext")

    def to_json(self) -> str:
        """Return the compact JSON text stored in message records."""
        return self.model_dump_json()

    @classmethod
    def from_json(cls, raw: str) -> Envelope:
        """Parse stored envelope text.

        Raises:
            CryptoError: If ``raw`` is not a well-formed envelope.
        """
        try:
            return cls.model_validate_json(raw)
        except PydanticValidationError as err:
            raise CryptoError("Malformed ciphertext envelope") from err

