"""Error kinds surfaced by the messaging core.

Every domain failure is an instance of :class:`MessagingError`, so callers can
catch a single base class and render ``status_code``/``detail``. Store
corruption is intentionally not part of this hierarchy.
"""

from __future__ import annotations

from typing import ClassVar


class MessagingError(Exception):
    """Base exception for expected, reportable failures."""

    status_code: ClassVar[int] = 400
    kind: ClassVar[str] = "messaging_error"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(MessagingError):
    """Raised when a field is empty, oversized or malformed."""

    status_code = 400
    kind = "validation_error"


class RecordTooLargeError(ValidationError):
    """Raised when a record exceeds the serialized size ceiling of its map."""

    kind = "record_too_large"


class AuthorizationError(MessagingError):
    """Raised when the caller is not a participant or owner."""

    status_code = 403
    kind = "authorization_error"


class NotFoundError(MessagingError):
    """Raised for unknown conversation or message ids."""

    status_code = 404
    kind = "not_found"


class ConflictError(MessagingError):
    """Raised when a conversation id collides with an existing one."""

    status_code = 409
    kind = "conflict"


class RateLimitError(MessagingError):
    """Raised when the caller exceeds the call ceiling of the active window."""

    status_code = 429
    kind = "rate_limited"


class ReplayError(MessagingError):
    """Raised for reused nonces, expired nonces or out-of-tolerance timestamps."""

    status_code = 409
    kind = "replay_rejected"


class CryptoError(MessagingError):
    """Raised for wrong key lengths, malformed envelopes or undecodable bytes."""

    status_code = 400
    kind = "crypto_error"


class StoreCorruptionError(RuntimeError):
    """Raised when a stored record can no longer be decoded."""
