# src/secure_messaging/schemas/security.py
"""Anti-abuse bookkeeping records."""

from pydantic import BaseModel


class RateLimitRecord(BaseModel):
    """Fixed-window call counter for one identity."""

    principal: str
    call_count: int
    window_start: int
    window_duration: int


class NonceRecord(BaseModel):
    """First sighting of a client nonce."""

    nonce: str
    seen_at: int
