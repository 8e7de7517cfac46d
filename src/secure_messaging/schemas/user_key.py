# src/secure_messaging/schemas/user_key.py
"""User key Pydantic schemas."""

from enum import Enum

from pydantic import BaseModel, Field


class KeyType(str, Enum):
    """Public key algorithms accepted for registration."""

    RSA2048 = "rsa2048"
    ECDSA = "ecdsa"
    ED25519 = "ed25519"


class UserKeyRecord(BaseModel):
    """Public key registered by an identity."""

    user_id: str
    public_key: str
    key_type: KeyType
    created_at: int
    is_active: bool = True


class UserKeyRegister(BaseModel):
    """Schema for registering the caller's public key."""

    public_key: str = Field(..., description="Encoded public key material")
    key_type: KeyType = KeyType.ED25519
