# src/secure_messaging/api/v1/endpoints/keys.py
"""Public key registry endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from secure_messaging.schemas import UserKeyRecord, UserKeyRegister

from ..dependencies import CallerDep, MessagingServiceDep

router = APIRouter(prefix="/keys", tags=["keys"])


@router.put("/me", response_model=UserKeyRecord)
async def register_user_key(
    key_data: UserKeyRegister,
    caller: CallerDep,
    service: MessagingServiceDep,
) -> UserKeyRecord:
    """Register or replace the caller's public key."""
    return service.register_user_key(caller, key_data.public_key, key_data.key_type)


@router.get("/{identity}", response_model=UserKeyRecord)
async def get_user_key(identity: str, service: MessagingServiceDep) -> UserKeyRecord:
    """Look up the public key registered by ``identity``."""
    record = service.get_user_key(identity)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User key not found",
        )
    return record
