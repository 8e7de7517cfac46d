# src/secure_messaging/api/v1/endpoints/messages.py
"""Per-message state endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from ..dependencies import CallerDep, MessagingServiceDep

router = APIRouter(prefix="/messages", tags=["messages"])


@router.put("/{message_id}/read")
async def mark_message_read(
    message_id: int,
    caller: CallerDep,
    service: MessagingServiceDep,
) -> dict[str, str]:
    """Mark a message as read. Only the recipient may do this."""
    service.mark_message_read(caller, message_id)
    return {"status": "marked_as_read"}


@router.delete("/{message_id}")
async def delete_message(
    message_id: int,
    caller: CallerDep,
    service: MessagingServiceDep,
) -> dict[str, str]:
    """Soft-delete a message. Only the sender may do this."""
    service.delete_message(caller, message_id)
    return {"status": "deleted"}
