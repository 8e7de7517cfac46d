# src/secure_messaging/api/v1/endpoints/system.py
"""System status endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from ..dependencies import MessagingServiceDep

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/health")
async def health_check(service: MessagingServiceDep) -> dict[str, str]:
    """Return the service status line."""
    return {"status": service.health_check()}


@router.get("/stats")
async def get_stats(service: MessagingServiceDep) -> dict[str, Any]:
    """Return record counts and the current server time in milliseconds."""
    return service.get_stats()
