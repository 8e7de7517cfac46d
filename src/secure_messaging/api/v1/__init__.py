# src/secure_messaging/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    conversations_router,
    keys_router,
    messages_router,
    system_router,
)

__all__ = [
    "conversations_router",
    "keys_router",
    "messages_router",
    "system_router",
]
