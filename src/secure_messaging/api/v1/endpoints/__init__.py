# src/secure_messaging/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .conversations import router as conversations_router
from .keys import router as keys_router
from .messages import router as messages_router
from .system import router as system_router

__all__ = [
    "conversations_router",
    "keys_router",
    "messages_router",
    "system_router",
]
