# src/secure_messaging/store/__init__.py
"""Persistent store: bounded record maps plus the shared id counter."""

from .maps import BoundedMap, ConversationMap, MessageMap, NonceMap, RateLimitMap, UserKeyMap
from .messaging_store import MessagingStore, StoreClosedError

__all__ = [
    "BoundedMap",
    "ConversationMap",
    "MessageMap",
    "MessagingStore",
    "NonceMap",
    "RateLimitMap",
    "StoreClosedError",
    "UserKeyMap",
]
