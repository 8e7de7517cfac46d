# src/secure_messaging/services/__init__.py
"""Business logic services for the secure messaging application."""

from .crypto import CryptoService
from .messaging import MessagingService
from .rate_limiter import RateLimiter
from .replay import ReplayGuard

__all__ = [
    "CryptoService",
    "MessagingService",
    "RateLimiter",
    "ReplayGuard",
]
