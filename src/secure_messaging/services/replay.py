"""Replay protection for client-supplied nonces."""

from __future__ import annotations

import logging

from secure_messaging.core.errors import ReplayError
from secure_messaging.core.settings import settings
from secure_messaging.db.time import Clock, now_ms
from secure_messaging.schemas import NonceRecord
from secure_messaging.store import MessagingStore

logger = logging.getLogger(__name__)


class ReplayGuard:
    """Reject reused or stale client nonces.

    Nonces live in one global namespace: a nonce used for any conversation
    cannot be used again anywhere until it expires.
    """

    def __init__(
        self,
        store: MessagingStore,
        clock: Clock = now_ms,
        *,
        expiry_ms: int | None = None,
        future_skew_ms: int | None = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self.expiry_ms = settings.nonce_expiry_ms if expiry_ms is None else expiry_ms
        self.future_skew_ms = (
            settings.nonce_future_skew_ms if future_skew_ms is None else future_skew_ms
        )

    def validate_nonce(self, nonce: str, timestamp: int) -> None:
        """Accept ``nonce`` once within the expiry window, then record it.

        Raises:
            ReplayError: If the nonce is empty, the timestamp lies too far in
                the future or past, or the nonce was already seen.
        """
        now = self._clock()

        if not nonce:
            raise ReplayError("Nonce cannot be empty")
        if timestamp > now + self.future_skew_ms:
            logger.warning("Rejected nonce with timestamp %d ahead of clock %d", timestamp, now)
            raise ReplayError("Timestamp is too far in the future")
        if now - timestamp > self.expiry_ms:
            logger.warning("Rejected nonce with expired timestamp %d", timestamp)
            raise ReplayError("Request has expired")
        if nonce in self._store.nonces:
            logger.warning("Rejected replayed nonce")
            raise ReplayError("Nonce has already been used")

        self._store.nonces.insert(nonce, NonceRecord(nonce=nonce, seen_at=timestamp))
        purged = self._store.nonces.purge_older_than(now - self.expiry_ms)
        if purged:
            logger.debug("Purged %d expired nonces", purged)
