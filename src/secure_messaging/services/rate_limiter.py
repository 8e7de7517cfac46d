"""Fixed-window per-identity rate limiting."""

from __future__ import annotations

import logging

from secure_messaging.core.errors import RateLimitError
from secure_messaging.db.time import Clock, now_ms
from secure_messaging.schemas import RateLimitRecord
from secure_messaging.store import MessagingStore

logger = logging.getLogger(__name__)


class RateLimiter:
    """Count calls per identity inside a fixed window.

    The counter is written before the limit is checked. Callers run this in its
    own transaction, so a rejected call is rolled back and the window stays at
    its ceiling until it elapses.
    """

    def __init__(self, store: MessagingStore, clock: Clock = now_ms) -> None:
        self._store = store
        self._clock = clock

    def check_and_record(self, identity: str, max_calls: int, window_ms: int) -> RateLimitRecord:
        """Record one call by ``identity`` and enforce the window's ceiling.

        Returns:
            The updated window record.

        Raises:
            RateLimitError: If the call pushes the count past ``max_calls``.
        """
        now = self._clock()
        record = self._store.rate_limits.get(identity)

        if record is None:
            record = RateLimitRecord(
                principal=identity,
                call_count=1,
                window_start=now,
                window_duration=window_ms,
            )
        elif now - record.window_start < window_ms:
            record.call_count += 1
            record.window_duration = window_ms
        else:
            record.call_count = 1
            record.window_start = now
            record.window_duration = window_ms

        self._store.rate_limits.insert(identity, record)

        if record.call_count > max_calls:
            logger.warning(
                "Rate limit exceeded for %s: %d calls in %d ms window",
                identity,
                record.call_count,
                window_ms,
            )
            raise RateLimitError("Rate limit exceeded. Please try again later.")
        return record
