# tests/services/test_rate_limiter.py
"""Tests for fixed-window rate limiting."""

import pytest

from secure_messaging.core.errors import RateLimitError
from secure_messaging.services import RateLimiter

from tests.conftest import ALICE, BOB


def _call(limiter: RateLimiter, store, identity: str = ALICE, max_calls: int = 3):
    with store.atomic():
        return limiter.check_and_record(identity, max_calls, 1_000)


def test_first_call_opens_window(store, clock) -> None:
    record = _call(RateLimiter(store, clock), store)

    assert record.call_count == 1
    assert record.window_start == clock()
    assert store.rate_limits.get(ALICE).window_duration == 1_000


def test_call_over_ceiling_is_rejected(store, clock) -> None:
    limiter = RateLimiter(store, clock)
    for _ in range(3):
        _call(limiter, store)
        clock.advance(10)

    with pytest.raises(RateLimitError):
        _call(limiter, store)
    assert store.rate_limits.get(ALICE).call_count == 3


def test_window_resets_after_elapsing(store, clock) -> None:
    limiter = RateLimiter(store, clock)
    for _ in range(3):
        _call(limiter, store)
    with pytest.raises(RateLimitError):
        _call(limiter, store)

    clock.advance(1_000)
    record = _call(limiter, store)
    assert record.call_count == 1
    assert record.window_start == clock()


def test_identities_are_counted_separately(store, clock) -> None:
    limiter = RateLimiter(store, clock)
    for _ in range(3):
        _call(limiter, store, ALICE)

    assert _call(limiter, store, BOB).call_count == 1
