# tests/services/test_replay.py
"""Tests for nonce replay protection."""

import pytest

from secure_messaging.core.errors import ReplayError
from secure_messaging.services import ReplayGuard


def _validate(guard: ReplayGuard, store, nonce: str, timestamp: int) -> None:
    with store.atomic():
        guard.validate_nonce(nonce, timestamp)


def test_fresh_nonce_is_recorded(store, clock) -> None:
    _validate(ReplayGuard(store, clock), store, "n1", clock())

    assert store.nonces.get("n1").seen_at == clock()


def test_reused_nonce_is_rejected(store, clock) -> None:
    guard = ReplayGuard(store, clock)
    _validate(guard, store, "n1", clock())
    clock.advance(1_000)

    with pytest.raises(ReplayError):
        _validate(guard, store, "n1", clock())


def test_empty_nonce_is_rejected(store, clock) -> None:
    with pytest.raises(ReplayError):
        _validate(ReplayGuard(store, clock), store, "", clock())


def test_future_skew_tolerance(store, clock) -> None:
    guard = ReplayGuard(store, clock)
    _validate(guard, store, "edge", clock() + 60_000)

    with pytest.raises(ReplayError):
        _validate(guard, store, "too-early", clock() + 60_001)
    assert "too-early" not in store.nonces


def test_freshness_window(store, clock) -> None:
    guard = ReplayGuard(store, clock)
    _validate(guard, store, "edge", clock() - 300_000)

    with pytest.raises(ReplayError):
        _validate(guard, store, "stale", clock() - 300_001)
    assert "stale" not in store.nonces


def test_expired_nonces_are_swept(store, clock) -> None:
    guard = ReplayGuard(store, clock)
    _validate(guard, store, "old", clock())
    clock.advance(300_001)

    _validate(guard, store, "new", clock())

    assert "old" not in store.nonces
    assert "new" in store.nonces


def test_custom_windows(store, clock) -> None:
    guard = ReplayGuard(store, clock, expiry_ms=1_000, future_skew_ms=0)

    with pytest.raises(ReplayError):
        _validate(guard, store, "future", clock() + 1)
    with pytest.raises(ReplayError):
        _validate(guard, store, "past", clock() - 1_001)
