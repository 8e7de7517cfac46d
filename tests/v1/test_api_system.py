# tests/v1/test_api_system.py
"""Tests for system endpoints."""

from fastapi import status

from tests.conftest import ALICE, BOB, auth_headers


def test_root_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "ok"}


def test_system_health(client) -> None:
    response = client.get("/api/v1/system/health")
    assert response.json() == {"status": "Secure Messaging service is healthy"}


def test_system_stats(client, clock) -> None:
    client.post(
        "/api/v1/conversations/",
        json={"participants": [ALICE, BOB]},
        headers=auth_headers(ALICE),
    )

    response = client.get("/api/v1/system/stats")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "total_messages": 0,
        "total_conversations": 1,
        "total_user_keys": 0,
        "timestamp": clock(),
    }
