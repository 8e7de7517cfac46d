# tests/conftest.py
from __future__ import annotations

import base64
import os
import uuid
from collections.abc import Callable, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jose import jwt
from nacl.signing import SigningKey
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("IDENTITY_TOKEN_SECRET", "test-identity-secret")

from secure_messaging.api.v1.dependencies import get_clock, get_store
from secure_messaging.core.settings import settings
from secure_messaging.db.session import Base
from secure_messaging.main import app as fastapi_app
from secure_messaging.services import MessagingService
from secure_messaging.store import MessagingStore

TEST_DB_URL = "sqlite://"
START_MS = 1_700_000_000_000

ALICE = "alice-principal"
BOB = "bob-principal"
CAROL = "carol-principal"


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: int = START_MS) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


def next_nonce() -> str:
    """Return a nonce no other test call has used."""
    return f"nonce-{uuid.uuid4().hex}"


def make_token(identity: str, secret: str | None = None) -> str:
    """Sign an identity token the way the identity subsystem does."""
    return jwt.encode(
        {"sub": identity},
        secret or settings.identity_token_secret,
        algorithm=settings.identity_token_algorithm,
    )


def auth_headers(identity: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(identity)}"}


def encode_pubkey(signing_key: SigningKey) -> str:
    return base64.urlsafe_b64encode(signing_key.verify_key.encode()).decode().rstrip("=")


@pytest.fixture()
def engine() -> Iterator[Engine]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def store(session_factory: sessionmaker[Session]) -> Iterator[MessagingStore]:
    with MessagingStore(session_factory) as opened:
        yield opened


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def service(store: MessagingStore, clock: FakeClock) -> MessagingService:
    return MessagingService(store, clock=clock)


@pytest.fixture()
def send(service: MessagingService, clock: FakeClock) -> Callable[..., object]:
    """Send a message with a fresh nonce stamped at the current fake time."""

    def _send(caller: str, conversation_id: str, recipient: str, content: str, **kwargs):
        kwargs.setdefault("nonce", next_nonce())
        kwargs.setdefault("timestamp", clock())
        return service.send_message(caller, conversation_id, recipient, content, **kwargs)

    return _send


@pytest.fixture()
def signing_key() -> SigningKey:
    return SigningKey.generate()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def client(
    app: FastAPI,
    session_factory: sessionmaker[Session],
    clock: FakeClock,
) -> Iterator[TestClient]:
    def _get_store_override() -> Iterator[MessagingStore]:
        with MessagingStore(session_factory) as opened:
            yield opened

    app.dependency_overrides[get_store] = _get_store_override
    app.dependency_overrides[get_clock] = lambda: clock
    try:
        with TestClient(app, base_url="http://test") as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(get_store, None)
        app.dependency_overrides.pop(get_clock, None)
