"""Durable store owning every record map and the id counter."""
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from types import TracebackType
from typing import TypeVar

from sqlalchemy.orm import Session, sessionmaker

from secure_messaging.core.settings import settings
from secure_messaging.models import IdCounter
from secure_messaging.store.maps import (
    ConversationMap,
    MessageMap,
    NonceMap,
    RateLimitMap,
    UserKeyMap,
)

__all__ = ["MessagingStore", "StoreClosedError"]

_COUNTER_ROW_ID = 1

MapT = TypeVar("MapT")


class StoreClosedError(RuntimeError):
    """Raised when a closed store is used."""


class MessagingStore:
    """Call-scoped handle over the five record maps and the id counter.

    A store is opened once per externally invoked operation, used through
    :meth:`atomic` blocks, then closed. It never caches records between calls.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        ceilings: dict[str, int] | None = None,
    ) -> None:
        """Initialize the store without touching the database.

        Args:
            session_factory: Factory producing sessions bound to the durable database.
            ceilings: Optional per-map byte ceilings overriding the configured ones.
        """
        self._session_factory = session_factory
        self._ceilings = {**settings.record_ceilings, **(ceilings or {})}
        self._session: Session | None = None
        self._messages: MessageMap | None = None
        self._conversations: ConversationMap | None = None
        self._user_keys: UserKeyMap | None = None
        self._rate_limits: RateLimitMap | None = None
        self._nonces: NonceMap | None = None

    # --- Lifecycle --------------------------------------------------------------
    def open(self) -> MessagingStore:
        """Open a session and bind the record maps to it."""
        if self._session is not None:
            return self
        session = self._session_factory()
        self._session = session
        self._messages = MessageMap(
            session, name="message", max_bytes=self._ceilings["messages"]
        )
        self._conversations = ConversationMap(
            session, name="conversation", max_bytes=self._ceilings["conversations"]
        )
        self._user_keys = UserKeyMap(
            session, name="user key", max_bytes=self._ceilings["user_keys"]
        )
        self._rate_limits = RateLimitMap(
            session, name="rate limit", max_bytes=self._ceilings["rate_limits"]
        )
        self._nonces = NonceMap(session, name="nonce", max_bytes=self._ceilings["nonces"])
        return self

    def close(self) -> None:
        """Roll back anything uncommitted and release the session."""
        if self._session is None:
            return
        try:
            self._session.rollback()
        finally:
            self._session.close()
            self._session = None
            self._messages = None
            self._conversations = None
            self._user_keys = None
            self._rate_limits = None
            self._nonces = None

    @property
    def is_open(self) -> bool:
        """Return True while a session is bound."""
        return self._session is not None

    def __enter__(self) -> MessagingStore:
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # --- Transactions -----------------------------------------------------------
    @property
    def session(self) -> Session:
        """Return the bound session, failing loudly if the store is closed."""
        if self._session is None:
            raise StoreClosedError("MessagingStore is not open")
        return self._session

    @contextmanager
    def atomic(self) -> Iterator[MessagingStore]:
        """Commit everything written inside the block, or nothing at all."""
        session = self.session
        try:
            yield self
        except Exception:
            session.rollback()
            raise
        session.commit()

    # --- Maps ---------------------------------------------------------------------
    @staticmethod
    def _bound(record_map: MapT | None) -> MapT:
        if record_map is None:
            raise StoreClosedError("MessagingStore is not open")
        return record_map

    @property
    def messages(self) -> MessageMap:
        return self._bound(self._messages)

    @property
    def conversations(self) -> ConversationMap:
        return self._bound(self._conversations)

    @property
    def user_keys(self) -> UserKeyMap:
        return self._bound(self._user_keys)

    @property
    def rate_limits(self) -> RateLimitMap:
        return self._bound(self._rate_limits)

    @property
    def nonces(self) -> NonceMap:
        return self._bound(self._nonces)

    # --- Id allocation ----------------------------------------------------------
    def next_id(self) -> int:
        """Read, increment and write back the shared counter.

        Returns:
            The next strictly increasing 64-bit id, starting at 1.
        """
        session = self.session
        counter = session.get(IdCounter, _COUNTER_ROW_ID)
        if counter is None:
            counter = IdCounter(id=_COUNTER_ROW_ID, value=0)
            session.add(counter)
        counter.value = int(counter.value) + 1
        session.flush()
        return int(counter.value)

