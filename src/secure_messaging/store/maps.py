"""Size-bounded, key-sorted record maps backed by ORM tables."""
from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, func, inspect, select
from sqlalchemy.orm import Session

from secure_messaging.core.errors import RecordTooLargeError, StoreCorruptionError
from secure_messaging.db.session import Base
from secure_messaging.models import Conversation, Message, NonceReplay, RateLimit, UserKey
from secure_messaging.schemas import (
    ConversationRecord,
    MessageRecord,
    NonceRecord,
    RateLimitRecord,
    UserKeyRecord,
)

__all__ = [
    "BoundedMap",
    "ConversationMap",
    "MessageMap",
    "NonceMap",
    "RateLimitMap",
    "UserKeyMap",
]

logger = logging.getLogger(__name__)

KeyT = TypeVar("KeyT", int, str)
RecordT = TypeVar("RecordT", bound=BaseModel)


class BoundedMap(Generic[KeyT, RecordT]):
    """Map from a typed key to a typed record with a serialized size ceiling.

    Records are Pydantic models; rows are ORM instances. Every read decodes a
    fresh record, so callers always mutate a transient copy and write it back
    with :meth:`insert`.
    """

    model: ClassVar[type[Base]]
    record_type: ClassVar[type[BaseModel]]
    key_field: ClassVar[str]
    # ORM attribute name -> record field name, for columns renamed on the model.
    field_aliases: ClassVar[dict[str, str]] = {}

    def __init__(self, session: Session, *, name: str, max_bytes: int) -> None:
        """Initialize the map with a live session and its byte ceiling."""
        self.session = session
        self.name = name
        self.max_bytes = max_bytes

    @property
    def _key_column(self) -> Any:
        return getattr(self.model, self.key_field)

    def _decode(self, row: Base) -> RecordT:
        values = {
            self.field_aliases.get(attr.key, attr.key): getattr(row, attr.key)
            for attr in inspect(row).mapper.column_attrs
        }
        try:
            return self.record_type.model_validate(values)  # type: ignore[return-value]
        except PydanticValidationError as err:
            raise StoreCorruptionError(
                f"Stored {self.name} record {values.get(self.key_field)!r} failed to decode"
            ) from err

    def _encode(self, record: RecordT) -> dict[str, Any]:
        reverse_aliases = {field: attr for attr, field in self.field_aliases.items()}
        dumped = record.model_dump(mode="json")
        return {reverse_aliases.get(field, field): value for field, value in dumped.items()}

    def serialized_size(self, record: RecordT) -> int:
        """Return the size in bytes of the record's JSON form."""
        return len(record.model_dump_json().encode("utf-8"))

    def get(self, key: KeyT) -> RecordT | None:
        """Return a decoded copy of the record stored under ``key``."""
        row = self.session.get(self.model, key)
        if row is None:
            return None
        return self._decode(row)

    def insert(self, key: KeyT, record: RecordT) -> RecordT:
        """Insert or overwrite the record stored under ``key``.

        Raises:
            RecordTooLargeError: If the serialized record exceeds the ceiling.
            ValueError: If ``key`` disagrees with the record's own key field.
        """
        if getattr(record, self.key_field) != key:
            raise ValueError(f"Key {key!r} does not match record key for {self.name}")

        size = self.serialized_size(record)
        if size > self.max_bytes:
            logger.warning(
                "Rejected %s record %r: %d bytes exceeds ceiling of %d",
                self.name,
                key,
                size,
                self.max_bytes,
            )
            raise RecordTooLargeError(
                f"{self.name} record exceeds maximum size of {self.max_bytes} bytes"
            )

        values = self._encode(record)
        row = self.session.get(self.model, key)
        if row is None:
            self.session.add(self.model(**values))
        else:
            for attr, value in values.items():
                setattr(row, attr, value)
        self.session.flush()
        return record

    def remove(self, key: KeyT) -> RecordT | None:
        """Delete the record under ``key`` and return its last value."""
        row = self.session.get(self.model, key)
        if row is None:
            return None
        record = self._decode(row)
        self.session.delete(row)
        self.session.flush()
        return record

    def items(self, *, reverse: bool = False) -> Iterator[tuple[KeyT, RecordT]]:
        """Yield ``(key, record)`` pairs in key order."""
        order = self._key_column.desc() if reverse else self._key_column.asc()
        for row in self.session.scalars(select(self.model).order_by(order)):
            yield getattr(row, self.key_field), self._decode(row)

    def values(self, *, reverse: bool = False) -> Iterator[RecordT]:
        """Yield records in key order."""
        for _, record in self.items(reverse=reverse):
            yield record

    def __contains__(self, key: object) -> bool:
        return self.session.get(self.model, key) is not None

    def __len__(self) -> int:
        return int(self.session.scalar(select(func.count()).select_from(self.model)) or 0)


class MessageMap(BoundedMap[int, MessageRecord]):
    """Messages keyed by their globally allocated id."""

    model = Message
    record_type = MessageRecord
    key_field = "id"

    def page_for_conversation(
        self, conversation_id: str, *, limit: int, offset: int = 0
    ) -> list[MessageRecord]:
        """Return live messages of one conversation, newest first.

        Soft-deleted messages are skipped before ``offset`` is applied.
        """
        stmt = (
            select(Message)
            .where(Message.conversation_id == conversation_id, Message.is_deleted.is_(False))
            .order_by(Message.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return [self._decode(row) for row in self.session.scalars(stmt)]


class ConversationMap(BoundedMap[str, ConversationRecord]):
    """Conversations keyed by their participant-derived id."""

    model = Conversation
    record_type = ConversationRecord
    key_field = "id"
    field_aliases = {"metadata_": "metadata"}


class UserKeyMap(BoundedMap[str, UserKeyRecord]):
    """Public keys keyed by identity."""

    model = UserKey
    record_type = UserKeyRecord
    key_field = "user_id"


class RateLimitMap(BoundedMap[str, RateLimitRecord]):
    """Rate-limit windows keyed by identity."""

    model = RateLimit
    record_type = RateLimitRecord
    key_field = "principal"


class NonceMap(BoundedMap[str, NonceRecord]):
    """Used client nonces keyed by the nonce string."""

    model = NonceReplay
    record_type = NonceRecord
    key_field = "nonce"

    def purge_older_than(self, threshold: int) -> int:
        """Delete nonces first seen before ``threshold`` and return how many went.

        Uses the ``seen_at`` index, so the cost tracks the number of expired rows.
        """
        result = self.session.execute(delete(NonceReplay).where(NonceReplay.seen_at < threshold))
        return int(result.rowcount or 0)
