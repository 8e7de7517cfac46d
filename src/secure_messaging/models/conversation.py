# src/secure_messaging/models/conversation.py
"""Models describing conversations between participants."""

from typing import Any

from sqlalchemy import JSON, BigInteger, Text
from sqlalchemy.orm import Mapped, mapped_column

from secure_messaging.db.session import Base


class Conversation(Base):
    """Conversation keyed by a hash of its sorted participant set.

    The participant list is fixed when the row is created; only the archive
    flag, ``updated_at`` and ``last_message_id`` change afterwards.
    """

    __tablename__ = "conversation"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    participants: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    conversation_type: Mapped[str] = mapped_column(Text, nullable=False)

    # Named metadata_ to avoid clashing with DeclarativeBase.metadata.
    metadata_: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, name="metadata")

    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    last_message_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    is_archived: Mapped[bool] = mapped_column(default=False, nullable=False)
