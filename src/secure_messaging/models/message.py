# src/secure_messaging/models/message.py
"""Models describing encrypted conversation messages."""

from typing import Any

from sqlalchemy import JSON, BigInteger, Text
from sqlalchemy.orm import Mapped, mapped_column

from secure_messaging.db.session import Base


class Message(Base):
    """Encrypted message exchanged inside a conversation.

    ``content`` and each attachment's ``encrypted_data`` hold serialized
    ciphertext envelopes. Rows are never deleted; ``is_deleted`` is a soft flag.
    """

    __tablename__ = "message"

    # Allocated by the shared id counter, never by the database.
    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    conversation_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)

    sender_id: Mapped[str] = mapped_column(Text, nullable=False)
    recipient_id: Mapped[str] = mapped_column(Text, nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False)
    message_type: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)

    is_read: Mapped[bool] = mapped_column(default=False, nullable=False)
    is_deleted: Mapped[bool] = mapped_column(default=False, nullable=False)
    reply_to: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    attachments: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
