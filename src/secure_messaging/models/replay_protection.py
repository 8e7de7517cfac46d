# src/secure_messaging/models/replay_protection.py
"""Models supporting replay protection."""


from sqlalchemy import BigInteger, Text
from sqlalchemy.orm import Mapped, mapped_column

from secure_messaging.db.session import Base


class NonceReplay(Base):
    """Record indicating that a client nonce has already been used."""

    __tablename__ = "nonce_record"

    # nonce -> existence means "already seen" until it ages out.
    nonce: Mapped[str] = mapped_column(Text, primary_key=True)
    # Indexed so expiry sweeps only touch stale rows.
    seen_at: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
