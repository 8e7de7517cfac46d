# src/secure_messaging/models/user_key.py
"""Public key material registered by identities."""

from sqlalchemy import BigInteger, Text
from sqlalchemy.orm import Mapped, mapped_column

from secure_messaging.db.session import Base


class UserKey(Base):
    """One public key record per identity; re-registration overwrites it."""

    __tablename__ = "user_key"

    user_id: Mapped[str] = mapped_column(Text, primary_key=True)
    public_key: Mapped[str] = mapped_column(Text, nullable=False)
    key_type: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
