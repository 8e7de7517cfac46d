# src/secure_messaging/models/id_counter.py
"""System-level bookkeeping models."""


from sqlalchemy import BigInteger
from sqlalchemy.orm import Mapped, mapped_column

from secure_messaging.db.session import Base


class IdCounter(Base):
    """Single-row monotonic counter supplying message ids.

    The value only ever grows; an id handed out is never reused.
    """

    __tablename__ = "id_counter"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, default=1)
    value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
