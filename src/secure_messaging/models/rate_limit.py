# src/secure_messaging/models/rate_limit.py
from sqlalchemy import BigInteger, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from secure_messaging.db.session import Base


class RateLimit(Base):
    __tablename__ = "rate_limit"
    # principal -> fixed window counter; the window is active while now - window_start < window_duration.
    principal: Mapped[str] = mapped_column(Text, primary_key=True)
    call_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    window_start: Mapped[int] = mapped_column(BigInteger, nullable=False)
    window_duration: Mapped[int] = mapped_column(BigInteger, nullable=False)
