# memobot/models/user.py
from __future__ import annotations

from sqlalchemy import Column, BigInteger, String

from memobot.models.base import Base, UtcDateTime
from memobot.utils.dates import now_utc


class UserPreference(Base):
    __tablename__ = "users"

    user_id = Column(BigInteger, primary_key=True, autoincrement=False)
    username = Column(String(64), nullable=True)

    # чат по умолчанию для напоминаний, созданных вне бота (CLI)
    delivery_target = Column(BigInteger, nullable=True)

    created_at = Column(UtcDateTime, nullable=False, default=now_utc)
    updated_at = Column(UtcDateTime, nullable=False, default=now_utc, onupdate=now_utc)
