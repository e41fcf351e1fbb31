from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, CheckConstraint, Index, Text, false
from sqlalchemy.orm import Mapped, mapped_column

from memobot.utils.dates import now_utc
from .base import Base, UtcDateTime


class Memo(Base):
    __tablename__ = "memos"
    __table_args__ = (
        # вторая линия защиты: время напоминания строго позже момента вставки
        CheckConstraint("remind_at > created_at", name="remind_at_check"),
        Index("ix_memos_sent_remind_at", "sent", "remind_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    owner_id: Mapped[int] = mapped_column(BigInteger, index=True)
    delivery_target: Mapped[int] = mapped_column(BigInteger, index=True)
    content: Mapped[str] = mapped_column(Text)
    remind_at: Mapped[datetime] = mapped_column(UtcDateTime)
    sent: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false())
    created_at: Mapped[datetime] = mapped_column(UtcDateTime, default=now_utc)
    sent_at: Mapped[datetime | None] = mapped_column(UtcDateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<Memo id={self.id} owner_id={self.owner_id} remind_at={self.remind_at} sent={self.sent}>"
