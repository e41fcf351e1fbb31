from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from memobot.models.memo import Memo
from memobot.utils.dates import now_utc


class MemoRepo:
    def __init__(self, s: AsyncSession) -> None:
        self.s = s

    async def create(
        self,
        *,
        owner_id: int,
        delivery_target: int,
        content: str,
        remind_at: datetime,
    ) -> Memo:
        m = Memo(
            owner_id=owner_id,
            delivery_target=delivery_target,
            content=content,
            remind_at=remind_at,
            sent=False,
        )
        self.s.add(m)
        await self.s.commit()
        await self.s.refresh(m)
        return m

    async def get(self, memo_id: int) -> Optional[Memo]:
        q = await self.s.execute(select(Memo).where(Memo.id == memo_id))
        return q.scalar_one_or_none()

    async def list_pending(self, owner_id: int, delivery_target: int) -> list[Memo]:
        q = await self.s.execute(
            select(Memo)
            .where(
                Memo.owner_id == owner_id,
                Memo.delivery_target == delivery_target,
                Memo.sent.is_(False),
            )
            .order_by(Memo.remind_at.asc(), Memo.id.asc())
        )
        return list(q.scalars())

    async def list_pending_in_target(self, delivery_target: int) -> list[Memo]:
        q = await self.s.execute(
            select(Memo)
            .where(Memo.delivery_target == delivery_target, Memo.sent.is_(False))
            .order_by(Memo.remind_at.asc(), Memo.id.asc())
        )
        return list(q.scalars())

    async def counts_by_target(self, owner_id: int) -> dict[int, int]:
        q = await self.s.execute(
            select(Memo.delivery_target, func.count(Memo.id))
            .where(Memo.owner_id == owner_id, Memo.sent.is_(False))
            .group_by(Memo.delivery_target)
        )
        return {target: count for target, count in q.all()}

    async def delete_owned(self, memo_id: int, owner_id: int) -> int:
        """
        Удаляет memo только если оно принадлежит owner_id.
        Возвращает число удалённых строк (0: нет такого или чужое).
        """
        res = await self.s.execute(
            delete(Memo).where(Memo.id == memo_id, Memo.owner_id == owner_id)
        )
        await self.s.commit()
        return res.rowcount or 0

    async def due(self, now: datetime, limit: Optional[int] = None) -> list[Memo]:
        stmt = (
            select(Memo)
            .where(Memo.sent.is_(False), Memo.remind_at <= now)
            .order_by(Memo.remind_at.asc(), Memo.id.asc())
        )
        if limit:
            stmt = stmt.limit(limit)
        q = await self.s.execute(stmt)
        return list(q.scalars())

    async def mark_sent(self, memo_id: int) -> None:
        # повторная отметка: no-op, sent назад в False не переводится
        await self.s.execute(
            update(Memo)
            .where(Memo.id == memo_id, Memo.sent.is_(False))
            .values(sent=True, sent_at=now_utc())
        )
        await self.s.commit()

    async def pending_stats(self, now: datetime) -> tuple[int, int, Optional[datetime]]:
        """(всего неотправленных, из них просроченных, самый старый просроченный remind_at)"""
        pending = await self.s.scalar(
            select(func.count(Memo.id)).where(Memo.sent.is_(False))
        )
        due_q = await self.s.execute(
            select(func.count(Memo.id), func.min(Memo.remind_at))
            .where(Memo.sent.is_(False), Memo.remind_at <= now)
        )
        due_count, oldest = due_q.one()
        return pending or 0, due_count or 0, oldest
