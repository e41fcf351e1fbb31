# memobot/services/memo_service.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from memobot.models.memo import Memo
from memobot.repositories.memo_repo import MemoRepo
from memobot.repositories.user_repo import UserRepo
from memobot.services.errors import (
    InvalidContent,
    InvalidSchedule,
    NotFound,
    NotFoundOrForbidden,
    StorageFailure,
)
from memobot.utils.dates import as_utc, now_utc

logger = logging.getLogger(__name__)

REMIND_AT_CHECK = "remind_at_check"


class MemoService:
    """
    Жизненный цикл memo поверх репозиториев:
      - валидация (время строго в будущем) до записи в БД
      - перевод ошибок хранилища в доменные (InvalidSchedule / StorageFailure)
      - сам по себе состояния не хранит, всё живёт в БД
    """

    def __init__(
        self,
        session: AsyncSession,
        memos: Optional[MemoRepo] = None,
        users: Optional[UserRepo] = None,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self.s = session
        self.memos = memos or MemoRepo(session)
        self.users = users or UserRepo(session)
        self.clock = clock

    # ---------- helpers ----------

    async def _storage_failure(self, action: str, exc: SQLAlchemyError) -> StorageFailure:
        logger.exception("storage failure during %s", action)
        await self._rollback()
        return StorageFailure(action, exc)

    async def _rollback(self) -> None:
        try:
            await self.s.rollback()
        except SQLAlchemyError:
            logger.exception("rollback failed")

    # ---------- memo ----------

    async def create_memo(
        self,
        owner_id: int,
        delivery_target: int,
        content: str,
        remind_at: datetime,
    ) -> Memo:
        content = (content or "").strip()
        if not content:
            raise InvalidContent()

        remind_at = as_utc(remind_at)
        if remind_at <= self.clock():
            raise InvalidSchedule()

        try:
            memo = await self.memos.create(
                owner_id=owner_id,
                delivery_target=delivery_target,
                content=content,
                remind_at=remind_at,
            )
        except IntegrityError as e:
            # проверка прошла, но к моменту вставки время уже наступило
            if REMIND_AT_CHECK in str(e):
                await self._rollback()
                raise InvalidSchedule() from e
            raise await self._storage_failure("create_memo", e) from e
        except SQLAlchemyError as e:
            raise await self._storage_failure("create_memo", e) from e

        logger.info(
            "memo created id=%s remind_at=%s",
            memo.id,
            memo.remind_at.isoformat(),
            extra={"user_id": owner_id, "chat_id": delivery_target, "memo_id": memo.id},
        )
        return memo

    async def list_pending(self, owner_id: int, delivery_target: int) -> list[Memo]:
        try:
            return await self.memos.list_pending(owner_id, delivery_target)
        except SQLAlchemyError as e:
            raise await self._storage_failure("list_pending", e) from e

    async def list_all_pending_in_target(self, delivery_target: int) -> list[Memo]:
        try:
            return await self.memos.list_pending_in_target(delivery_target)
        except SQLAlchemyError as e:
            raise await self._storage_failure("list_all_pending_in_target", e) from e

    async def counts_by_target(self, owner_id: int) -> dict[int, int]:
        try:
            return await self.memos.counts_by_target(owner_id)
        except SQLAlchemyError as e:
            raise await self._storage_failure("counts_by_target", e) from e

    async def get_memo(self, memo_id: int) -> Memo:
        try:
            memo = await self.memos.get(memo_id)
        except SQLAlchemyError as e:
            raise await self._storage_failure("get_memo", e) from e
        if memo is None:
            raise NotFound(memo_id)
        return memo

    async def delete_memo(self, memo_id: int, requesting_owner_id: int) -> None:
        """
        Удаление только своего memo. "Нет такого" и "чужое": одна и та же
        ошибка NotFoundOrForbidden, владельца не раскрываем.
        """
        try:
            deleted = await self.memos.delete_owned(memo_id, requesting_owner_id)
        except SQLAlchemyError as e:
            raise await self._storage_failure("delete_memo", e) from e
        if not deleted:
            raise NotFoundOrForbidden(memo_id)
        logger.info("memo deleted id=%s", memo_id, extra={"user_id": requesting_owner_id, "memo_id": memo_id})

    async def due_memos(self, as_of: datetime, limit: Optional[int] = None) -> list[Memo]:
        try:
            return await self.memos.due(as_utc(as_of), limit=limit)
        except SQLAlchemyError as e:
            raise await self._storage_failure("due_memos", e) from e

    async def mark_sent(self, memo_id: int) -> None:
        try:
            await self.memos.mark_sent(memo_id)
        except SQLAlchemyError as e:
            raise await self._storage_failure("mark_sent", e) from e

    # ---------- пользователи ----------

    async def register_user(self, user_id: int, username: Optional[str]) -> None:
        try:
            await self.users.upsert(user_id, username=username)
        except SQLAlchemyError as e:
            raise await self._storage_failure("register_user", e) from e

    async def set_default_target(self, user_id: int, delivery_target: int) -> None:
        try:
            await self.users.upsert(user_id, delivery_target=delivery_target)
        except SQLAlchemyError as e:
            raise await self._storage_failure("set_default_target", e) from e

    async def get_default_target(self, user_id: int) -> Optional[int]:
        try:
            u = await self.users.get(user_id)
        except SQLAlchemyError as e:
            raise await self._storage_failure("get_default_target", e) from e
        return u.delivery_target if u else None
