from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from memobot.services.delivery import MessageSender, format_reminder
from memobot.services.errors import DeliveryFailure, StorageFailure
from memobot.services.memo_service import MemoService
from memobot.utils.dates import now_utc

logger = logging.getLogger(__name__)


class ScanState(enum.Enum):
    IDLE = "idle"
    SCANNING = "scanning"


@dataclass(frozen=True)
class Outgoing:
    """Снимок due-строки: после rollback ORM-объекты протухают, в цикле их не трогаем."""
    memo_id: int
    owner_id: int
    delivery_target: int
    text: str


@dataclass
class ScanReport:
    found: int = 0
    delivered: int = 0
    failed: int = 0
    mark_failed: int = 0


class ReminderScanner:
    """
    Периодический проход по просроченным memo: доставить в чат и пометить sent.

    Доставка at-least-once: если сообщение ушло, а mark_sent упал (или процесс
    умер между ними), на следующем тике memo уйдёт повторно.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        sender: MessageSender,
        timezone: str,
        delivery_timeout: float = 10.0,
        batch_size: Optional[int] = None,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self.session_factory = session_factory
        self.sender = sender
        self.timezone = timezone
        self.delivery_timeout = delivery_timeout
        self.batch_size = batch_size
        self.clock = clock

        self.state = ScanState.IDLE
        self.stopped = False
        self._lock = asyncio.Lock()

    async def scan(self) -> ScanReport:
        """Один тик. Параллельный вызов при идущем скане ничего не делает."""
        report = ScanReport()
        if self.stopped:
            return report
        if self._lock.locked():
            logger.debug("scan already in progress, skip tick")
            return report

        async with self._lock:
            self.state = ScanState.SCANNING
            try:
                async with self.session_factory() as session:
                    await self._scan(MemoService(session, clock=self.clock), report)
            finally:
                self.state = ScanState.IDLE

        if report.found:
            logger.info(
                "scan done: found=%s delivered=%s failed=%s mark_failed=%s",
                report.found, report.delivered, report.failed, report.mark_failed,
            )
        return report

    async def _scan(self, memos: MemoService, report: ScanReport) -> None:
        try:
            due = await memos.due_memos(self.clock(), limit=self.batch_size)
        except StorageFailure:
            logger.error("could not load due memos, skip tick")
            return

        batch = [
            Outgoing(m.id, m.owner_id, m.delivery_target, format_reminder(m, self.timezone))
            for m in due
        ]
        report.found = len(batch)
        if batch:
            logger.info("found %d reminder(s) to process", len(batch))

        for item in batch:
            if self.stopped:
                logger.info("stop requested, leaving %d memo(s) for later", report.found - report.delivered - report.failed)
                break
            await self._process(memos, item, report)

    async def _process(self, memos: MemoService, item: Outgoing, report: ScanReport) -> None:
        ctx = {"memo_id": item.memo_id, "chat_id": item.delivery_target, "user_id": item.owner_id}
        try:
            await asyncio.wait_for(
                self.sender.send(item.delivery_target, item.text),
                timeout=self.delivery_timeout,
            )
        except asyncio.TimeoutError:
            report.failed += 1
            logger.warning("delivery timed out after %.1fs, retry next tick", self.delivery_timeout, extra=ctx)
            return
        except DeliveryFailure as e:
            report.failed += 1
            logger.warning("delivery failed, retry next tick: %s", e, extra=ctx)
            return
        except Exception:
            # чужой отправитель может кинуть что угодно: скан не валим
            report.failed += 1
            logger.exception("unexpected delivery error, retry next tick", extra=ctx)
            return

        report.delivered += 1
        try:
            await memos.mark_sent(item.memo_id)
        except StorageFailure:
            report.mark_failed += 1
            logger.error("delivered but mark_sent failed, memo will be sent again", extra=ctx)

    async def stop(self) -> None:
        """Больше не брать тики; дождаться, пока текущий memo досылается."""
        self.stopped = True
        async with self._lock:
            pass
