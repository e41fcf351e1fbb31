# memobot/middlewares/deps.py
from typing import Any, Callable, Dict, Awaitable

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from memobot.services.memo_service import MemoService


class DepsMiddleware(BaseMiddleware):
    def __init__(self, *, session_factory: async_sessionmaker[AsyncSession], services: Dict[str, Any]) -> None:
        self.session_factory = session_factory
        self.services = services

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        # Своя сессия на каждый апдейт: хендлеры и скан идут параллельно
        async with self.session_factory() as session:
            data["session"] = session
            data["memos"] = MemoService(session)

            # Инжектим сервисы по тем ключам, которые ждут хендлеры
            # Пример: async def cmd_memo(message: Message, memos: MemoService, parser: TimeParser, tz: str)
            for k, v in self.services.items():
                data[k] = v

            return await handler(event, data)
