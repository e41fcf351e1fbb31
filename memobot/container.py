# memobot/container.py
from __future__ import annotations

from typing import Any

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from memobot.config import settings
from memobot.db import SessionLocal, engine
from memobot.models.base import Base
from memobot.middlewares.deps import DepsMiddleware
from memobot.middlewares.logging import LoggingMiddleware
from memobot.services.delivery import TelegramSender
from memobot.services.reminder_service import ReminderScanner
from memobot.services.time_parser import TimeParser

from memobot.handlers.start import router as start_router
from memobot.handlers.memos import router as memos_router
from memobot.handlers.settings import router as settings_router
from memobot.handlers.errors import router as errors_router


async def init_db() -> None:
    """
    Dev-инициализация БД: создаём таблицы, если их нет.
    В проде используй alembic upgrade head.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def build_bot() -> Bot:
    return Bot(
        token=settings.BOT_TOKEN,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )


def build_services(bot: Bot) -> dict[str, Any]:
    """
    Единая сборка долгоживущих сервисов. Парсер времени создаётся здесь
    один раз и дальше передаётся по ссылке.
    """
    parser = TimeParser()
    scanner = ReminderScanner(
        session_factory=SessionLocal,
        sender=TelegramSender(bot),
        timezone=settings.TIMEZONE,
        delivery_timeout=settings.DELIVERY_TIMEOUT,
        batch_size=settings.SCAN_BATCH_SIZE,
    )
    return {"parser": parser, "scanner": scanner}


def build_dp(services: dict[str, Any]) -> Dispatcher:
    """
    Собираем Dispatcher для aiogram 3.x: middlewares + роутеры.
    FSM не используется, хватает MemoryStorage по умолчанию.
    """
    dp = Dispatcher()

    inject = {"parser": services["parser"], "tz": settings.TIMEZONE}
    dp.update.outer_middleware(LoggingMiddleware())
    dp.update.middleware(DepsMiddleware(session_factory=SessionLocal, services=inject))

    # Роутеры: errors последним
    dp.include_routers(
        start_router,
        memos_router,
        settings_router,
        errors_router,
    )
    return dp
