# memobot/db.py
from __future__ import annotations

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from memobot.config import settings
from memobot.models.base import Base  # noqa: F401  реэкспорт для alembic/init_db


# === 1. Настройка движка ===
# Пример DSN: postgresql+asyncpg://memo:memo@db:5432/memodb
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.SQL_ECHO,
    pool_pre_ping=True,
)


# === 2. Сессия ===
SessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# === 3. Депенденси для FastAPI и сервисов ===
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Асинхронная сессия SQLAlchemy."""
    async with SessionLocal() as session:
        yield session
