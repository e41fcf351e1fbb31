"""Shared fixtures: in-memory SQLite database, sessions and services."""

import os

# до импорта memobot.config: движок в memobot.db создаётся при импорте
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("TIMEZONE", "UTC")

from datetime import datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from memobot.models import Base, Memo
from memobot.services.memo_service import MemoService
from memobot.services.time_parser import TimeParser
from memobot.utils.dates import now_utc


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def service(session) -> MemoService:
    return MemoService(session)


@pytest.fixture(scope="session")
def parser() -> TimeParser:
    return TimeParser()


@pytest.fixture
def insert_memo(session_factory):
    """
    Insert a memo bypassing service validation (e.g. one that is already due).
    created_at is backdated so the remind_at check constraint still holds.
    """

    async def _insert(
        owner_id: int = 1,
        delivery_target: int = 100,
        content: str = "memo",
        remind_at: datetime | None = None,
        sent: bool = False,
    ) -> Memo:
        remind_at = remind_at or now_utc() - timedelta(minutes=1)
        memo = Memo(
            owner_id=owner_id,
            delivery_target=delivery_target,
            content=content,
            remind_at=remind_at,
            created_at=remind_at - timedelta(hours=1),
            sent=sent,
        )
        async with session_factory() as s:
            s.add(memo)
            await s.commit()
            await s.refresh(memo)
        return memo

    return _insert
