# memobot/web/routes.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from memobot.db import get_session
from memobot.repositories.memo_repo import MemoRepo
from memobot.utils.dates import now_utc

router = APIRouter()


@router.get("/health")
async def health(session: AsyncSession = Depends(get_session)):
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        return JSONResponse({"status": "degraded", "db": "unavailable"}, status_code=503)
    return {"status": "ok", "db": "ok"}


# Если due растёт и oldest_due уезжает в прошлое, скан не успевает или лежит доставка
@router.get("/stats")
async def stats(session: AsyncSession = Depends(get_session)):
    now = now_utc()
    pending, due, oldest = await MemoRepo(session).pending_stats(now)
    return {
        "now": now.isoformat(),
        "pending": pending,
        "due": due,
        "oldest_due": oldest.isoformat() if oldest else None,
        "oldest_due_lag_seconds": int((now - oldest).total_seconds()) if oldest else 0,
    }
