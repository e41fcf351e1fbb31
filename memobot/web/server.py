# memobot/web/server.py
"""
Ops-приложение: /health и /stats для мониторинга. Живёт отдельным процессом
рядом с ботом и смотрит в ту же БД.

    uvicorn memobot.web.server:app --host 0.0.0.0 --port 8080
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
import uvicorn

from memobot.config import settings
from memobot.core.logging import setup_logging
from memobot.web.errors import unhandled_exception_handler
from memobot.web.middleware_logging import LoggingMiddleware
from memobot.web.routes import router as api_router

log = logging.getLogger("memobot.web")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    log.info("ops web startup tz=%s", settings.TIMEZONE)
    yield


app = FastAPI(title="memobot ops", lifespan=lifespan)
app.add_middleware(LoggingMiddleware)
app.include_router(api_router)
app.add_exception_handler(Exception, unhandled_exception_handler)


if __name__ == "__main__":
    uvicorn.run(
        "memobot.web.server:app",
        host=settings.WEBAPP_HOST,
        port=settings.WEBAPP_PORT,
        log_level=settings.log_level.lower(),
        access_log=False,
    )
