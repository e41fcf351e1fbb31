# memobot/web/middleware_logging.py
from __future__ import annotations
import logging, time, uuid
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

log = logging.getLogger("memobot.http")


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable):
        rid = request.headers.get("x-request-id") or str(uuid.uuid4())
        start = time.perf_counter()
        method = request.method
        path = request.url.path

        # Прокидываем request-id дальше
        request.state.request_id = rid

        try:
            response: Response = await call_next(request)
        except Exception:
            elapsed = (time.perf_counter() - start) * 1000
            log.exception("http_error %s %s rid=%s ms=%.2f", method, path, rid, elapsed)
            raise
        elapsed = (time.perf_counter() - start) * 1000
        log.info("http %s %s -> %s rid=%s ms=%.2f", method, path, response.status_code, rid, elapsed)
        response.headers["x-request-id"] = rid
        return response
