# memobot/web/errors.py
from __future__ import annotations
import logging
from fastapi import Request
from fastapi.responses import JSONResponse

log = logging.getLogger("memobot.web.errors")


async def unhandled_exception_handler(request: Request, exc: Exception):
    rid = getattr(request.state, "request_id", "-")
    log.error(
        "unhandled_exception rid=%s path=%s", rid, request.url.path,
        exc_info=(type(exc), exc, exc.__traceback__),
    )
    # не палим детали наружу, но даем признак
    return JSONResponse({"ok": False, "error": "internal_error", "rid": rid}, status_code=500)
