# memobot/middlewares/logging.py
import logging
import time
from typing import Any, Dict, Awaitable, Callable

from aiogram import BaseMiddleware
from aiogram.types import Update

logger = logging.getLogger("memobot.middleware.logging")


def _safe_get(obj: Any, path: str, default: Any = None):
    cur = obj
    for p in path.split("."):
        if cur is None:
            return default
        cur = getattr(cur, p, None)
    return cur if cur is not None else default


def _command_of(event: Any) -> str:
    text = _safe_get(event, "text") or _safe_get(event, "message.text") or ""
    if isinstance(text, str) and text.startswith("/"):
        return text.split(maxsplit=1)[0]
    return "-"


class LoggingMiddleware(BaseMiddleware):
    async def __call__(
        self,
        handler: Callable[[Any, Dict[str, Any]], Awaitable[Any]],
        event: Any,
        data: Dict[str, Any]
    ) -> Any:
        # Достаём Update, если он есть в данных
        update: Update | None = data.get("event_update") or data.get("update")
        ctx = {
            "update_id": getattr(update, "update_id", None) or getattr(event, "update_id", "-"),
            "user_id": (
                _safe_get(event, "from_user.id")
                or _safe_get(event, "message.from_user.id")
                or "-"
            ),
            "chat_id": (
                _safe_get(event, "chat.id")
                or _safe_get(event, "message.chat.id")
                or "-"
            ),
        }
        command = _command_of(event)

        # входящий лог
        logger.info("incoming %s %s", type(event).__name__, command, extra=ctx)

        started = time.perf_counter()
        try:
            result = await handler(event, data)
        except Exception:
            duration_ms = int((time.perf_counter() - started) * 1000)
            logger.exception("handler_error %s in %dms", command, duration_ms, extra=ctx)
            raise
        duration_ms = int((time.perf_counter() - started) * 1000)
        logger.info("handled %s in %dms", command, duration_ms, extra=ctx)
        return result
