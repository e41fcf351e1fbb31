# memobot/main.py
from __future__ import annotations

import asyncio
import logging
import signal

from aiogram.exceptions import TelegramAPIError
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from memobot.config import settings
from memobot.core.logging import setup_logging
from memobot.container import build_bot, build_dp, build_services, init_db
from memobot.db import engine
from memobot.handlers.start import BOT_COMMANDS
from memobot.scheduler.jobs import setup_scheduler

logger = logging.getLogger("memobot.main")


async def main() -> None:
    setup_logging()
    logger.info(
        "boot: LOG_LEVEL=%s TIMEZONE=%s SCAN_INTERVAL=%ss DELIVERY_TIMEOUT=%ss",
        settings.log_level,
        settings.TIMEZONE,
        settings.SCAN_INTERVAL,
        settings.DELIVERY_TIMEOUT,
    )
    if not settings.BOT_TOKEN:
        raise SystemExit("BOT_TOKEN is required")

    # DB init: в проде миграции через Alembic, create_all только если явно включили
    if settings.INIT_DB_ON_START:
        await init_db()
        logger.info("DB init done (create_all enabled by ENV)")
    else:
        logger.info("DB init skipped (use alembic upgrade head)")

    bot = build_bot()

    # На всякий: сносим вебхук, чтобы polling не конфликтовал
    try:
        await bot.delete_webhook(drop_pending_updates=True)
    except TelegramAPIError:
        logger.warning("delete_webhook failed; continue with polling")

    services = build_services(bot)
    scanner = services["scanner"]
    dp = build_dp(services)

    await bot.set_my_commands(BOT_COMMANDS)
    logger.info("Commands set, start polling")

    # ---------- Scheduler ----------
    scheduler = AsyncIOScheduler(timezone="UTC")
    setup_scheduler(scheduler, scanner, settings.SCAN_INTERVAL)
    scheduler.start()
    logger.info("Checking for reminders every %ss (first scan now)", settings.SCAN_INTERVAL)

    # Корректное завершение по сигналам
    stop_evt = asyncio.Event()
    loop = asyncio.get_running_loop()

    def _stop(*_: object) -> None:
        stop_evt.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, _stop)
        except NotImplementedError:
            pass

    async def _poll():
        try:
            await dp.start_polling(bot, handle_signals=False)
        except asyncio.CancelledError:
            pass

    poll_task = asyncio.create_task(_poll())
    await stop_evt.wait()
    logger.info("Shutting down gracefully...")

    # ---------- Shutdown ----------
    try:
        await dp.stop_polling()
    except RuntimeError:
        # polling уже остановлен
        pass

    # Новых тиков не будет; текущий memo досылаем
    scheduler.shutdown(wait=False)
    await scanner.stop()

    if not poll_task.done():
        poll_task.cancel()
        try:
            await poll_task
        except asyncio.CancelledError:
            pass

    try:
        await bot.session.close()
    except Exception:
        logger.exception("bot session close failed")

    try:
        await engine.dispose()
    except Exception:
        logger.exception("engine dispose failed")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
