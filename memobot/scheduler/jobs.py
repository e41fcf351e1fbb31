# memobot/scheduler/jobs.py
from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from memobot.services.reminder_service import ReminderScanner
from memobot.utils.dates import now_utc

SCAN_JOB_ID = "scan_reminders_job"


async def scan_reminders_job(scanner: ReminderScanner) -> None:
    """
    Периодическая задача: находит просроченные memo и рассылает их.
    Ошибки доставки/БД логируются внутри сканера, наружу не летят.
    """
    await scanner.scan()


def setup_scheduler(scheduler: AsyncIOScheduler, scanner: ReminderScanner, interval_seconds: float) -> None:
    """
    Регистрирует периодические задачи.
    Вызывается один раз при старте приложения.
    """
    scheduler.add_job(
        scan_reminders_job,
        trigger="interval",
        seconds=interval_seconds,
        kwargs={"scanner": scanner},
        id=SCAN_JOB_ID,
        replace_existing=True,
        next_run_time=now_utc(),  # первый проход сразу: догоняем пропущенное, пока бот лежал
        coalesce=True,
        max_instances=1,
        misfire_grace_time=max(int(interval_seconds), 1),
    )
