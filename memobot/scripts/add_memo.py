# memobot/scripts/add_memo.py
"""
Создание memo из командной строки, без Telegram.
Напоминание придёт в чат, который пользователь выбрал командой /setchannel.

Запуск:
    python -m memobot.scripts.add_memo --user 943701972 --when "tomorrow at 9am" "Stand-up"
"""
from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from memobot.config import settings
from memobot.models.memo import Memo
from memobot.services.errors import MemoError
from memobot.services.memo_service import MemoService
from memobot.services.time_parser import TimeParser
from memobot.utils.dates import format_local, now_utc


class NoDefaultTarget(MemoError):
    user_message = "No chat set for this user. Run /setchannel in the chat that should receive reminders."


async def add_memo(
    session_factory: async_sessionmaker[AsyncSession],
    parser: TimeParser,
    *,
    user_id: int,
    when: str,
    content: str,
    tz: str,
) -> Memo:
    remind_at = parser.parse(when, tz, now_utc())
    async with session_factory() as session:
        memos = MemoService(session)
        target = await memos.get_default_target(user_id)
        if target is None:
            raise NoDefaultTarget()
        return await memos.create_memo(user_id, target, content, remind_at)


def _args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Schedule a memo from the command line.")
    p.add_argument("--user", type=int, required=True, help="Telegram user id (see /setchannel)")
    p.add_argument("--when", required=True, help="'in 2 hours', 'tomorrow at 3pm', '2024-03-07 15:30'")
    p.add_argument("--tz", default=settings.TIMEZONE, help="timezone for the time expression")
    p.add_argument("content", nargs="+", help="memo text")
    return p.parse_args(argv)


async def _run(ns: argparse.Namespace) -> int:
    from memobot.db import SessionLocal, engine

    try:
        memo = await add_memo(
            SessionLocal,
            TimeParser(),
            user_id=ns.user,
            when=ns.when,
            content=" ".join(ns.content),
            tz=ns.tz,
        )
    except MemoError as e:
        print(f"ERROR: {e.user_message}", file=sys.stderr)
        return 1
    finally:
        await engine.dispose()

    print(f"Memo #{memo.id} scheduled for {format_local(memo.remind_at, ns.tz)} (chat {memo.delivery_target})")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    return asyncio.run(_run(_args(argv)))


if __name__ == "__main__":
    sys.exit(main())
