# memobot/services/delivery.py
from __future__ import annotations

import html
from typing import Protocol

from aiogram.client.bot import Bot
from aiogram.exceptions import TelegramAPIError

from memobot.models.memo import Memo
from memobot.services.errors import DeliveryFailure
from memobot.utils.dates import format_local


class MessageSender(Protocol):
    async def send(self, delivery_target: int, text: str) -> None: ...


def format_reminder(memo: Memo, tz_name: str) -> str:
    """Текст самого напоминания (HTML parse mode)."""
    return (
        f"🔔 <b>Memo</b> (scheduled for {format_local(memo.remind_at, tz_name)})\n"
        f"<pre>{html.escape(memo.content)}</pre>"
    )


class TelegramSender:
    """Доставка в чат через Bot API. Транспортные ошибки -> DeliveryFailure."""

    def __init__(self, bot: Bot) -> None:
        self.bot = bot

    async def send(self, delivery_target: int, text: str) -> None:
        try:
            await self.bot.send_message(chat_id=delivery_target, text=text)
        except TelegramAPIError as e:
            raise DeliveryFailure(delivery_target, e) from e
