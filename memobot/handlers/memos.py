# memobot/handlers/memos.py
from __future__ import annotations

import html
import logging
from typing import Iterable, Mapping, Optional

from aiogram import Bot, Router
from aiogram.exceptions import TelegramAPIError
from aiogram.filters import Command, CommandObject
from aiogram.types import Message

from memobot.models.memo import Memo
from memobot.services.errors import MemoError
from memobot.services.memo_service import MemoService
from memobot.services.time_parser import TimeParser
from memobot.utils.dates import format_local, now_utc

logger = logging.getLogger(__name__)

router = Router(name="memos")

MEMO_USAGE = (
    "Usage: <code>/memo &lt;text&gt; | &lt;when&gt;</code>\n"
    "Example: <code>/memo Call mom | tomorrow at 3pm</code>"
)
DELETE_USAGE = "Usage: <code>/delete &lt;id&gt;</code>"
SEPARATOR = "───────────────────"
PREVIEW_LEN = 50
# запас до лимита Telegram в 4096 символов
LIST_LIMIT = 3800


def split_memo_args(args: Optional[str]) -> Optional[tuple[str, str]]:
    """
    "<text> | <when>" -> (text, when). Делим по последнему "|",
    чтобы в самом тексте палка тоже могла встречаться.
    """
    if not args or "|" not in args:
        return None
    content, when = args.rsplit("|", 1)
    content, when = content.strip(), when.strip()
    if not content or not when:
        return None
    return content, when


def shorten(text: str, limit: int = PREVIEW_LEN) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def error_text(err: MemoError) -> str:
    return f"❌ {html.escape(err.user_message)}"


def _memo_block(memo: Memo, tz: str, author: Optional[str] = None) -> str:
    head = f"🔹 <b>Memo #{memo.id}</b> by {author}" if author else f"🔸 <b>Memo #{memo.id}</b>"
    return (
        f"\n{head}\n"
        f"⏰ {format_local(memo.remind_at, tz)}\n"
        f"📌 {html.escape(memo.content)}\n"
        f"{SEPARATOR}\n"
    )


def _user_link(user_id: int) -> str:
    return f'<a href="tg://user?id={user_id}">user {user_id}</a>'


def render_list(
    *,
    user_id: int,
    chat_id: int,
    own: list[Memo],
    in_chat: list[Memo],
    counts: Mapping[int, int],
    tz: str,
    chat_titles: Optional[Mapping[int, str]] = None,
) -> str:
    """Ответ на /list: свои memo в чате, чужие в чате, сводка по другим чатам."""
    chat_titles = chat_titles or {}
    parts: list[str] = [f"<b>Current chat</b> · {len(in_chat)} memo(s) from all users\n"]

    def add_blocks(blocks: Iterable[str]) -> None:
        blocks = list(blocks)
        for i, block in enumerate(blocks):
            if sum(map(len, parts)) + len(block) > LIST_LIMIT:
                parts.append(f"… and {len(blocks) - i} more\n")
                return
            parts.append(block)

    parts.append("<b>Your memos in this chat</b>\n")
    if not own:
        parts.append("You have no memos in this chat.\n")
    else:
        add_blocks(_memo_block(m, tz) for m in own)

    others = [m for m in in_chat if m.owner_id != user_id]
    if others:
        parts.append("\n<b>Others' memos in this chat</b>\n")
        add_blocks(_memo_block(m, tz, author=_user_link(m.owner_id)) for m in others)

    elsewhere = {target: n for target, n in counts.items() if target != chat_id}
    if elsewhere:
        parts.append("\n<b>Your memos in other chats</b>\n")
        for target, n in sorted(elsewhere.items()):
            title = chat_titles.get(target) or f"chat {target}"
            parts.append(f"• {html.escape(title)}: {n} memo(s)\n")

    parts.append(f"\n📈 Total personal memos across all chats: {sum(counts.values())}")
    return "".join(parts)


async def _chat_titles(bot: Bot, targets: Iterable[int]) -> dict[int, str]:
    titles: dict[int, str] = {}
    for target in targets:
        try:
            chat = await bot.get_chat(target)
        except TelegramAPIError:
            # бота выгнали из чата или чат удалён: покажем голый id
            continue
        titles[target] = chat.title or chat.full_name or str(target)
    return titles


@router.message(Command("memo"))
async def cmd_memo(message: Message, command: CommandObject, memos: MemoService, parser: TimeParser, tz: str):
    parsed = split_memo_args(command.args)
    if parsed is None:
        return await message.answer(MEMO_USAGE)
    content, when = parsed

    try:
        remind_at = parser.parse(when, tz, now_utc())
        memo = await memos.create_memo(message.from_user.id, message.chat.id, content, remind_at)
    except MemoError as e:
        return await message.answer(error_text(e))

    return await message.answer(
        f"✅ {html.escape(message.from_user.full_name)} created memo #{memo.id}: "
        f"{html.escape(shorten(memo.content))}\n"
        f"⏰ {format_local(memo.remind_at, tz)}"
    )


@router.message(Command("list"))
async def cmd_list(message: Message, bot: Bot, memos: MemoService, tz: str):
    user_id = message.from_user.id
    chat_id = message.chat.id
    try:
        own = await memos.list_pending(user_id, chat_id)
        in_chat = await memos.list_all_pending_in_target(chat_id)
        counts = await memos.counts_by_target(user_id)
    except MemoError as e:
        return await message.answer(error_text(e))

    titles = await _chat_titles(bot, (t for t in counts if t != chat_id))
    return await message.answer(
        render_list(
            user_id=user_id,
            chat_id=chat_id,
            own=own,
            in_chat=in_chat,
            counts=counts,
            tz=tz,
            chat_titles=titles,
        )
    )


@router.message(Command("delete"))
async def cmd_delete(message: Message, command: CommandObject, memos: MemoService):
    raw = (command.args or "").strip().lstrip("#")
    if not raw.isdigit():
        return await message.answer(DELETE_USAGE)

    memo_id = int(raw)
    try:
        await memos.delete_memo(memo_id, message.from_user.id)
    except MemoError as e:
        return await message.answer(error_text(e))
    return await message.answer(f"✅ Memo #{memo_id} deleted.")
