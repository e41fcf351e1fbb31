from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

from memobot.handlers.memos import error_text
from memobot.services.errors import MemoError
from memobot.services.memo_service import MemoService

router = Router(name="settings")


@router.message(Command("setchannel"))
async def cmd_setchannel(message: Message, memos: MemoService):
    """
    Текущий чат становится чатом по умолчанию для memo,
    созданных вне бота (scripts/add_memo.py).
    """
    user = message.from_user
    try:
        await memos.register_user(user.id, user.username)
        await memos.set_default_target(user.id, message.chat.id)
    except MemoError as e:
        return await message.answer(error_text(e))
    await message.answer(
        f"✅ This chat will receive your reminders created outside the bot.\n"
        f"Your user ID: <code>{user.id}</code>"
    )
