# memobot/handlers/start.py
from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.types import BotCommand, Message

router = Router(name="start")

HELP_TEXT = (
    "<b>MemoBot</b>: reminders for this chat.\n\n"
    "/memo &lt;text&gt; | &lt;when&gt; - create a memo\n"
    "   when: <i>in 2 hours</i>, <i>tomorrow at 3pm</i>, <i>next monday at 15:00</i>, "
    "<i>2024-03-07 15:30</i>\n"
    "/list - your pending memos\n"
    "/delete &lt;id&gt; - delete your memo\n"
    "/setchannel - use this chat for memos created from the command line\n"
    "/help - this message"
)

BOT_COMMANDS = [
    BotCommand(command="memo", description="Create a memo"),
    BotCommand(command="list", description="Show pending memos"),
    BotCommand(command="delete", description="Delete a memo"),
    BotCommand(command="setchannel", description="Use this chat for CLI memos"),
    BotCommand(command="help", description="Help"),
]


@router.message(CommandStart())
@router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await message.answer(HELP_TEXT)
