from aiogram import Router
from aiogram.exceptions import TelegramAPIError
from aiogram.types import ErrorEvent
import logging

router = Router(name="errors")
logger = logging.getLogger(__name__)


@router.error()
async def on_error(event: ErrorEvent):
    upd = event.update
    logger.error(
        "Error in handler: %r",
        event.exception,
        exc_info=event.exception,
        extra={"update_id": upd.update_id},
    )
    message = upd.message
    if message is None:
        return True
    # детали только в лог, пользователю общий текст
    try:
        await message.answer("❌ Something went wrong, please try again later.")
    except TelegramAPIError:
        logger.warning("could not report error to chat %s", message.chat.id)
    return True
