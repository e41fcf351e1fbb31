# memobot/services/errors.py
from __future__ import annotations

from typing import Optional

TIME_EXAMPLES = (
    "Examples (case-insensitive):\n"
    "- in 2 hours\n"
    "- today at 3pm\n"
    "- tomorrow at 3pm\n"
    "- next monday at 15:00\n"
    "- 2024-03-07 15:30"
)


class MemoError(Exception):
    """
    Базовая ошибка домена. user_message можно показывать в чате как есть,
    str(exc): для логов.
    """
    user_message = "Something went wrong."

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.user_message)
        if message:
            self.user_message = message


class InvalidSchedule(MemoError):
    user_message = "Memo time must be in the future."


class InvalidContent(MemoError):
    user_message = "Memo text must not be empty."


class TimeParseError(MemoError):
    pass


class UnrecognizedTime(TimeParseError):
    user_message = f"Could not understand the time.\n{TIME_EXAMPLES}"


class InvalidTimezone(TimeParseError):
    user_message = "Configured timezone is invalid."

    def __init__(self, timezone: str) -> None:
        super().__init__(f"Unknown timezone: {timezone!r}")
        self.timezone = timezone


class NotFound(MemoError):
    def __init__(self, memo_id: int) -> None:
        super().__init__(f"Memo #{memo_id} not found.")
        self.memo_id = memo_id


class NotFoundOrForbidden(NotFound):
    """Нет такого memo или оно чужое: наружу одинаково, владельца не светим."""

    def __init__(self, memo_id: int) -> None:
        MemoError.__init__(self, f"Memo #{memo_id} not found or it is not yours.")
        self.memo_id = memo_id


class StorageFailure(MemoError):
    def __init__(self, action: str, cause: BaseException) -> None:
        # детали только в логах и __cause__, пользователю: общий текст
        Exception.__init__(self, f"storage failure during {action}: {cause!r}")
        self.action = action
        self.cause = cause

    user_message = "Storage is unavailable right now, please try again later."


class DeliveryFailure(MemoError):
    def __init__(self, target: int, cause: Optional[BaseException] = None) -> None:
        Exception.__init__(self, f"delivery to {target} failed: {cause!r}")
        self.target = target
        self.cause = cause
