from datetime import datetime, timezone
from zoneinfo import ZoneInfo

UTC = timezone.utc


def now_utc() -> datetime:
    return datetime.now(tz=UTC)


def as_utc(dt: datetime) -> datetime:
    """Наивное время считаем UTC, aware переводим в UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def format_local(dt: datetime, tz_name: str) -> str:
    # Thursday, March 7, 2024 at 15:30 EST
    local = as_utc(dt).astimezone(ZoneInfo(tz_name))
    return f"{local:%A, %B} {local.day}, {local:%Y at %H:%M %Z}"
