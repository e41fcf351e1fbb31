# memobot/services/time_parser.py
from __future__ import annotations

import logging
import re
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import dateparser

from memobot.services.errors import InvalidTimezone, UnrecognizedTime
from memobot.utils.dates import as_utc

logger = logging.getLogger(__name__)

_UNITS = {
    "s": "seconds", "sec": "seconds", "secs": "seconds", "second": "seconds", "seconds": "seconds",
    "m": "minutes", "min": "minutes", "mins": "minutes", "minute": "minutes", "minutes": "minutes",
    "h": "hours", "hr": "hours", "hrs": "hours", "hour": "hours", "hours": "hours",
    "d": "days", "day": "days", "days": "days",
    "w": "weeks", "wk": "weeks", "wks": "weeks", "week": "weeks", "weeks": "weeks",
}

_WEEKDAYS = {
    "monday": 0, "mon": 0,
    "tuesday": 1, "tue": 1, "tues": 1,
    "wednesday": 2, "wed": 2,
    "thursday": 3, "thu": 3, "thur": 3, "thurs": 3,
    "friday": 4, "fri": 4,
    "saturday": 5, "sat": 5,
    "sunday": 6, "sun": 6,
}

_RELATIVE_RE = re.compile(r"in\s+(?P<body>.+)")
_PART_RE = re.compile(r"\b(?P<amount>\d+|an?(?=\s))\s*(?P<unit>[a-z]+)\b")

_DAY_RE = re.compile(
    r"(?P<day>today|tonight|tomorrow|tmrw|(?P<next>next\s+)?(?P<weekday>"
    + "|".join(sorted(_WEEKDAYS, key=len, reverse=True))
    + r"))(?:\s+(?:at\s+)?(?P<clock>.+))?"
)
_CLOCK_ONLY_RE = re.compile(r"(?:at\s+)?(?P<clock>.+)")
_CLOCK_RE = re.compile(
    r"(?P<h>\d{1,2})(?::(?P<m>\d{2}))?(?::(?P<s>\d{2}))?\s*(?P<mer>am|pm|a\.m\.|p\.m\.)?"
)
_ABSOLUTE_RE = re.compile(
    r"\d{4}-\d{2}-\d{2}(?:[ t]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?)?(?:z|[+-]\d{2}:?\d{2})?"
)

_TONIGHT = time(20, 0)


def _parse_clock(raw: str) -> Optional[time]:
    if raw == "noon":
        return time(12, 0)
    if raw == "midnight":
        return time(0, 0)
    m = _CLOCK_RE.fullmatch(raw)
    if not m:
        return None
    hour = int(m.group("h"))
    minute = int(m.group("m") or 0)
    second = int(m.group("s") or 0)
    mer = m.group("mer")
    if mer is None and m.group("m") is None:
        # голое "15": не время
        return None
    if mer:
        if not 1 <= hour <= 12:
            return None
        hour = hour % 12 + (12 if mer.startswith("p") else 0)
    if hour > 23 or minute > 59 or second > 59:
        return None
    return time(hour, minute, second)


class TimeParser:
    """
    Разбор времени напоминания: "in 2 hours", "tomorrow at 3pm",
    "next monday at 15:00", "2024-03-07 15:30".

    Собственные правила проверяются первыми и целиком (fullmatch), всё остальное
    отдаём dateparser. Экземпляр создаётся один раз при старте и дальше
    только читается.
    """

    def __init__(self, languages: Sequence[str] = ("en",)) -> None:
        self.languages = list(languages)
        self._dp_settings = {
            "PREFER_DATES_FROM": "future",
            "RETURN_AS_TIMEZONE_AWARE": True,
            "TO_TIMEZONE": "UTC",
            "PARSERS": ["relative-time", "custom-formats", "absolute-time"],
            # "march" или "march 2031" без дня не достраиваем
            "REQUIRE_PARTS": ["day", "month"],
        }
        # прогреваем языковые данные dateparser, чтобы первый запрос не платил за загрузку
        dateparser.parse("now", languages=self.languages)

    # ---------- публичное API ----------

    def parse(self, text: str, timezone: str, reference_time: datetime) -> datetime:
        """
        Возвращает aware-UTC момент или кидает UnrecognizedTime / InvalidTimezone.
        reference_time: "сейчас"; границы дня считаются в timezone.
        """
        tz = self._zone(timezone)
        ref = as_utc(reference_time)
        raw = " ".join((text or "").strip().lower().split())
        if not raw:
            raise UnrecognizedTime()

        for rule in (self._relative, self._named_day, self._clock_only, self._absolute):
            result = rule(raw, tz, ref)
            if result is not None:
                return as_utc(result)

        result = self._fallback(raw, timezone, tz, ref)
        if result is None:
            raise UnrecognizedTime()
        return as_utc(result)

    # ---------- правила ----------

    @staticmethod
    def _zone(name: str) -> tzinfo:
        if not name:
            raise InvalidTimezone(name)
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError, TypeError) as e:
            raise InvalidTimezone(name) from e

    def _relative(self, raw: str, tz: tzinfo, ref: datetime) -> Optional[datetime]:
        m = _RELATIVE_RE.fullmatch(raw)
        if not m:
            return None
        body = m.group("body")
        delta = timedelta()
        pos = 0
        for part in _PART_RE.finditer(body):
            gap = body[pos:part.start()].strip(" ,")
            if gap not in ("", "and"):
                return None
            unit = _UNITS.get(part.group("unit"))
            if unit is None:
                return None
            amount = part.group("amount")
            n = 1 if amount in ("a", "an") else int(amount)
            try:
                delta += timedelta(**{unit: n})
            except OverflowError as e:
                raise UnrecognizedTime() from e
            pos = part.end()
        if pos == 0 or body[pos:].strip():
            return None
        try:
            return ref + delta
        except OverflowError as e:
            # за пределами datetime.max
            raise UnrecognizedTime() from e

    def _named_day(self, raw: str, tz: tzinfo, ref: datetime) -> Optional[datetime]:
        m = _DAY_RE.fullmatch(raw)
        if not m:
            return None
        local = ref.astimezone(tz)
        day = m.group("day")
        default_clock = local.time().replace(microsecond=0)

        if day == "today":
            target = local.date()
        elif day == "tonight":
            target = local.date()
            default_clock = _TONIGHT
        elif day in ("tomorrow", "tmrw"):
            target = local.date() + timedelta(days=1)
        else:
            # "friday" и "next friday": ближайшая пятница строго после сегодня
            wd = _WEEKDAYS[m.group("weekday")]
            ahead = (wd - local.weekday()) % 7 or 7
            target = local.date() + timedelta(days=ahead)

        clock_raw = m.group("clock")
        if clock_raw is None:
            clock = default_clock
        else:
            clock = _parse_clock(clock_raw)
            if clock is None:
                # день понятен, время нет: не угадываем
                raise UnrecognizedTime()
        return self._combine(target, clock, tz)

    def _clock_only(self, raw: str, tz: tzinfo, ref: datetime) -> Optional[datetime]:
        m = _CLOCK_ONLY_RE.fullmatch(raw)
        clock = _parse_clock(m.group("clock")) if m else None
        if clock is None:
            return None
        # без переноса на завтра: прошедшее время отсеет create_memo
        return self._combine(ref.astimezone(tz).date(), clock, tz)

    def _absolute(self, raw: str, tz: tzinfo, ref: datetime) -> Optional[datetime]:
        if not _ABSOLUTE_RE.fullmatch(raw):
            return None
        try:
            dt = datetime.fromisoformat(raw.upper())
        except ValueError as e:
            raise UnrecognizedTime() from e
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=tz)
        return dt

    def _fallback(self, raw: str, tz_name: str, tz: tzinfo, ref: datetime) -> Optional[datetime]:
        settings = dict(self._dp_settings)
        settings["TIMEZONE"] = tz_name
        settings["RELATIVE_BASE"] = ref.astimezone(tz).replace(tzinfo=None)
        try:
            return dateparser.parse(raw, languages=self.languages, settings=settings)
        except Exception:
            logger.debug("dateparser failed on %r", raw, exc_info=True)
            return None

    @staticmethod
    def _combine(day: date, clock: time, tz: tzinfo) -> datetime:
        return datetime.combine(day, clock, tzinfo=tz)
