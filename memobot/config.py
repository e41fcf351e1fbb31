from __future__ import annotations

import re
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, AliasChoices, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DURATION_RE = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1, "m": 60, "h": 3600}


def parse_duration(value: str | int | float | None, default: float) -> float:
    """
    Длительность в секундах: 60, "60", "60s", "5m", "1h", "1m30s".
    """
    if value is None or value == "":
        return default
    if isinstance(value, (int, float)):
        return float(value)
    raw = str(value).strip().lower().replace(" ", "")
    try:
        return float(raw)
    except ValueError:
        pass
    pos = 0
    total = 0.0
    for m in _DURATION_RE.finditer(raw):
        if m.start() != pos:
            break
        total += float(m.group(1)) * _DURATION_UNITS[m.group(2)]
        pos = m.end()
    if pos != len(raw) or pos == 0:
        raise ValueError(f"invalid duration: {value!r}")
    return total


class Settings(BaseSettings):
    # === Telegram ===
    BOT_TOKEN: str = ""

    # === Storage / DB ===
    DATABASE_URL: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("DATABASE_URL", "POSTGRES_DSN"),
    )

    DB_HOST: Optional[str] = None
    DB_PORT: int = 5432
    DB_NAME: str = "memodb"
    DB_USER: str = "postgres"
    DB_PASSWORD: Optional[str] = None

    SQL_ECHO: bool = False
    INIT_DB_ON_START: bool = False

    # === Планировщик / напоминания ===
    SCAN_INTERVAL: float = 60.0
    SCAN_BATCH_SIZE: Optional[int] = None
    DELIVERY_TIMEOUT: float = 10.0
    TIMEZONE: str = "UTC"

    # === Ops web ===
    WEBAPP_HOST: str = "0.0.0.0"
    WEBAPP_PORT: int = 8080

    # === Логи ===
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")
    log_sql: str = Field(default="WARNING", alias="LOG_SQL")
    log_aiogram: str = Field(default="INFO", alias="LOG_AIOGRAM")

    # ---- валидаторы ДО валидации типов ----
    @field_validator("SCAN_INTERVAL", mode="before")
    @classmethod
    def _v_scan_interval(cls, v):
        seconds = parse_duration(v, default=60.0)
        if seconds <= 0:
            raise ValueError("SCAN_INTERVAL must be positive")
        return seconds

    @field_validator("DELIVERY_TIMEOUT", mode="before")
    @classmethod
    def _v_delivery_timeout(cls, v):
        seconds = parse_duration(v, default=10.0)
        if seconds <= 0:
            raise ValueError("DELIVERY_TIMEOUT must be positive")
        return seconds

    @field_validator("SCAN_BATCH_SIZE", mode="before")
    @classmethod
    def _v_batch(cls, v):
        if v is None or v == "" or str(v) == "0":
            return None
        return v

    @field_validator("TIMEZONE")
    @classmethod
    def _v_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown TIMEZONE {v!r}") from e
        return v

    # ---- пост-обработчик ----
    def model_post_init(self, __context) -> None:
        # DSN: явный URL > сборка из DB_* > локальная sqlite для разработки
        if not self.DATABASE_URL:
            if self.DB_HOST:
                password = f":{self.DB_PASSWORD}" if self.DB_PASSWORD else ""
                self.DATABASE_URL = (
                    f"postgresql+asyncpg://{self.DB_USER}{password}"
                    f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
                )
            else:
                self.DATABASE_URL = "sqlite+aiosqlite:///./memobot.db"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


settings = Settings()
