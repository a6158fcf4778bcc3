# config.py
from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from constants import FEED_MAX_LIMIT


class Settings(BaseSettings):
    # Telegram bot
    bot_token: str = Field(alias="BOT_TOKEN")

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./travelmatch.db",
        alias="DATABASE_URL",
    )

    # Environment
    env: Literal["dev", "stage", "prod"] = Field("dev", alias="ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    # пустая строка: писать только в консоль
    log_file: Optional[str] = Field("bot.log", alias="LOG_FILE")

    # Сколько анкет бот подгружает в ленту за один запрос
    feed_page_size: int = Field(5, alias="FEED_PAGE_SIZE")

    # Admin / alerts
    admin_chat_id: Optional[int] = Field(
        default=None,
        alias="ADMIN_CHAT_ID",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @field_validator("feed_page_size")
    @classmethod
    def check_feed_page_size(cls, v: int) -> int:
        if not 1 <= v <= FEED_MAX_LIMIT:
            raise ValueError(f"FEED_PAGE_SIZE must be between 1 and {FEED_MAX_LIMIT}")
        return v

    @field_validator("log_file", mode="before")
    @classmethod
    def empty_log_file_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


@lru_cache
def get_settings() -> Settings:
    # кэшируем, чтобы не читать .env каждый раз
    return Settings()


settings = get_settings()
