"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import DEFAULT_BOT_USERNAME, DEFAULT_CHANNEL_LINK, AppSettings


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="Cineflix", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    database_url: str = Field(
        default="sqlite+aiosqlite:///./cineflix.db", alias="DATABASE_URL"
    )

    content_limit: int = Field(default=50, alias="CONTENT_LIMIT", ge=1, le=500)
    banner_interval_seconds: float = Field(
        default=6.0, alias="BANNER_INTERVAL", gt=0
    )
    store_poll_seconds: float = Field(
        default=5.0, alias="STORE_POLL_INTERVAL", ge=0.05
    )

    favorites_path: str = Field(
        default="./cineflix-storage.json", alias="FAVORITES_PATH"
    )
    favorites_key: str = Field(default="cine_favs", alias="FAVORITES_KEY")

    bot_username: str = Field(default=DEFAULT_BOT_USERNAME, alias="BOT_USERNAME")
    channel_link: str = Field(default=DEFAULT_CHANNEL_LINK, alias="CHANNEL_LINK")

    admin_token: str | None = Field(default=None, alias="ADMIN_TOKEN")

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("bot_username", mode="before")
    @classmethod
    def _strip_bot_handle(cls, value: object) -> object:
        """Accept handles written with a leading ``@``."""

        if isinstance(value, str):
            return value.strip().lstrip("@") or DEFAULT_BOT_USERNAME
        return value

    @field_validator("admin_token", mode="before")
    @classmethod
    def _blank_token(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def default_app_settings(self) -> AppSettings:
        """Return the settings document used until the remote one arrives."""

        return AppSettings(
            bot_username=self.bot_username,
            channel_link=self.channel_link,
        )

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
