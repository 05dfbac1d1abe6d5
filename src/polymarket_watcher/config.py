"""Configuration management service with Pydantic Settings.

This module provides centralized configuration management for the
Polymarket Fresh Wallet Watcher, loading and validating environment
variables at startup. User-editable runtime settings (thresholds, save
filter, notification preferences) live in the database instead.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from polymarket_watcher.alerter.models import NotificationConfig

_ENV_FILE = ".env"
_ENV_FILE_ENCODING = "utf-8"


class DatabaseSettings(BaseSettings):
    """Database connection settings."""

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")

    url: str = Field(
        default="sqlite+aiosqlite:///polymarket_watcher.db",
        alias="DATABASE_URL",
        description="PostgreSQL or SQLite connection string",
    )
    create_schema: bool = Field(
        default=True,
        alias="DATABASE_CREATE_SCHEMA",
        description="Create missing tables at startup instead of relying on migrations",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate database URL format."""
        if not v.startswith(("postgresql://", "postgresql+asyncpg://", "sqlite://", "sqlite+aiosqlite://")):
            raise ValueError("DATABASE_URL must be a PostgreSQL or SQLite connection string")
        return v


class ProfileApiSettings(BaseSettings):
    """Wallet profile statistics endpoint settings."""

    model_config = SettingsConfigDict(env_prefix="PROFILE_API_", extra="ignore")

    url: str = Field(
        default="https://polymarket.com/api/profile/stats",
        alias="PROFILE_API_URL",
        description="Wallet statistics endpoint",
    )
    timeout_seconds: float = Field(
        default=10.0,
        alias="PROFILE_API_TIMEOUT_SECONDS",
        description="Per-request timeout",
        gt=0,
    )
    user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
        alias="PROFILE_API_USER_AGENT",
        description="User-Agent header sent with lookups",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate endpoint URL format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("PROFILE_API_URL must be an HTTP(S) endpoint")
        return v


class AnalyzerSettings(BaseSettings):
    """Wallet analyzer cache settings."""

    model_config = SettingsConfigDict(env_prefix="ANALYZER_", extra="ignore")

    cache_ttl_seconds: float = Field(
        default=300.0,
        alias="ANALYZER_CACHE_TTL_SECONDS",
        description="How long a profile stays in the in-process cache",
        gt=0,
    )
    cache_max_size: int = Field(
        default=10_000,
        alias="ANALYZER_CACHE_MAX_SIZE",
        description="Maximum number of cached profiles",
        ge=1,
    )


class RefreshSettings(BaseSettings):
    """Background wallet refresh settings."""

    model_config = SettingsConfigDict(env_prefix="REFRESH_", extra="ignore")

    interval_seconds: float = Field(
        default=10.0,
        alias="REFRESH_INTERVAL_SECONDS",
        description="Seconds between refresh batches",
        gt=0,
    )
    batch_size: int = Field(
        default=10,
        alias="REFRESH_BATCH_SIZE",
        description="Wallets refreshed per batch",
        ge=1,
    )
    call_delay_seconds: float = Field(
        default=0.5,
        alias="REFRESH_CALL_DELAY_SECONDS",
        description="Pause between successive lookups",
        ge=0,
    )
    max_bet_count: int = Field(
        default=50,
        alias="REFRESH_MAX_BET_COUNT",
        description="Analyzed wallets above this bet count are no longer refreshed",
        ge=0,
    )


class TelegramSettings(BaseSettings):
    """Telegram notification defaults, used until a config is saved."""

    model_config = SettingsConfigDict(env_prefix="TELEGRAM_", extra="ignore")

    bot_token: SecretStr | None = Field(
        default=None,
        alias="TELEGRAM_BOT_TOKEN",
        description="Telegram bot token",
    )
    chat_ids: str = Field(
        default="",
        alias="TELEGRAM_CHAT_IDS",
        description="Comma-separated Telegram chat IDs",
    )
    timeout_seconds: float = Field(
        default=10.0,
        alias="TELEGRAM_TIMEOUT_SECONDS",
        description="Delivery timeout",
        gt=0,
    )

    @property
    def chat_id_list(self) -> tuple[str, ...]:
        return tuple(c.strip() for c in self.chat_ids.split(",") if c.strip())

    @property
    def enabled(self) -> bool:
        """Check if Telegram credentials are present."""
        return self.bot_token is not None and bool(self.chat_id_list)

    def default_notification_config(self) -> NotificationConfig:
        return NotificationConfig(
            enabled=self.enabled,
            telegram_bot_token=self.bot_token,
            telegram_chat_ids=self.chat_id_list,
        )


class Settings(BaseSettings):
    """Main application settings.

    Loads configuration from environment variables with support for
    .env files via python-dotenv.

    Example:
        ```python
        from polymarket_watcher.config import get_settings

        settings = get_settings()
        print(settings.database.url)
        print(settings.log_level)
        ```
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding=_ENV_FILE_ENCODING,
        extra="ignore",
    )

    # Each nested BaseSettings must be given the same env_file, otherwise it
    # only reads the process environment.
    database: DatabaseSettings = Field(
        default_factory=lambda: DatabaseSettings(
            _env_file=_ENV_FILE,
            _env_file_encoding=_ENV_FILE_ENCODING,
        )
    )
    profile_api: ProfileApiSettings = Field(
        default_factory=lambda: ProfileApiSettings(
            _env_file=_ENV_FILE,
            _env_file_encoding=_ENV_FILE_ENCODING,
        )
    )
    analyzer: AnalyzerSettings = Field(
        default_factory=lambda: AnalyzerSettings(
            _env_file=_ENV_FILE,
            _env_file_encoding=_ENV_FILE_ENCODING,
        )
    )
    refresh: RefreshSettings = Field(
        default_factory=lambda: RefreshSettings(
            _env_file=_ENV_FILE,
            _env_file_encoding=_ENV_FILE_ENCODING,
        )
    )
    telegram: TelegramSettings = Field(
        default_factory=lambda: TelegramSettings(
            _env_file=_ENV_FILE,
            _env_file_encoding=_ENV_FILE_ENCODING,
        )
    )

    # Application settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )
    dry_run: bool = Field(
        default=False,
        alias="DRY_RUN",
        description="Run without sending actual notifications",
    )
    enrich_on_admit: bool = Field(
        default=False,
        alias="ENRICH_ON_ADMIT",
        description="Score admitted trades immediately instead of waiting for the refresh worker",
    )

    def get_logging_level(self) -> int:
        """Get the numeric logging level."""
        level: int = getattr(logging, self.log_level)
        return level

    def redacted_summary(self) -> dict[str, str | dict[str, str]]:
        """Get a summary of settings with secrets redacted.

        Returns:
            Dictionary of settings with sensitive values masked.
        """
        return {
            "database_url": self._redact_url(self.database.url),
            "profile_api": {
                "url": self.profile_api.url,
                "timeout_seconds": str(self.profile_api.timeout_seconds),
            },
            "analyzer": {
                "cache_ttl_seconds": str(self.analyzer.cache_ttl_seconds),
                "cache_max_size": str(self.analyzer.cache_max_size),
            },
            "refresh": {
                "interval_seconds": str(self.refresh.interval_seconds),
                "batch_size": str(self.refresh.batch_size),
                "call_delay_seconds": str(self.refresh.call_delay_seconds),
                "max_bet_count": str(self.refresh.max_bet_count),
            },
            "telegram": {
                "bot_token": "(set)" if self.telegram.bot_token else "(not set)",
                "chat_ids": str(len(self.telegram.chat_id_list)),
            },
            "log_level": self.log_level,
            "dry_run": str(self.dry_run),
            "enrich_on_admit": str(self.enrich_on_admit),
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact password from URL if present."""
        if "@" in url and "://" in url:
            protocol_end = url.index("://") + 3
            at_pos = url.index("@")
            creds_part = url[protocol_end:at_pos]
            if ":" in creds_part:
                username = creds_part.split(":")[0]
                return f"{url[:protocol_end]}{username}:***@{url[at_pos + 1 :]}"
        return url


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The Settings instance.

    Raises:
        ValidationError: If environment variables have invalid values.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing when you need to reload settings with
    different environment variables.
    """
    get_settings.cache_clear()
