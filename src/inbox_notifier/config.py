"""Configuration management for Inbox Notifier.

This module handles application configuration using Pydantic settings.
Configuration can be loaded from environment variables or .env files.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with
    the INBOX_NOTIFIER_ prefix (e.g., INBOX_NOTIFIER_POLL_INTERVAL_SECONDS).
    """

    model_config = SettingsConfigDict(
        env_prefix="INBOX_NOTIFIER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Gmail Configuration
    gmail_credentials_path: Path = Field(
        default=Path("credentials.json"),
        description="Path to the OAuth client secrets file used by `authorize`",
    )
    gmail_token_path: Path = Field(
        default=Path("token.json"),
        description="Path to the persisted Gmail OAuth token",
    )
    gmail_scope: str = Field(
        default="https://www.googleapis.com/auth/gmail.readonly",
        description="OAuth scope used for Gmail access",
    )
    gmail_user_id: str = Field(
        default="me",
        description="Gmail user id passed to the API",
    )
    gmail_query: str = Field(
        default="is:unread",
        description="Gmail search query that defines the watched message set",
    )
    gmail_max_results: int = Field(
        default=5,
        description="Maximum number of unread messages fetched per poll",
    )

    # Polling
    poll_interval_seconds: float = Field(
        default=60.0,
        description="Seconds between two scheduled polls",
    )
    monitor_on_startup: bool = Field(
        default=True,
        description="Start polling automatically when a credential is available",
    )
    notify_on_first_poll: bool = Field(
        default=False,
        description=(
            "Notify for every unread message found by the first poll. When False the "
            "first poll only records the existing unread set as a baseline."
        ),
    )

    # Telegram notifications
    telegram_bot_token: str | None = Field(
        default=None,
        description="Telegram bot token; notifications are only logged when unset",
    )
    telegram_chat_id: str | None = Field(
        default=None,
        description="Telegram chat id receiving notifications",
    )
    telegram_api_base: str = Field(
        default="https://api.telegram.org",
        description="Telegram Bot API base URL",
    )
    notification_timeout: int = Field(
        default=10,
        description="Timeout for outbound notification requests in seconds",
    )

    # HTTP control surface
    host: str = Field(default="127.0.0.1", description="Bind address of the control API")
    port: int = Field(default=3001, description="Port of the control API")

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    @field_validator("poll_interval_seconds", "gmail_max_results", "notification_timeout")
    @classmethod
    def _require_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @property
    def telegram_enabled(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
