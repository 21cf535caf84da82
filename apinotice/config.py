"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"
DEFAULT_DATABASE_URL = "sqlite:///./data/apinotice.db"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        default=DEFAULT_DATABASE_URL,
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    database_timeout_seconds: float = Field(
        default=10,
        gt=0,
        description="Upper bound for a single database lock wait or statement",
    )
    sendgrid_api_key: str | None = Field(
        default=None,
        description="SendGrid API key used for sending notices via the REST API",
    )
    sendgrid_sender: str | None = Field(
        default=None,
        description="Email address that will appear as the sender of notices",
        min_length=3,
    )
    sendgrid_sender_name: str | None = Field(
        default=None,
        description="Display name attached to the sender address",
    )
    notify_fallback_recipient: str | None = Field(
        default=None,
        description="Address used when an API has no contact email configured",
    )
    notify_dispatcher_enabled: bool = Field(
        default=True,
        description="Start the background notification dispatcher with the application",
    )
    notify_poll_interval_seconds: float = Field(
        default=30, gt=0, description="Seconds between two dispatch cycles"
    )
    notify_cycle_timeout_seconds: float = Field(
        default=25, gt=0, description="Upper bound for a single dispatch cycle"
    )
    notify_batch_limit: int = Field(
        default=50, gt=0, description="Maximum number of due notices handled per cycle"
    )
    notify_max_attempts: int = Field(
        default=6, gt=0, description="Failed deliveries tolerated before auto-cancel"
    )
    notify_backoff_base_seconds: float = Field(
        default=60, gt=0, description="Delay before the first retry"
    )
    notify_backoff_max_seconds: float = Field(
        default=3600, gt=0, description="Upper bound for the retry delay"
    )
    notify_subject_prefix: str = Field(
        default="[apinotice]", description="Prefix prepended to every notice subject"
    )
    rate_limit_requests: int = Field(
        default=60, gt=0, description="Requests allowed per client and window"
    )
    rate_limit_window_seconds: float = Field(
        default=60, gt=0, description="Length of the rate limit window"
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"],
        description="Origins allowed to call the API from a browser",
    )
    log_level: str = Field(default="INFO", description="Root logging level")

    @model_validator(mode="after")
    def _validate_sendgrid_pair(self) -> "Settings":
        if bool(self.sendgrid_api_key) ^ bool(self.sendgrid_sender):
            raise ValueError(
                "SENDGRID_API_KEY and SENDGRID_SENDER must both be provided to enable email"
            )
        if self.sendgrid_sender and "@" not in self.sendgrid_sender:
            raise ValueError("SENDGRID_SENDER must be a valid email address")
        if self.notify_fallback_recipient is not None:
            fallback = self.notify_fallback_recipient.strip()
            if not fallback:
                self.notify_fallback_recipient = None
            elif "@" not in fallback:
                raise ValueError("NOTIFY_FALLBACK_RECIPIENT must be a valid email address")
        return self

    @model_validator(mode="after")
    def _validate_backoff(self) -> "Settings":
        if self.notify_backoff_max_seconds < self.notify_backoff_base_seconds:
            raise ValueError(
                "NOTIFY_BACKOFF_MAX_SECONDS must be greater than or equal to "
                "NOTIFY_BACKOFF_BASE_SECONDS"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
