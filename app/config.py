"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    secret_key: str = Field(
        description="Secret key for signing JWT tokens", min_length=1
    )
    access_token_expire_minutes: int = Field(
        default=60,
        description="Number of minutes before access tokens expire",
        gt=0,
    )
    app_timezone: str = Field(
        default="Asia/Phnom_Penh",
        description="IANA timezone used for stored timestamps and scheduled jobs",
    )
    app_url: str = Field(
        default="https://plp-mentor.edu.kh",
        description="Public URL of the web client, used for links in emails",
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173"],
        description="Origins allowed to call the API from a browser",
    )
    sendgrid_api_key: str | None = Field(
        default=None,
        description="SendGrid API key used for sending transactional emails via the REST API",
    )
    sendgrid_sender: str | None = Field(
        default=None,
        description="Email address that will appear as the sender of transactional messages",
        min_length=3,
    )
    sms_enabled: bool = Field(
        default=False,
        description="Turn SMS delivery on; when off every SMS send is a silent no-op",
    )
    twilio_account_sid: str | None = Field(default=None)
    twilio_auth_token: str | None = Field(default=None)
    twilio_from_number: str | None = Field(
        default=None, description="Sender number in E.164 form"
    )
    sms_country_code: str = Field(
        default="+855",
        description="Country calling code prefixed to local phone numbers",
        pattern=r"^\+\d{1,3}$",
    )
    channel_timeout_seconds: float = Field(
        default=10.0,
        description="Upper bound for a single email or SMS send",
        gt=0,
    )
    scheduler_enabled: bool = Field(
        default=True,
        description="Start the background scheduler for digests and expiry cleanup",
    )
    expiry_reaper_hour: int = Field(default=0, ge=0, le=23)
    daily_digest_hour: int = Field(default=8, ge=0, le=23)
    weekly_digest_day: str = Field(
        default="mon", pattern=r"^(mon|tue|wed|thu|fri|sat|sun)$"
    )
    weekly_digest_hour: int = Field(default=8, ge=0, le=23)

    @model_validator(mode="after")
    def _validate_sendgrid_pair(self) -> "Settings":
        if bool(self.sendgrid_api_key) ^ bool(self.sendgrid_sender):
            raise ValueError(
                "SENDGRID_API_KEY and SENDGRID_SENDER must both be provided to enable email"
            )
        if self.sendgrid_sender and "@" not in self.sendgrid_sender:
            raise ValueError("SENDGRID_SENDER must be a valid email address")
        return self

    @property
    def sms_configured(self) -> bool:
        """Return ``True`` when SMS is enabled and every Twilio credential is set."""

        return bool(
            self.sms_enabled
            and self.twilio_account_sid
            and self.twilio_auth_token
            and self.twilio_from_number
        )


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
