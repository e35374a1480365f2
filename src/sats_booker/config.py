"""Configuration objects and helpers for the SATS booker."""

from __future__ import annotations

import re
from datetime import date
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, HttpUrl, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .locations import DEFAULT_LOCATION
from .models import PreferenceSet


class Settings(BaseSettings):
    """Runtime configuration sourced from environment variables."""

    sats_email: str = Field(..., alias="SATS_EMAIL")
    sats_password: SecretStr = Field(..., alias="SATS_PASSWORD")
    base_url: HttpUrl = Field("https://sats.no", alias="SATS_BASE_URL")
    headless: bool = Field(True, alias="HEADLESS")
    timeout_seconds: int = Field(30, alias="TIMEOUT_SECONDS")

    preferred_classes: str = Field("", alias="PREFERRED_CLASSES")
    preferred_times: str = Field("", alias="PREFERRED_TIMES")
    preferred_locations: str = Field("", alias="PREFERRED_LOCATIONS")
    default_location: str = Field(DEFAULT_LOCATION, alias="DEFAULT_LOCATION")
    days_in_advance: int = Field(7, alias="DAYS_IN_ADVANCE", ge=0)

    booking_time: str = Field("10:00", alias="BOOKING_TIME")
    timezone: str = Field("Europe/Oslo", alias="TIMEZONE")

    enable_notifications: bool = Field(False, alias="ENABLE_NOTIFICATIONS")
    email_host: Optional[str] = Field(None, alias="EMAIL_HOST")
    email_port: int = Field(587, alias="EMAIL_PORT")
    email_user: Optional[str] = Field(None, alias="EMAIL_USER")
    email_pass: Optional[SecretStr] = Field(None, alias="EMAIL_PASS")
    email_to: Optional[str] = Field(None, alias="EMAIL_TO")
    imap_host: str = Field("imap.gmail.com", alias="EMAIL_IMAP_HOST")
    imap_port: int = Field(993, alias="EMAIL_IMAP_PORT")
    poll_interval_seconds: int = Field(60, alias="POLL_INTERVAL_SECONDS", ge=5)

    telegram_bot_token: Optional[SecretStr] = Field(None, alias="TELEGRAM_BOT_TOKEN")
    telegram_chat_id: Optional[str] = Field(None, alias="TELEGRAM_CHAT_ID")

    model_config = SettingsConfigDict(
        env_file=(".env",),
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator("booking_time")
    @classmethod
    def validate_booking_time(cls, value: str) -> str:
        """Accept HH:MM (or H:MM) and normalise it."""
        match = re.fullmatch(r"(\d{1,2}):(\d{2})", value.strip())
        if not match or int(match.group(1)) > 23 or int(match.group(2)) > 59:
            raise ValueError(f"BOOKING_TIME must be HH:MM, got {value!r}")
        return f"{int(match.group(1)):02d}:{match.group(2)}"

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone {value!r}") from exc
        return value

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def preferences(self) -> PreferenceSet:
        """Preferences for scheduled runs, from the comma separated env values."""
        return PreferenceSet.from_values(
            self.preferred_classes.split(","),
            self.preferred_times.split(","),
            self.preferred_locations.split(","),
        )

    def url(self, path: str) -> str:
        return f"{str(self.base_url).rstrip('/')}/{path.lstrip('/')}"

    def class_schedule_url(self, target_date: date) -> str:
        """Group class timetable, opened on the target date."""
        return self.url(f"trening/gruppetimer?date={target_date.isoformat()}")

    @property
    def smtp_configured(self) -> bool:
        return bool(self.email_host and self.email_user and self.email_pass)

    @property
    def imap_configured(self) -> bool:
        return bool(self.email_user and self.email_pass)

    @property
    def notification_recipient(self) -> str:
        return self.email_to or self.sats_email

    @property
    def telegram_api_endpoint(self) -> Optional[str]:
        """Base Telegram Bot API endpoint, if a bot token is configured."""
        if not self.telegram_bot_token:
            return None
        return f"https://api.telegram.org/bot{self.telegram_bot_token.get_secret_value()}"
