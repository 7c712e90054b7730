# backend/marketplace/core/config.py
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    environment: str = Field(default="development", description="Deployment environment name")

    # Database
    database_url: str = Field(
        default="sqlite:///./marketplace.db",
        description="SQLAlchemy URL for the primary database",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements to the log")

    # Redis / Celery
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis URL for booking locks; empty disables the distributed lock",
    )
    celery_broker_url: Optional[str] = Field(
        default=None,
        description="Celery broker URL (defaults to redis_url)",
    )

    # Booking rules
    default_booking_duration_minutes: int = Field(
        default=120,
        description="Duration assumed for bookings without an explicit end",
    )
    allow_overnight_availability: bool = Field(
        default=False,
        description="Let availability windows that cross midnight satisfy containment checks",
    )
    cancellation_notice_hours: int = Field(
        default=24,
        description="Bookings can only be cancelled this many hours before the event",
    )
    modification_notice_hours: int = Field(
        default=24,
        description="Pending bookings can only be rescheduled this many hours before the event",
    )

    # Booking lock
    booking_lock_ttl_seconds: int = Field(
        default=30, description="Expiry of the per vendor/day booking lock"
    )
    booking_lock_wait_seconds: float = Field(
        default=5.0, description="How long a booking attempt waits for a held lock"
    )
    booking_lock_poll_interval_seconds: float = Field(
        default=0.05, description="Sleep between lock acquisition attempts"
    )

    log_level: str = Field(default="INFO", description="Root log level")
    is_testing: bool = Field(default=False, description="Set by the test suite")

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("default_booking_duration_minutes", "booking_lock_ttl_seconds")
    @classmethod
    def _require_positive_int(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be greater than 0")
        return value

    @field_validator(
        "booking_lock_wait_seconds",
        "booking_lock_poll_interval_seconds",
        "cancellation_notice_hours",
        "modification_notice_hours",
    )
    @classmethod
    def _require_non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("must not be negative")
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper() or "INFO"
        return value

    def get_database_url(self) -> str:
        """Return the database URL, preferring the test database while testing."""
        if self.is_testing or is_running_tests():
            return os.getenv("TEST_DATABASE_URL", self.database_url)
        return self.database_url

    def get_celery_broker_url(self) -> str:
        return self.celery_broker_url or self.redis_url or "redis://localhost:6379/0"

    @property
    def booking_lock_enabled(self) -> bool:
        return bool(self.redis_url and self.redis_url.strip())


settings = Settings()
