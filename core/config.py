"""Application configuration settings using Pydantic Settings."""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    APP_NAME: str = Field(default="Venue Booking Engine", description="Application name")
    APP_ENV: str = Field(default="development", description="Environment (development, staging, production)")
    DEBUG: bool = Field(default=False, description="Debug mode")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    API_V1_PREFIX: str = "/api/v1"

    # Database
    DATABASE_URL: str = Field(default="sqlite:///./venue_booking.db", description="Database connection URL")
    DB_POOL_SIZE: int = Field(default=5, ge=1)
    DB_MAX_OVERFLOW: int = Field(default=10, ge=0)
    DB_ECHO: bool = False

    # Venue
    VENUE_TIMEZONE: str = Field(default="America/Chicago", description="Venue local time zone")

    # Slot grid and seating durations
    SLOT_STEP_MINUTES: int = Field(default=15, ge=1)
    SMALL_PARTY_MAX_SIZE: int = Field(default=2, ge=1)
    SMALL_PARTY_DURATION_MINUTES: int = Field(default=90, ge=1)
    LARGE_PARTY_DURATION_MINUTES: int = Field(default=120, ge=1)
    MAX_PARTY_SIZE: int = Field(default=20, ge=1)

    # Next-open-slot search
    NEXT_SLOT_HORIZON_DAYS: int = Field(default=7, ge=1)
    NEXT_SLOT_MAX_BLOCKS_PER_TABLE: int = Field(default=500, ge=1)

    # Reservation commit
    COMMIT_MAX_ATTEMPTS: int = Field(default=3, ge=1, le=10)

    # Admin notifications
    ADMIN_NOTIFICATION_PHONE: Optional[str] = None

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed_levels:
            raise ValueError(f"LOG_LEVEL must be one of {allowed_levels}")
        return v_upper

    @field_validator("APP_ENV")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate environment is one of the allowed values."""
        allowed_envs = ["development", "staging", "production"]
        v_lower = v.lower()
        if v_lower not in allowed_envs:
            raise ValueError(f"APP_ENV must be one of {allowed_envs}")
        return v_lower

    @field_validator("VENUE_TIMEZONE")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Reject time zone names pytz does not know."""
        import pytz

        try:
            pytz.timezone(v)
        except pytz.UnknownTimeZoneError:
            raise ValueError(f"Unknown time zone: {v}")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.APP_ENV == "development"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
