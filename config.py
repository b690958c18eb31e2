"""
Configuration settings for the sprachcoach service.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///sprachcoach.db",
        description="SQLAlchemy connection string (SQLite or PostgreSQL)",
    )

    # ========================================
    # Telegram
    # ========================================
    telegram_bot_token: str = Field(
        default="",
        description="Telegram Bot API token used for outbound challenges",
    )
    telegram_api_url: str = Field(
        default="https://api.telegram.org",
        description="Telegram Bot API base URL",
    )

    # ========================================
    # AI Generation (Gemini)
    # ========================================
    gemini_api_key: str = Field(
        default="",
        description="Google Generative Language API key",
    )
    gemini_model: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model used for exercise generation",
    )
    gemini_api_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Generative Language REST base URL",
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for outbound generation and delivery calls",
    )

    # ========================================
    # Automated Challenges
    # ========================================
    challenge_weekly_cap: int = Field(
        default=4,
        description="Maximum automated challenges per user per week",
    )
    challenge_window_start_hour: int = Field(
        default=9,
        description="Earliest hour (inclusive) for the first challenge of a user",
    )
    challenge_window_end_hour: int = Field(
        default=20,
        description="Latest hour (inclusive) for the first challenge of a user",
    )
    challenge_min_interval_days: float = Field(
        default=2.0,
        description="Lower bound of the delay between two challenges",
    )
    challenge_max_interval_days: float = Field(
        default=4.0,
        description="Upper bound (exclusive) of the delay between two challenges",
    )
    challenge_retry_seconds: float = Field(
        default=3600.0,
        description="Delay before a failed challenge is retried",
    )
    challenge_max_retry_attempts: int | None = Field(
        default=None,
        description="Give up on a user after this many consecutive failures (None = retry forever)",
    )
    challenge_retry_backoff_factor: float = Field(
        default=1.0,
        description="Multiplier applied to the retry delay after each consecutive failure",
    )
    challenge_review_limit: int = Field(
        default=2,
        description="Number of stored phrases drilled in an automated review challenge",
    )
    subscription_sync_seconds: float = Field(
        default=60.0,
        description="How often a running scheduler re-reads the subscription table",
    )

    # ========================================
    # Review Selection
    # ========================================
    review_feedback_window: int = Field(
        default=50,
        description="Number of most recent feedback records considered for review",
    )
    review_shuffle_probability: float = Field(
        default=0.3,
        description="Chance that an importance group is shuffled instead of kept in order",
    )
    review_exercise_limit: int = Field(
        default=3,
        description="Number of phrases used for a manual /review exercise",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_file: str | None = Field(
        default="logs/sprachcoach.log",
        description="Log file path (None for stdout only)",
    )

    @model_validator(mode="after")
    def _check_challenge_window(self) -> "Settings":
        if not 0 <= self.challenge_window_start_hour <= self.challenge_window_end_hour <= 23:
            raise ValueError("challenge window hours must satisfy 0 <= start <= end <= 23")
        if self.challenge_min_interval_days > self.challenge_max_interval_days:
            raise ValueError("challenge_min_interval_days must not exceed challenge_max_interval_days")
        if not 0.0 <= self.review_shuffle_probability <= 1.0:
            raise ValueError("review_shuffle_probability must be between 0 and 1")
        return self

    def has_ai_configured(self) -> bool:
        """Check if AI generation is configured."""
        return bool(self.gemini_api_key)

    def has_telegram_configured(self) -> bool:
        """Check if Telegram delivery is configured."""
        return bool(self.telegram_bot_token)

    def get_challenge_config(self) -> dict[str, Any]:
        """Get scheduler and selection tuning as a dictionary."""
        return {
            "weekly_cap": self.challenge_weekly_cap,
            "window_start_hour": self.challenge_window_start_hour,
            "window_end_hour": self.challenge_window_end_hour,
            "min_interval_days": self.challenge_min_interval_days,
            "max_interval_days": self.challenge_max_interval_days,
            "retry_seconds": self.challenge_retry_seconds,
            "max_retry_attempts": self.challenge_max_retry_attempts,
            "retry_backoff_factor": self.challenge_retry_backoff_factor,
            "review_limit": self.challenge_review_limit,
            "feedback_window": self.review_feedback_window,
            "shuffle_probability": self.review_shuffle_probability,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
