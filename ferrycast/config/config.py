"""
Configuration management for the training pipeline.

Loads settings from environment variables and an optional .env file.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# .env values become environment variables before any settings class reads them
load_dotenv()


class WsfSettings(BaseSettings):
    """WSF Vessels API configuration."""

    base_url: str = Field(default="https://www.wsdot.wa.gov/ferries/api/vessels/rest")
    api_access_code: str | None = Field(default=None)
    timeout_seconds: int = Field(default=30)
    # History range, counted back from today's sailing day
    days_back: int = Field(default=365)
    # Vessels fetched concurrently per batch
    batch_size: int = Field(default=2)
    max_records_per_vessel: int = Field(default=7500)
    sample_records: bool = Field(default=True)
    sampling_strategy: Literal["recent_first"] = Field(default="recent_first")

    model_config = SettingsConfigDict(env_prefix="WSF_")


class TrainingSettings(BaseSettings):
    """Window validation and model training thresholds."""

    # Duration bounds (minutes)
    min_at_sea_minutes: float = Field(default=2.0)
    max_at_sea_minutes: float = Field(default=90.0)
    min_at_dock_minutes: float = Field(default=2.0)
    max_at_dock_minutes: float = Field(default=45.0)
    max_total_minutes: float = Field(default=120.0)

    # Record plausibility
    early_departure_tolerance_minutes: float = Field(default=5.0)
    min_at_sea_ratio_of_mean: float = Field(default=0.8)

    # Slack handling
    slack_clamp_multiplier: float = Field(default=1.5)
    max_next_slack_minutes: float = Field(default=12 * 60.0)

    # Bucketing and training
    max_samples_per_route: int = Field(default=7500)
    train_ratio: float = Field(default=0.8)
    min_total_examples: int = Field(default=20)
    min_train_examples: int = Field(default=10)
    min_test_examples: int = Field(default=5)
    instability_coefficient_threshold: float = Field(default=10_000.0)
    zero_rounding_threshold: float = Field(default=1e-6)

    # Parallel training units (1 = sequential)
    max_workers: int = Field(default=1, ge=1, le=32)

    # Operating timezone for time-of-day features and sailing days
    timezone: str = Field(default="America/Los_Angeles")

    model_config = SettingsConfigDict(env_prefix="TRAINING_")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value


class DatabaseSettings(BaseSettings):
    """SQLite model repository configuration."""

    path: str = Field(default="data/models.db")

    model_config = SettingsConfigDict(env_prefix="DB_")

    @property
    def full_path(self) -> Path:
        """Database file path."""
        return Path(self.path)


class LoggingSettings(BaseSettings):
    """Console and file log sinks."""

    level: str = Field(default="INFO")
    log_dir: str = Field(default="logs")
    log_file: str = Field(default="training.log")
    rotation: str = Field(default="10 MB")
    retention: str = Field(default="7 days")

    model_config = SettingsConfigDict(env_prefix="LOG_")


class Settings(BaseSettings):
    """All settings groups for one process."""

    wsf: WsfSettings = Field(default_factory=WsfSettings)
    training: TrainingSettings = Field(default_factory=TrainingSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    # Deployment name shown in the run banner
    environment: str = Field(default="development")

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_nested_delimiter="__",
    )


@lru_cache
def get_settings() -> Settings:
    """Settings are read from the environment once per process."""
    return Settings()


settings = get_settings()

__all__ = [
    "Settings",
    "WsfSettings",
    "TrainingSettings",
    "DatabaseSettings",
    "LoggingSettings",
    "get_settings",
    "settings",
]
