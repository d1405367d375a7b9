"""
Configuration management for the futures replay engine.

Uses pydantic-settings for type-safe environment variable handling.
All values have sensible defaults so a session can start with no environment.
"""

from datetime import date
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Engine settings loaded from environment variables (prefix ``REPLAY_``).
    """

    model_config = SettingsConfigDict(
        env_prefix="REPLAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    # Account
    initial_cash: float = Field(
        default=100000.0,
        ge=10000.0,
        le=1000000.0,
        description="Starting account balance",
    )

    # Playback
    default_timeframe: str = Field(
        default="15m",
        description="Timeframe used when a session starts without one",
    )
    default_speed_ms: int = Field(
        default=100,
        ge=1,
        le=10000,
        description="Default tick interval in milliseconds",
    )
    warmup_bars: int = Field(
        default=200,
        ge=0,
        description="Bars already revealed when a session starts",
    )

    # Generation
    default_start_date: date = Field(
        default=date(2024, 1, 2),
        description="First replay date when a session starts without one",
    )
    max_bars: int = Field(
        default=3000,
        ge=1,
        le=50000,
        description="Upper bound on bars generated per instrument",
    )
    horizon_date: date = Field(
        default=date(2025, 12, 31),
        description="Fixed terminal horizon; no bar is generated past this date",
    )
    session_open_hour: int = Field(
        default=9,
        ge=0,
        le=23,
        description="UTC hour of the first bar on the start date",
    )
    generator_seed: int | None = Field(
        default=None,
        description="Fixed generator seed (None re-seeds on every generation)",
    )

    # Display
    order_book_levels: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Price levels per side in the cosmetic order book",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper_v

    @field_validator("default_timeframe")
    @classmethod
    def validate_timeframe(cls, v: str) -> str:
        """Validate the default timeframe is one the synthesizer supports."""
        from futures_replay.domain.bar import Timeframe

        return Timeframe(v).value

    def get_summary(self) -> dict[str, str | int | float | None]:
        """Get configuration dict suitable for logging."""
        return {
            "log_level": self.log_level,
            "initial_cash": self.initial_cash,
            "default_timeframe": self.default_timeframe,
            "default_speed_ms": self.default_speed_ms,
            "warmup_bars": self.warmup_bars,
            "max_bars": self.max_bars,
            "default_start_date": self.default_start_date.isoformat(),
            "horizon_date": self.horizon_date.isoformat(),
            "generator_seed": self.generator_seed,
        }


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure single instance throughout application.
    """
    return Settings()
