"""Configuration management using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    dagwave_log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    dagwave_debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    dagwave_log_file: str | None = Field(
        default=None,
        description="Optional log file path (rotated daily)",
    )
    dagwave_max_parallel: int = Field(
        default=4,
        ge=1,
        le=64,
        description="Maximum number of tasks executed concurrently within a wave",
    )
    dagwave_fail_fast: bool = Field(
        default=False,
        description="Stop graph validation at the first violation",
    )

    @property
    def effective_log_level(self) -> str:
        """Console log level, taking debug mode into account."""
        return "DEBUG" if self.dagwave_debug else self.dagwave_log_level


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings instance loaded from environment.

    Example:
        >>> settings = get_settings()
        >>> settings.dagwave_max_parallel
        4
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
