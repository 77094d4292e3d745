"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables with validation,
type coercion, and sensible defaults.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CatalogSourceConfig(BaseSettings):
    """
    Where the catalog comes from and how it may fall back.

    Also used as the per-call configuration of a sync.
    """

    model_config = SettingsConfigDict(env_prefix="CATALOG_")

    url: str | None = Field(
        default=None,
        description="Remote catalog URL (None = bundled catalog only)",
    )
    fallback_to_bundled: bool = Field(
        default=True,
        description="Use the bundled catalog when remote and cache both fail",
    )
    validate_schema: bool = Field(
        default=True,
        description=(
            "Reject entries with malformed optional fields; URLs and markup are always checked"
        ),
    )
    enforce_https: bool = Field(
        default=True,
        description="Reject catalog source URLs that are not https",
    )
    bundled_path: Path | None = Field(
        default=None,
        description="Override path of the bundled catalog JSON file",
    )

    @field_validator("url", mode="before")
    @classmethod
    def blank_url_is_none(cls, v: str | None) -> str | None:
        """Treat an empty or whitespace-only URL as not configured."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class FetchConfig(BaseSettings):
    """HTTP fetch and retry behavior."""

    model_config = SettingsConfigDict(env_prefix="FETCH_")

    timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        le=120.0,
        description="Absolute timeout for a single fetch attempt",
    )
    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Total attempts for transient failures",
    )
    retry_delay_seconds: float = Field(
        default=1.0,
        ge=0.0,
        le=30.0,
        description="Fixed delay between attempts",
    )
    user_agent: str = Field(
        default="GameLauncher/1.0",
        description="User-Agent header sent to the catalog host",
    )
    dedupe_in_flight: bool = Field(
        default=True,
        description="Share one fetch between concurrent calls for the same endpoint",
    )


class CacheConfig(BaseSettings):
    """Local catalog cache configuration."""

    model_config = SettingsConfigDict(env_prefix="CACHE_")

    directory: Path = Field(
        default=Path("data/cache"),
        description="Directory for the file-backed cache",
    )
    max_age_hours: float = Field(
        default=24.0,
        ge=0.0,
        description="Age after which a cached catalog expires (0 = never)",
    )


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    format: Literal["json", "console"] = Field(
        default="json",
        description="Log output format",
    )
    include_timestamp: bool = Field(
        default=True,
        description="Include timestamp in log entries",
    )


class Settings(BaseSettings):
    """
    Main application settings.

    Aggregates all configuration sections and provides
    a single entry point for configuration access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )

    # Sub-configurations
    catalog: CatalogSourceConfig = Field(default_factory=CatalogSourceConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once
    and reused across the application.

    Returns:
        Settings: Application configuration instance
    """
    return Settings()
