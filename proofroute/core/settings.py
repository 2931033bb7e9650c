"""Package settings using Pydantic Settings for typed configuration.

This module centralizes all configuration and provides type-safe access to settings.
Settings are loaded from PROOFROUTE_* environment variables with sensible defaults.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Package-wide settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Dispatch logging
    log_dispatch_errors: bool = Field(
        default=True, alias="PROOFROUTE_LOG_DISPATCH_ERRORS"
    )

    # Route compilation
    handler_prefix: str = Field(
        default="__proof_route_",
        alias="PROOFROUTE_HANDLER_PREFIX",
        pattern=r"^[A-Za-z_][A-Za-z0-9_]*$",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
