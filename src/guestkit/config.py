"""Runtime configuration management."""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_prefix="GUESTKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    GUEST: str | None = Field(
        default=None,
        description="Explicit guest identifier applied when a machine does not set one",
    )
    CATALOG_PATH: str | None = Field(
        default=None, description="Default guest catalog YAML used by the CLI"
    )
    LOG_LEVEL: str = Field(default="WARNING", description="Root logging level for the CLI")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Normalize the level name and reject unknown ones."""
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
