"""
Library configuration using Pydantic settings.

Usage:
    from eztv.config import get_settings
    settings = get_settings()

For API limits and defaults, import from eztv.constants:
    from eztv.constants import MAX_EZTV_API_LIMIT, STREAM_RECHECK_INTERVAL
"""

from datetime import timedelta
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from eztv.constants import EZTV_BASE_URL, STREAM_RECHECK_INTERVAL


class Settings(BaseSettings):
    """
    Settings loaded from environment variables and .env file.

    Every value has a working default; nothing is required to talk to the
    public API.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = Field(default=False, validation_alias="DEBUG")

    # HTTP
    base_url: str = Field(default=EZTV_BASE_URL, validation_alias="EZTV_BASE_URL")
    request_timeout: float = Field(default=30.0, validation_alias="EZTV_REQUEST_TIMEOUT")
    max_connections: int = Field(default=10, validation_alias="EZTV_MAX_CONNECTIONS")

    # Streaming
    recheck_interval_seconds: float = Field(
        default=STREAM_RECHECK_INTERVAL.total_seconds(),
        validation_alias="EZTV_RECHECK_INTERVAL_SECONDS",
    )

    # Logging
    log_level: str = Field(default="INFO", validation_alias="EZTV_LOG_LEVEL")
    # auto: console renderer on a terminal or in debug mode, JSON lines otherwise
    log_format: Literal["auto", "console", "json"] = Field(
        default="auto", validation_alias="EZTV_LOG_FORMAT"
    )

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v:
            raise ValueError("EZTV_BASE_URL must not be empty")
        return v

    @field_validator("request_timeout", "recheck_interval_seconds")
    @classmethod
    def positive_seconds(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @field_validator("max_connections")
    @classmethod
    def positive_connections(cls, v: int) -> int:
        if v < 1:
            raise ValueError("EZTV_MAX_CONNECTIONS must be at least 1")
        return v

    @property
    def recheck_interval(self) -> timedelta:
        return timedelta(seconds=self.recheck_interval_seconds)


@lru_cache
def get_settings() -> Settings:
    """Get cached library settings."""
    return Settings()


__all__ = ["Settings", "get_settings"]
