"""
Configuration and settings for the submissions backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # Row store (Postgres expected; any SQLAlchemy URL works)
    database_url: Optional[str] = Field(default=None)
    table_name: str = Field(default="Submissions")

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    # The survey page is served from a CDN on a different origin.
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    log_level: str = Field(default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
