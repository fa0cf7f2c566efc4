"""
Settings - Application configuration using Pydantic Settings.

Loads from environment variables and .env files.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Elasticsearch connection
    elasticsearch_hosts: list[str] = ["http://localhost:9200"]
    elasticsearch_username: str | None = None
    elasticsearch_password: str | None = None
    elasticsearch_api_key: str | None = None
    # Sends compatible-with=N headers (e.g. 7 for a 7.x cluster behind an 8.x client)
    elasticsearch_compatibility_version: int | None = None
    elasticsearch_verify_certs: bool = True
    elasticsearch_request_timeout: float = 30.0
    elasticsearch_max_retries: int = 3
    elasticsearch_retry_backoff: float = 1.0

    # Search defaults
    search_default_index: str = "documents"
    search_default_page_size: int = 50

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
