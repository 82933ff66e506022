"""
Application settings - pydantic-settings configuration.

This module defines client configuration using pydantic-settings
for environment variable loading with validation and defaults.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Backend configuration
    api_base_url: str = "http://10.0.2.2:4000"  # Android emulator -> host localhost

    # Transport settings
    request_timeout_seconds: float = 20.0  # Hard timeout per attempt
    max_retries: int = 2  # Retries after the first attempt
    retry_base_delay_seconds: float = 0.5  # Backoff: base * 2^attempt

    # Verification bookkeeping
    verified_email_ttl_seconds: int = 1800  # Local fallback window (30 minutes)
    verification_store_path: str = ".scanclient/verified_emails.json"

    # Identity provider
    identity_api_key: str | None = None
    identity_base_url: str = "https://identitytoolkit.googleapis.com/v1"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
