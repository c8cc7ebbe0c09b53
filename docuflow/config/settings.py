"""
Settings - Application configuration using Pydantic Settings.

Loads from environment variables and .env files.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Gemini. Without an API key the client falls back to ADC
    # (`gcloud auth application-default login`).
    google_api_key: str | None = None
    extraction_model: str = "gemini-3-flash-preview"
    evaluation_model: str = "gemini-3-pro-preview"
    gemini_temperature: float = 1.0
    gemini_timeout_seconds: int = 300
    gemini_max_retries: int = 3

    # Page rendering
    preview_scale: float = 1.0
    preview_jpeg_quality: int = 60
    extraction_scale: float = 1.5
    extraction_jpeg_quality: int = 80

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False

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
