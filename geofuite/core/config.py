"""
GeoFuite - Configuration Management
Centralized configuration using pydantic-settings.
"""

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Gemini (AI advisory). Absent key means "AI disabled".
    gemini_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("gemini_api_key", "api_key"),
    )
    gemini_model: str = "gemini-2.5-flash"
    ai_timeout_seconds: float = 15.0

    # Local key-value store
    storage_path: str = "geo_fuite_storage.json"
    storage_key: str = "geo_fuite_data"
    storage_quota_bytes: int = 5 * 1024 * 1024

    # Photo normalization
    photo_max_width: int = 800
    photo_jpeg_quality: float = 0.7

    # Geolocation
    geolocation_timeout_seconds: float = 10.0
    geolocation_url: str = "https://ipapi.co/json/"

    # Map display
    default_latitude: float = 48.8566
    default_longitude: float = 2.3522
    map_zoom: int = 14

    # API Settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    @field_validator("photo_jpeg_quality")
    @classmethod
    def _check_quality(cls, value: float) -> float:
        if not 0.0 < value <= 1.0:
            raise ValueError("photo_jpeg_quality must be in (0.0, 1.0]")
        return value

    @field_validator("default_latitude")
    @classmethod
    def _check_latitude(cls, value: float) -> float:
        if not -90.0 <= value <= 90.0:
            raise ValueError("default_latitude out of range")
        return value

    @field_validator("default_longitude")
    @classmethod
    def _check_longitude(cls, value: float) -> float:
        if not -180.0 <= value <= 180.0:
            raise ValueError("default_longitude out of range")
        return value

    @property
    def ai_enabled(self) -> bool:
        return bool(self.gemini_api_key and self.gemini_api_key.strip())


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
