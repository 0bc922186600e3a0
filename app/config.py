"""
Application configuration using pydantic-settings.

Loads environment variables from .env file and provides typed access
to configuration values throughout the application.
"""

from functools import lru_cache
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.models.property import PropertyType


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # MongoDB configuration
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "estatehub"
    mongodb_collection: str = "properties"
    mongodb_timeout_ms: int = 5000
    create_indexes: bool = True

    # Search configuration
    search_default_limit: int = 12
    search_max_limit: int = 50
    admin_default_limit: int = 20
    admin_max_limit: int = 100
    property_types: List[str] = [
        "house",
        "apartment",
        "condo",
        "townhouse",
        "villa",
        "commercial",
        "land",
    ]

    # Owner recorded on new listings until authentication is wired in
    listing_owner_id: str = "507f1f77bcf86cd799439011"

    # Application settings
    debug: bool = False
    log_level: str = "INFO"
    app_name: str = "Property Listing API"
    app_version: str = "0.1.0"
    cors_origins: List[str] = ["*"]

    @field_validator("property_types")
    @classmethod
    def known_property_types(cls, value: List[str]) -> List[str]:
        """Searchable types may only narrow the types a listing can be created with."""
        known = {t.value for t in PropertyType}
        unknown = [t for t in value if t not in known]
        if unknown:
            raise ValueError(f"Unknown property types: {', '.join(unknown)}")
        return value


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures we only load settings once and reuse
    the same instance throughout the application lifecycle.
    """
    return Settings()
