"""
Configuration for DineBook Service
"""
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_project_root() -> Path:
    """Find project root directory by looking for .env file or pyproject.toml"""
    current = Path(__file__).resolve()

    for parent in current.parents:
        if (parent / ".env").exists():
            return parent
        if (parent / "pyproject.toml").exists() and (parent / "dinebook_service").exists():
            return parent

    return Path.cwd()


PROJECT_ROOT = _find_project_root()
ENV_FILE_PATH = PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Settings class for DineBook Service"""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE_PATH) if ENV_FILE_PATH.exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True
    )

    # Database
    mongodb_uri: str = "mongodb://localhost:27017/dinebook"
    database_name: str = "dinebook"
    mongodb_timeout_ms: int = 5000

    # Application
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    host: str = Field(default="0.0.0.0", description="Host the API listens on")
    port: int = Field(default=3000, description="Port the API listens on")
    frontend_origin: str = Field(
        default="http://localhost:4200",
        description="Origin allowed by CORS"
    )

    # Bookings
    slot_interval_minutes: int = Field(default=30, ge=5, le=240)
    max_party_size: int = Field(default=20, ge=1)

    # Caches (per-process, time-to-live in seconds)
    availability_cache_ttl_seconds: int = 300
    bookings_cache_ttl_seconds: int = 120
    restaurant_cache_ttl_seconds: int = 900
    cache_max_entries: int = 2048

    # Search
    nearby_default_radius_km: float = 5.0
    list_default_radius_km: float = 10.0
    fallback_distance_meters: float = Field(
        default=1000.0,
        description="Placeholder distance reported when the geospatial query is unavailable"
    )

    # Metrics
    metrics_prefix: str = "dinebook"

    # Notifications
    notification_sender: Optional[str] = "no-reply@dinebook.local"


def get_settings() -> Settings:
    """Get application settings"""
    try:
        return Settings()
    except Exception as e:
        if not ENV_FILE_PATH.exists():
            raise RuntimeError(
                f"Could not load configuration: no .env file at {ENV_FILE_PATH} "
                f"and the environment is missing required values.\n"
                f"   Set SECRET_KEY (and optionally MONGODB_URI) or create {ENV_FILE_PATH}"
            ) from e
        raise RuntimeError(
            f"Error loading configuration from {ENV_FILE_PATH}:\n"
            f"   {str(e)}\n"
            f"   Check that all required variables are set (SECRET_KEY)\n"
            f"   Format: MONGODB_URI=mongodb://... (no spaces around =)"
        ) from e
