"""
Configuration settings for the DayTrack backend.

This module handles application configuration using Pydantic settings.
"""

from pydantic_settings import BaseSettings
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError
from typing import Optional

from daytrack.app.models.enums import StopContainmentPolicy


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = "DayTrack Backend"
    api_version: str = "v1"
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Driver history database (external, read-only)
    driver_database_url: Optional[str] = None
    db_echo: bool = False
    db_pool_size: int = 10
    db_max_overflow: int = 10
    db_pool_recycle: int = 60
    db_connect_timeout: int = 10

    # Baby tracker database (embedded file store)
    tracker_database_url: str = "sqlite+aiosqlite:///./data/baby-tracker.db"

    # Redis Configuration
    redis_url: Optional[str] = None
    redis_decode_responses: bool = True
    driver_list_cache_ttl: int = 300

    # Driver dashboard behaviour
    healthcheck_token: Optional[str] = None
    use_sample_data: bool = False
    stop_containment_policy: StopContainmentPolicy = StopContainmentPolicy.ARRIVAL_ONLY

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def driver_db_config_error(self) -> Optional[str]:
        """
        Describe why the driver database cannot be configured.

        Returns None when the URL is present and parseable.
        """
        if not self.driver_database_url:
            return "Missing required database setting: DRIVER_DATABASE_URL"
        try:
            make_url(self.driver_database_url)
        except ArgumentError:
            # The URL may carry credentials, so it is not echoed back
            return "Invalid DRIVER_DATABASE_URL value"
        return None


settings = Settings()
