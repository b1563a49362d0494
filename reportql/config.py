"""Application configuration settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Find project root (where .env file lives)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Configuration values for ReportQL."""

    app_name: str = "ReportQL"
    environment: str = "development"

    # Database
    database_url: str = Field(
        default="sqlite:///reportql.db",
        description="SQLAlchemy URL of the reporting database",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements")

    # Dashboard result cache
    cache_ttl_seconds: float = Field(
        default=45.0,
        gt=0,
        description="Seconds a cached report result stays fresh",
    )
    cache_capacity: int = Field(
        default=256,
        ge=1,
        description="Maximum number of cached report results",
    )

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_prefix="REPORTQL_",
        env_file=str(_ENV_FILE) if _ENV_FILE.exists() else ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
