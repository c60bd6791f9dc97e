"""Application configuration loaded from environment variables."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    """Runtime settings for the PlacePort service."""

    app_name: str = "PlacePort"
    app_version: str = "0.1.0"
    environment: str = "development"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8080
    stats_backend: str = "memory"
    stats_location: Path = Path.home() / ".placeport" / "stats"
    redis_url: str | None = None
    stats_redis_prefix: str = "placeport:stats"
    static_directory: Path = PACKAGE_DIR / "static"
    templates_directory: Path = PACKAGE_DIR / "templates"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings so env parsing only happens once."""

    return Settings()
