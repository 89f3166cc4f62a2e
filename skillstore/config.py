"""Skillstore configuration loaded from environment / .env file."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="SKILLSTORE_", extra="ignore")

    env: str = "development"
    log_level: str = "INFO"
    database_url: str = "sqlite+aiosqlite:///./skillstore.db"
    cors_origins: list[str] = ["http://localhost:5173"]  # Vite dev

    # Upload sessions
    session_ttl_seconds: int = 600
    session_cleanup_enabled: bool = True
    session_cleanup_interval_seconds: int = 300
    max_archive_bytes: int = 10 * 1024 * 1024
    max_uncompressed_bytes: int = 50 * 1024 * 1024  # sum of declared entry sizes

    # Listing
    list_limit_default: int = 50
    list_limit_max: int = 100

    # Attempts at writing a version before giving up on number collisions
    version_write_retries: int = 3


settings = Settings()
