from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Tracker configuration, read from the environment and an optional .env file."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    # PostgreSQL holding packages, package_files and package_status_history
    db_host: str = "localhost"
    db_port: int = 5432
    db_database: str = "package_tracker"
    db_username: str = "package_tracker"
    db_password: str = "secret"
    db_pool_min_size: int = Field(default=1, ge=1)
    db_pool_max_size: int = Field(default=10, ge=1)
    db_connect_timeout_seconds: float = Field(default=10.0, gt=0)

    # Object storage for package file blobs: "supabase" or "local"
    storage_engine: str = "supabase"
    storage_url: str = "http://localhost:54321/storage/v1"
    storage_service_key: str = ""
    storage_bucket: str = "package-files"
    storage_timeout_seconds: int = 30
    storage_local_root: str = "/app/files"
    storage_signing_secret: str = "change-me"

    signed_url_ttl_seconds: int = Field(default=3600, gt=0)
    max_file_size_bytes: int = Field(default=10 * 1024 * 1024, gt=0)

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_LOG_LEVELS}, got {value!r}")
        return level
