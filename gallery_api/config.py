"""
Application configuration using Pydantic Settings.
Manages all environment variables and settings.
"""
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator, model_validator


class Environment(str, Enum):
    """Application environment modes."""
    DEV = "DEV"
    PRODUCTION = "PRODUCTION"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Environment
    environment: Environment = Field(
        default=Environment.DEV,
        description="Application environment: DEV or PRODUCTION"
    )

    # Application
    app_name: str = Field(default="Media Gallery API")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=False)

    @model_validator(mode='after')
    def set_debug_from_environment(self):
        """Set debug mode based on environment if not explicitly set via environment variable."""
        import os
        if 'DEBUG' not in os.environ:
            self.debug = self.environment == Environment.DEV
        return self

    @property
    def is_dev(self) -> bool:
        """Check if running in development mode."""
        return self.environment == Environment.DEV

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PRODUCTION

    # Storage: one JSON document per collection + uploaded media files
    data_dir: Path = Field(default=Path("./data"), description="Directory holding the JSON collections")
    uploads_dir: Path = Field(default=Path("./uploads"), description="Directory holding uploaded media files")

    @field_validator("data_dir", "uploads_dir", mode="before")
    @classmethod
    def coerce_empty_dir(cls, v, info):
        if v is None or not str(v).strip():
            return Path("./data") if info.field_name == "data_dir" else Path("./uploads")
        return v

    max_upload_size_mb: int = Field(default=200, description="Maximum size of one uploaded file")

    # JWT
    jwt_secret_key: str = Field(default="jwt-secret-change-in-production")
    jwt_algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(default=60 * 24)
    private_token_expire_seconds: int = Field(
        default=600,
        description="Lifetime of the token returned when the private folder is unlocked",
    )

    # Passwords
    password_hash_rounds: int = Field(default=100_000)
    private_password_min_length: int = Field(default=6)

    # Trash
    trash_retention_days: int = Field(default=30)
    trash_purge_interval_seconds: int = Field(
        default=3600,
        description="Interval of the background trash purge. 0 disables the loop.",
    )

    # Rate limiting (slowapi)
    rate_limit_enabled: bool = Field(default=True)
    rate_limit_per_minute: int = Field(default=120)
    rate_limit_login_per_minute: int = Field(default=10)
    rate_limit_share_per_minute: int = Field(default=30)

    # CORS
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    # Logging. File logs are skipped when the directory is not writable
    log_dir: Path = Field(default=Path("./logs"))

    # Prometheus
    node_name: str = Field(default="", description="Node/Pod identifier for Prometheus labels")
    prometheus_pushgateway_url: str = Field(
        default="",
        description="Prometheus Pushgateway URL (e.g. http://pushgateway:9091). Empty disables pushing.",
    )
    prometheus_push_interval_seconds: int = Field(default=30)

    @field_validator("prometheus_push_interval_seconds", "trash_purge_interval_seconds", mode="before")
    @classmethod
    def coerce_interval(cls, v: object, info) -> int:
        if v is None or v == "":
            return 30 if info.field_name == "prometheus_push_interval_seconds" else 3600
        return int(v)

    instance_ip: str = Field(default="", description="Instance private IP for logs and metrics")

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    class Config:
        env_file = None
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Using lru_cache to avoid re-reading the environment on every request.
    """
    return Settings()
