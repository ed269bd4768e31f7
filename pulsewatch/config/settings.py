"""Application settings using Pydantic Settings for environment-based configuration."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, RedisDsn
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the pulsewatch process.

    All settings can be overridden via environment variables.
    Prefix is not used to allow standard env var names (e.g., REDIS_URL).
    Engine tuning lives in ``MonitorConfig`` (``MONITOR_*``) and alert
    delivery in ``NotificationConfig`` (``NOTIFICATIONS_*``).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False

    # API server
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    cors_origins: str = "*"

    # Persistence backend: file (local JSON only), redis or rest.
    # Remote backends always fall back to the local JSON file.
    store_backend: Literal["file", "redis", "rest"] = "file"
    data_file: str = "monitors.json"
    redis_url: RedisDsn = Field(default="redis://localhost:6379/0")
    redis_key: str = "pulsewatch:monitors"
    rest_store_url: str | None = None
    rest_store_path: str = "/monitors"
    store_timeout_seconds: float = Field(default=10.0, gt=0.0, le=120.0)

    # Observability
    metrics_enabled: bool = True
    metrics_port: int = 8000
    tracing_enabled: bool = False
    otel_exporter_otlp_endpoint: str | None = None
    otel_service_name: str = "pulsewatch"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def rest_store_configured(self) -> bool:
        """Check if a REST document store is configured."""
        return bool(self.rest_store_url)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once.
    Clear cache with get_settings.cache_clear() if needed.
    """
    return Settings()
