"""
Application configuration using Pydantic Settings.
Loads configuration from environment variables with sensible defaults.
"""

from datetime import timedelta
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/queue.db"
    database_pool_size: int = 10
    database_max_overflow: int = 20

    # Queue behaviour
    job_timeout_minutes: float = 30
    max_payload_bytes: int = 1048576
    cleanup_after_days: float = 30
    cleanup_on_claim: bool = True
    recent_jobs_limit: int = 100

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Worker Configuration
    worker_poll_interval_seconds: float = 1.0

    # Sweeper Configuration
    sweeper_interval_seconds: int = 3600

    # Observability
    otel_enabled: bool = False
    otel_exporter_otlp_endpoint: str = "http://localhost:4317"
    otel_service_name: str = "workqueue"
    log_level: str = "INFO"
    log_format: str = "json"  # json or console

    @property
    def job_timeout(self) -> timedelta:
        """How long a claimed job may stay active before it counts as timed out."""
        return timedelta(minutes=self.job_timeout_minutes)

    @property
    def retention(self) -> timedelta:
        """How long terminal jobs are kept before the sweeper deletes them."""
        return timedelta(days=self.cleanup_after_days)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
