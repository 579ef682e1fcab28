"""
Application settings using Pydantic.

Provides environment-based configuration loading with DOCBUDDY_ prefix.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="DOCBUDDY_",
        extra="ignore",
    )

    # Datadog
    dd_api_key: str | None = None
    dd_app_key: str | None = None
    dd_site: str = "datadoghq.com"
    dd_app_url: str = "https://app.datadoghq.com"

    # HTTP client settings
    http_timeout: float = 30.0
    http_max_retries: int = 3
    http_retry_base_delay: float = 1.0  # seconds, doubled per attempt

    # Metric discovery
    discovery_ttl: float = 3600.0
    # 0 disables caching of "not found" discoveries
    discovery_negative_ttl: float = 0.0
    probe_concurrency: int = 10
    fallback_candidate_limit: int = 50
    fallback_namespace: str = "trace.*"

    # Caches (seconds)
    cache_max_entries: int = 1000
    cache_sweep_interval: float = 60.0
    operations_cache_ttl: float = 120.0
    health_cache_ttl: float = 30.0
    traces_cache_ttl: float = 60.0
    monitors_cache_ttl: float = 120.0

    # Logging
    log_level: str = "INFO"

    @property
    def dd_api_url(self) -> str:
        return f"https://api.{self.dd_site}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
