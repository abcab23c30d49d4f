"""
Data access configuration for fleet-commons.

Environment-driven settings shared by every component of the unified data
access layer. Values are read from ``FLEET_*`` environment variables or a
``.env`` file.
"""
from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DataAccessSettings(BaseSettings):
    """Settings for the unified data access layer."""

    model_config = SettingsConfigDict(
        env_prefix="FLEET_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Remote store
    database_url: Optional[str] = Field(default=None)
    db_pool_min_size: int = Field(default=1, ge=0)
    db_pool_max_size: int = Field(default=10, ge=1)
    db_command_timeout: float = Field(default=30.0, gt=0)
    remote_timeout_seconds: float = Field(default=10.0, gt=0)

    # Cache
    cache_ttl_default: float = Field(default=300.0, gt=0)  # 5 minutes
    cache_sweep_interval: float = Field(default=600.0, gt=0)  # 10 minutes
    metrics_reset_interval: float = Field(default=3600.0, gt=0)  # 1 hour

    # Text analysis
    text_min_length: int = Field(default=10, ge=0)
    enrichment_enabled: bool = Field(default=True)
    validation_enabled: bool = Field(default=True)
    text_analysis_url: Optional[str] = Field(default=None)
    text_analysis_api_key: Optional[SecretStr] = Field(default=None)
    text_analysis_function: str = Field(default="enhanced-multi-ai-processor")
    text_analysis_timeout: float = Field(default=15.0, gt=0)

    # Batch / search
    batch_read_concurrency: int = Field(default=10, ge=1)
    search_default_limit: int = Field(default=50, ge=1)

    # Audit and realtime
    audit_table: str = Field(default="analytics_events")
    audit_module: str = Field(default="unified_data_service")
    change_channel: str = Field(default="fleet_changes")

    @model_validator(mode="after")
    def validate_pool_sizes(self) -> "DataAccessSettings":
        if self.db_pool_max_size < self.db_pool_min_size:
            raise ValueError("db_pool_max_size must be >= db_pool_min_size")
        return self

    @property
    def text_analysis_configured(self) -> bool:
        """Check whether a text analysis endpoint is available."""
        return bool(self.text_analysis_url)


@lru_cache()
def get_settings() -> DataAccessSettings:
    """Get cached data access settings."""
    return DataAccessSettings()
