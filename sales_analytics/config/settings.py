"""
Sales Analytics Dashboard
Centralized Configuration Management

This module provides configuration management using Pydantic settings with
environment variable support, validation, and type safety.
"""

from functools import lru_cache
from typing import Optional, List
from pydantic import Field, field_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Fact store configuration"""

    model_config = SettingsConfigDict(env_prefix="DATABASE_")

    url: Optional[str] = Field(default=None, description="Full SQLAlchemy URL (overrides host/port)")
    host: str = Field(default="localhost", description="PostgreSQL host")
    port: int = Field(default=5432, description="PostgreSQL port")
    name: str = Field(default="sales_analytics", description="Database name")
    user: str = Field(default="sales", description="Database user")
    password: SecretStr = Field(default="sales_password", description="Database password")
    pool_size: int = Field(default=10, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Max overflow connections")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    echo: bool = Field(default=False, description="Echo SQL queries")
    use_postgres: bool = Field(default=False, description="Build a PostgreSQL URL from host/port")
    sqlite_path: str = Field(default="./sales.db", description="SQLite file used when no URL is given")

    @property
    def async_url(self) -> str:
        """Async database URL (asyncpg for PostgreSQL, aiosqlite otherwise)"""
        if self.url:
            return self.url
        if self.use_postgres:
            return (
                f"postgresql+asyncpg://{self.user}:{self.password.get_secret_value()}"
                f"@{self.host}:{self.port}/{self.name}"
            )
        return f"sqlite+aiosqlite:///{self.sqlite_path}"


class AnalyticsSettings(BaseSettings):
    """Aggregation rules shared by the analytics views"""

    model_config = SettingsConfigDict(env_prefix="ANALYTICS_")

    indirect_order_types: List[str] = Field(
        default=["Permanent direct", "Opération direct"],
        description="Order types classified as the indirect sales channel",
    )
    currency: str = Field(default="EUR", description="Reporting currency")
    debug_row_limit: int = Field(default=200, description="Rows echoed back in net-margin debug mode")
    listing_scope_limit: int = Field(default=1000, description="Latest rows considered by the sales listing")


class SecuritySettings(BaseSettings):
    """HTTP security configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        alias="CORS_ORIGINS",
        description="Allowed CORS origins"
    )


class MonitoringSettings(BaseSettings):
    """Monitoring and Observability Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    enable_metrics: bool = Field(default=True, alias="ENABLE_METRICS", description="Expose Prometheus metrics at /metrics")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="sales-analytics", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", alias="API_HOST", description="API host")
    api_port: int = Field(default=8000, alias="API_PORT", description="API port")
    api_workers: int = Field(default=2, alias="API_WORKERS", description="Gunicorn worker processes")
    api_reload: bool = Field(default=False, alias="API_RELOAD", description="Enable reload")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.app_env == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
