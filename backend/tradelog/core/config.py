"""
Core Configuration Management
TradeLog Trading Journal

Environment-based settings for the database, the Tradovate broker
collaborator, journal ingestion policy, logging and the API server.
"""

from enum import Enum
from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StatusPolicy(str, Enum):
    """How trade status and P&L are derived from a trade record."""
    EXIT_PRICE_GATED = "exit_price_gated"  # OPEN until exit_price, then CLOSED
    ALWAYS_CLOSED = "always_closed"        # every trade CLOSED, P&L when exit_price present


class DatabaseSettings(BaseSettings):
    """Database connection pool settings (ignored for SQLite)."""
    
    model_config = SettingsConfigDict(env_prefix="DB_")
    
    pool_size: int = Field(default=10, description="Connection pool size")
    max_overflow: int = Field(default=20, description="Max overflow connections")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    pool_recycle: int = Field(default=1800, description="Recycle connections after seconds")
    echo: bool = Field(default=False, description="Log SQL statements")


class TradovateSettings(BaseSettings):
    """Tradovate broker settings."""
    
    model_config = SettingsConfigDict(env_prefix="TRADOVATE_")
    
    environment: Literal["demo", "live"] = Field(default="demo", description="Tradovate environment")
    username: str = Field(default="", description="Fallback username when none is stored")
    password: str = Field(default="", description="Fallback password when none is stored")
    app_id: str = Field(default="trading-journal", description="App id sent with the token request")
    app_version: str = Field(default="1.0", description="App version sent with the token request")
    device_id: str = Field(default="web-app", description="Device id sent with the token request")
    request_timeout: float = Field(default=30.0, description="HTTP request timeout in seconds")
    
    @property
    def is_configured(self) -> bool:
        """Check if fallback credentials are present."""
        return bool(self.username and self.password)


class JournalSettings(BaseSettings):
    """Trade ingestion settings."""
    
    model_config = SettingsConfigDict(env_prefix="JOURNAL_")
    
    status_policy: StatusPolicy = Field(
        default=StatusPolicy.EXIT_PRICE_GATED,
        description="Status/P&L derivation policy, one per deployment"
    )
    csv_source_tag: str = Field(default="csv", description="Prefix for CSV external ids")
    broker_source_tag: str = Field(default="tradovate", description="Prefix for broker external ids")
    default_strategy_label: str = Field(default="No Strategy", description="Label for untagged trades")


class LoggingSettings(BaseSettings):
    """Logging configuration."""
    
    model_config = SettingsConfigDict(env_prefix="LOG_")
    
    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        description="Log format"
    )
    
    file_enabled: bool = Field(default=True, description="Enable file logging")
    file_path: str = Field(default="logs/tradelog.json", description="Structured log file path")
    error_file_path: str = Field(default="logs/error.log", description="Error log file path")
    file_rotation: str = Field(default="10 MB", description="Log rotation size")
    file_retention: str = Field(default="30 days", description="Log retention period")


class APISettings(BaseSettings):
    """API server settings."""
    
    model_config = SettingsConfigDict(env_prefix="API_")
    
    host: str = Field(default="0.0.0.0", description="API host")
    port: int = Field(default=3001, description="API port")
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins"
    )


class Settings(BaseSettings):
    """
    Main application settings.
    
    Aggregates all sub-settings and provides environment-based configuration.
    """
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )
    
    PROJECT_NAME: str = Field(default="TradeLog", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Environment"
    )
    API_PREFIX: str = "/api"
    
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./tradelog.db",
        description="Async database URL (sqlite+aiosqlite or postgresql+asyncpg)"
    )
    
    @property
    def db(self) -> DatabaseSettings:
        """Get database settings."""
        return DatabaseSettings()
    
    @property
    def tradovate(self) -> TradovateSettings:
        """Get Tradovate settings."""
        return TradovateSettings()
    
    @property
    def journal(self) -> JournalSettings:
        """Get journal ingestion settings."""
        return JournalSettings()
    
    @property
    def logging(self) -> LoggingSettings:
        """Get logging settings."""
        return LoggingSettings()
    
    @property
    def api(self) -> APISettings:
        """Get API settings."""
        return APISettings()
    
    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.ENVIRONMENT == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    
    Call get_settings.cache_clear() to reload settings.
    """
    return Settings()


settings = get_settings()

