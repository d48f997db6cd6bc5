"""
Application Configuration Module

Centralizes all configuration using environment variables with Pydantic Settings.
Supports three modes:
    - DEVELOPMENT: Local database, verbose errors, permissive CORS
    - STAGING: Cloud database with SSL, production-like behaviour
    - PRODUCTION: Cloud database with SSL, generic error messages

The database can be configured either with a single DATABASE_URL connection
string (Railway, Neon, etc.) or with individual DB_HOST / DB_PORT / DB_USER /
DB_PASSWORD / DB_NAME variables.

Usage:
    from app.core.config import get_settings

    settings = get_settings()
    engine = create_async_engine(settings.sqlalchemy_url)

Author: Your Name
Version: 1.0.0
"""

import logging
import sys
from enum import Enum
from typing import Optional
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentMode(str, Enum):
    """
    Application environment modes.

    Attributes:
        DEVELOPMENT: Local testing against a local PostgreSQL
        PRODUCTION: Live environment behind the public QR links
        STAGING: Pre-production deployment (preview frontends)
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    Database credentials should NEVER be committed to version control.

    Attributes:
        env_mode: Current environment (development/production/staging)
        debug: Enable verbose logging and error details

        # Database
        database_url: Full connection string (takes precedence)
        db_host, db_port, db_user, db_password, db_name: Connection parts
        db_ssl: Force SSL on/off (None = decide from environment and host)

        # Public links
        frontend_url: Base URL of the guest-facing menu site

        # Access
        bootstrap_admin_username: Admin created when the users table is empty
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================

    env_mode: EnvironmentMode = Field(
        default=EnvironmentMode.DEVELOPMENT,
        description="Application environment mode"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging"
    )

    # ==========================================================================
    # APPLICATION
    # ==========================================================================

    app_name: str = Field(
        default="QR Menu Platform",
        description="Application display name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=5000,
        description="API server port"
    )

    # ==========================================================================
    # DATABASE
    # ==========================================================================

    database_url: Optional[str] = Field(
        default=None,
        description="PostgreSQL connection URL (overrides the DB_* parts)"
    )
    db_host: str = Field(default="localhost", description="Database host")
    db_port: int = Field(default=5432, description="Database port")
    db_user: str = Field(default="postgres", description="Database user")
    db_password: str = Field(default="", description="Database password")
    db_name: str = Field(default="qr_menu_system", description="Database name")
    db_ssl: Optional[bool] = Field(
        default=None,
        description="Use SSL without certificate verification (None = auto)"
    )
    db_pool_size: int = Field(
        default=20,
        description="Connection pool size"
    )
    db_max_overflow: int = Field(
        default=10,
        description="Extra connections when pool is full"
    )
    db_pool_timeout: int = Field(
        default=10,
        description="Seconds to wait for a pooled connection"
    )
    db_echo: bool = Field(
        default=False,
        description="Log every SQL statement"
    )

    # ==========================================================================
    # PUBLIC LINKS / CORS
    # ==========================================================================

    frontend_url: str = Field(
        default="http://localhost:3000",
        description="Base URL of the public menu site encoded in QR codes"
    )
    cors_allowed_origins: str = Field(
        default=(
            "http://localhost:3000,http://localhost:5000,"
            "http://127.0.0.1:3000,http://127.0.0.1:5000"
        ),
        description="Comma-separated list of allowed browser origins"
    )
    cors_origin_regex: str = Field(
        default=(
            r"^(http://192\.168\.\d+\.\d+:\d+"
            r"|https://.*\.vercel\.app"
            r"|https://.*\.onrender\.com)$"
        ),
        description="Regex for additionally allowed origins (LAN, previews)"
    )

    # ==========================================================================
    # ACCESS / UPLOADS
    # ==========================================================================

    bootstrap_admin_username: Optional[str] = Field(
        default="admin",
        description="Admin user created on startup when no users exist"
    )
    max_upload_mb: int = Field(
        default=5,
        description="Maximum size of a bulk import upload"
    )

    # ==========================================================================
    # VALIDATORS
    # ==========================================================================

    @field_validator("env_mode", mode="before")
    @classmethod
    def validate_env_mode(cls, v: str) -> EnvironmentMode:
        """Convert string to EnvironmentMode enum."""
        if isinstance(v, EnvironmentMode):
            return v
        try:
            return EnvironmentMode(v.lower())
        except ValueError:
            valid = [e.value for e in EnvironmentMode]
            raise ValueError(f"Invalid env_mode. Must be one of: {valid}")

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env_mode == EnvironmentMode.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.env_mode == EnvironmentMode.PRODUCTION

    @property
    def sqlalchemy_url(self) -> str:
        """
        Connection URL for the async SQLAlchemy engine.

        Bare ``postgres://`` / ``postgresql://`` URLs (as handed out by
        Neon, Railway, Render) are pointed at the asyncpg driver. URLs that
        already name a driver are used untouched.
        """
        url = self.database_url
        if not url:
            url = (
                f"postgresql://{self.db_user}:{self.db_password}"
                f"@{self.db_host}:{self.db_port}/{self.db_name}"
            )

        if url.startswith("postgres://"):
            url = "postgresql://" + url[len("postgres://"):]
        if url.startswith("postgresql://"):
            url = "postgresql+asyncpg://" + url[len("postgresql://"):]
        return url

    @property
    def ssl_required(self) -> bool:
        """Whether database connections should be made over SSL."""
        if self.db_ssl is not None:
            return self.db_ssl
        if self.sqlalchemy_url.startswith("sqlite"):
            return False
        if self.database_url:
            return True
        host = self.db_host.lower()
        return self.is_production or "neon" in host or "pooler" in host

    @property
    def cors_allowed_origins_list(self) -> list[str]:
        """Get allowed origins as a list."""
        return [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    def menu_url(self, slug: str) -> str:
        """Public menu URL for a restaurant slug (the QR payload)."""
        return f"{self.frontend_url.rstrip('/')}/menu/{slug}"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are loaded only once,
    ensuring consistency across the application lifecycle.

    Returns:
        Settings: Configured application settings

    Example:
        >>> settings = get_settings()
        >>> print(settings.env_mode)
        EnvironmentMode.DEVELOPMENT
    """
    return Settings()


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured root logger
    """
    settings = get_settings()

    if settings.debug:
        level = logging.DEBUG

    log_format = "%(asctime)s │ %(levelname)-8s │ %(name)-25s │ %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)

    return logging.getLogger("app")
