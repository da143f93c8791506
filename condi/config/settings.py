# 📄 File: condi/config/settings.py
#
# 🧭 Purpose (Layman Explanation):
# The knobs that control the registry itself: where the secrets folder is, which environment
# variable prefix to look for, how to log, and how patient to be when opening a database.
#
# 🧪 Purpose (Technical Summary):
# Pydantic-based settings for the registry, loaded from CONDI_-prefixed environment variables
# with fallback to a .env file, validated and cached as a process-wide singleton.
#
# 🔗 Dependencies:
# - pydantic-settings for configuration management
# - python-dotenv for .env file loading (through pydantic-settings)
# - typing for type hints
#
# 🔄 Connected Modules / Calls From:
# - condi.container (Container construction and initialize())
# - condi.infrastructure.sources (SourceResolver.from_settings)
# - condi.infrastructure.database.connection (pool and timeout knobs)
# - condi.utils.logging (setup_logging defaults)

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Registry settings loaded from environment variables.

    Every field is read from ``CONDI_<FIELD>``; e.g. ``CONDI_SECRETS_DIR``.
    """

    model_config = SettingsConfigDict(
        env_prefix="CONDI_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # =========================================================================
    # PARAMETER SOURCES
    # =========================================================================

    SECRETS_DIR: str = Field(default="/run/secrets", description="Secret files directory")
    ENV_PREFIX: str = Field(default="CONDI_", description="Environment variable prefix for parameters")
    ENV_ALLOW_UNPREFIXED: bool = Field(
        default=True,
        description="Allow lookups to fall back to the bare upper-cased name"
    )
    ENV_FILE: Optional[str] = Field(None, description="Dotenv file layered beneath the environment")
    STRICT_PARAMETERS: bool = Field(
        default=False,
        description="Raise instead of returning zero values for missing parameters"
    )

    # =========================================================================
    # LOGGING
    # =========================================================================

    SERVICE_NAME: str = Field(default="condi", description="Service name stamped on log records")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: str = Field(default="json", description="Log format (json or text)")
    LOG_FILE: Optional[str] = Field(None, description="Optional log file path")

    # =========================================================================
    # DATABASE CONFIGURATION
    # =========================================================================

    DEFAULT_DATABASE_NAME: str = Field(default="default", description="Default connection name")
    DB_CONNECT_TIMEOUT: int = Field(default=10, description="Driver connect timeout (seconds)")
    DB_VERIFY_CONNECTION: bool = Field(
        default=False,
        description="Run a test query after opening the default database"
    )
    DB_VERIFY_ATTEMPTS: int = Field(default=3, description="Verification attempts")
    DB_VERIFY_RETRY_DELAY: float = Field(default=1.0, description="Base retry delay (seconds)")

    # Connection Pool Settings
    DB_POOL_SIZE: int = Field(default=5, description="Database pool size")
    DB_MAX_OVERFLOW: int = Field(default=10, description="Database pool overflow")
    DB_POOL_TIMEOUT: int = Field(default=30, description="Database pool timeout")
    DB_POOL_RECYCLE: int = Field(default=3600, description="Database pool recycle time")

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    RELOAD_ON_SIGHUP: bool = Field(default=True, description="Reload configuration on SIGHUP")

    # =========================================================================
    # VALIDATORS
    # =========================================================================

    @field_validator("ENV_PREFIX")
    @classmethod
    def validate_env_prefix(cls, v: str) -> str:
        """Environment prefixes are matched against upper-case variable names."""
        return v.upper()

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level value."""
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed_levels:
            raise ValueError(f"Log level must be one of {allowed_levels}")
        return v.upper()

    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format value."""
        allowed_formats = ["json", "text"]
        if v.lower() not in allowed_formats:
            raise ValueError(f"Log format must be one of {allowed_formats}")
        return v.lower()

    @field_validator("DEFAULT_DATABASE_NAME")
    @classmethod
    def validate_default_database_name(cls, v: str) -> str:
        if not v:
            raise ValueError("Default database name must not be empty")
        return v

    @field_validator("DB_CONNECT_TIMEOUT", "DB_VERIFY_ATTEMPTS")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Value must be at least 1")
        return v


# ============================================================================
# SETTINGS FACTORY
# ============================================================================

@lru_cache()
def get_settings() -> Settings:
    """
    Get registry settings singleton.

    Uses lru_cache to ensure settings are loaded only once
    and reused throughout the process lifecycle.

    Returns:
        Settings: Registry settings instance
    """
    return Settings()
