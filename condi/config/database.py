# 📄 File: condi/config/database.py
#
# 🧭 Purpose (Layman Explanation):
# Knows which database settings the registry reads at start-up (host, port, user, ...) and
# how to turn them into the address SQLAlchemy needs to reach the database.
#
# 🧪 Purpose (Technical Summary):
# Default-database bootstrap parameter names, driver-name -> SQLAlchemy dialect table,
# DatabaseParameters value object and engine keyword construction from registry settings.
#
# 🔗 Dependencies:
# - SQLAlchemy URL builder
# - condi.config.settings
# - condi.core.parameters (ParameterLookup)
#
# 🔄 Connected Modules / Calls From:
# - condi.infrastructure.database.connection
# - condi.container (default-database bootstrap step)

from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy.engine import URL

from condi.config.settings import Settings
from condi.core.exceptions import UnsupportedDriverError

# =============================================================================
# BOOTSTRAP PARAMETER NAMES
# =============================================================================

PARAM_HOST = "database_host"
PARAM_PORT = "database_port"
PARAM_USERNAME = "database_username"
PARAM_PASSWORD = "database_password"
PARAM_NAME = "database_name"
PARAM_DRIVER = "database_driver"

# =============================================================================
# DRIVER TABLE
# =============================================================================

DRIVER_POSTGRES = "postgres"

# driver parameter value -> SQLAlchemy dialect+DBAPI
DRIVERS: Dict[str, str] = {
    DRIVER_POSTGRES: "postgresql+psycopg2",
}

# extra URL query options per driver
DRIVER_QUERY_OPTIONS: Dict[str, Dict[str, str]] = {
    DRIVER_POSTGRES: {"sslmode": "disable"},
}


@dataclass(frozen=True)
class DatabaseParameters:
    """Connection parameters for the default database, read from the parameter store."""

    host: str
    port: int = 0
    username: str = ""
    password: str = ""
    name: str = ""
    driver: str = ""

    @classmethod
    def from_lookup(cls, parameters) -> Optional["DatabaseParameters"]:
        """
        Read the ``database_*`` parameters.

        Returns None when ``database_host`` is unset, meaning no default
        database is configured.
        """
        host = parameters.get_string(PARAM_HOST, default="")
        if not host:
            return None
        return cls(
            host=host,
            port=parameters.get_int(PARAM_PORT, default=0),
            username=parameters.get_string(PARAM_USERNAME, default=""),
            password=parameters.get_string(PARAM_PASSWORD, default=""),
            name=parameters.get_string(PARAM_NAME, default=""),
            driver=parameters.get_string(PARAM_DRIVER, default=""),
        )

    @property
    def dialect(self) -> str:
        if self.driver not in DRIVERS:
            raise UnsupportedDriverError(self.driver, supported=sorted(DRIVERS))
        return DRIVERS[self.driver]

    def url(self) -> URL:
        """SQLAlchemy URL for these parameters; port 0 means the driver default."""
        return URL.create(
            drivername=self.dialect,
            username=self.username or None,
            password=self.password or None,
            host=self.host,
            port=self.port or None,
            database=self.name or None,
            query=DRIVER_QUERY_OPTIONS.get(self.driver, {}),
        )

    def describe(self) -> Dict[str, Any]:
        """Loggable view without the password."""
        return {
            "driver": self.driver,
            "host": self.host,
            "port": self.port,
            "database": self.name,
            "username": self.username,
        }


def engine_kwargs(settings: Settings) -> Dict[str, Any]:
    """SQLAlchemy engine configuration from registry settings."""
    return {
        "pool_pre_ping": True,  # Verify connections before use
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_recycle": settings.DB_POOL_RECYCLE,
        "connect_args": {
            "connect_timeout": settings.DB_CONNECT_TIMEOUT,
            "application_name": settings.SERVICE_NAME,
        },
    }
