# 📄 File: condi/infrastructure/database/connection.py
#
# 🧭 Purpose (Layman Explanation):
# Opens the connection to the default database using the settings the registry found, and can
# check that the database actually answers before the app starts relying on it.
#
# 🧪 Purpose (Technical Summary):
# Driver-dispatching SQLAlchemy engine factory with pool configuration, a bounded connect
# timeout and optional SELECT 1 verification with exponential-backoff retries.
#
# 🔗 Dependencies:
# - sqlalchemy (engine creation, text queries)
# - psycopg2 (PostgreSQL driver, loaded by SQLAlchemy for the postgres dialect)
# - condi.config.database / condi.config.settings
#
# 🔄 Connected Modules / Calls From:
# - condi.container (default-database bootstrap step)

import logging
import time
from typing import Any, Callable, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from condi.config.database import DatabaseParameters, engine_kwargs
from condi.config.settings import Settings
from condi.core.exceptions import DatabaseConnectionError

logger = logging.getLogger(__name__)

EngineFactory = Callable[..., Any]


class DatabaseConnectionFactory:
    """
    Opens database handles for DatabaseParameters.

    The engine factory is injectable so callers can substitute their own
    handle type; by default a SQLAlchemy Engine is created.
    """

    def __init__(
        self,
        settings: Settings,
        engine_factory: EngineFactory = create_engine,
        logger: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.settings = settings
        self._engine_factory = engine_factory
        self._logger = logger
        self._sleep = sleep
        self._health_check_query = text("SELECT 1")

    @property
    def logger(self) -> logging.Logger:
        return self._logger or logger

    def set_logger(self, new_logger: Optional[logging.Logger]) -> "DatabaseConnectionFactory":
        self._logger = new_logger
        return self

    def open(self, parameters: DatabaseParameters) -> Any:
        """
        Create a handle for ``parameters``.

        Raises:
            UnsupportedDriverError: if the driver is not in the driver table
            DatabaseConnectionError: if the engine can't be created or verified
        """
        url = parameters.url()
        self.logger.info(
            f"Opening {parameters.driver} database at {parameters.host}",
            extra={"extra_fields": parameters.describe()}
        )
        try:
            engine = self._engine_factory(url, **engine_kwargs(self.settings))
        except Exception as e:
            raise DatabaseConnectionError(
                message=f"Error loading default database: {e}",
                driver=parameters.driver,
                host=parameters.host,
            ) from e

        if self.settings.DB_VERIFY_CONNECTION:
            try:
                self.verify(engine, parameters)
            except DatabaseConnectionError:
                self._dispose_quietly(engine)
                raise
        return engine

    def verify(self, engine: Engine, parameters: DatabaseParameters) -> None:
        """Run the health check query, retrying with exponential backoff."""
        attempts = self.settings.DB_VERIFY_ATTEMPTS
        delay = self.settings.DB_VERIFY_RETRY_DELAY
        last_error: Optional[Exception] = None

        for attempt in range(attempts):
            try:
                with engine.connect() as conn:
                    conn.execute(self._health_check_query).scalar()
                self.logger.debug("Database health check passed")
                return
            except Exception as e:
                last_error = e
                self.logger.warning(
                    f"Database health check failed (attempt {attempt + 1}/{attempts}): {e}"
                )
                if attempt < attempts - 1:
                    self._sleep(delay * (2 ** attempt))

        raise DatabaseConnectionError(
            message=f"Database health check failed after {attempts} attempts: {last_error}",
            driver=parameters.driver,
            host=parameters.host,
            attempts=attempts,
        ) from last_error

    def _dispose_quietly(self, engine: Any) -> None:
        try:
            engine.dispose()
        except Exception as e:
            self.logger.warning(f"Error disposing unverified engine: {e}")
