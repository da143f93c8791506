# 📄 File: condi/container.py
#
# 🧭 Purpose (Layman Explanation):
# The one object the app talks to: it gathers settings from the secrets folder and the
# environment, opens the default database, hands out typed settings and database connections,
# reloads everything when the process receives a hang-up signal, and closes it all at the end.
#
# 🧪 Purpose (Technical Summary):
# Container facade composing ParameterStore, SourceResolver, ResourceRegistry and
# DatabaseConnectionFactory; bootstrap/reload sequence returning a BootstrapReport, SIGHUP
# reload wiring, context-manager teardown, and the optional process-wide container accessors.
#
# 🔗 Dependencies:
# - signal / threading (reload trigger, bootstrap serialization)
# - condi.config.settings, condi.config.database
# - condi.core.parameters, condi.core.registry, condi.core.exceptions
# - condi.infrastructure.sources, condi.infrastructure.database.connection
# - condi.utils.logging
#
# 🔄 Connected Modules / Calls From:
# - Application start-up code (initialize / get_container)
# - Request handlers and services (typed getters, database handles)

import logging
import signal
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from condi.config.database import DatabaseParameters
from condi.config.settings import Settings, get_settings
from condi.core.exceptions import CondiException, ContainerNotInitializedError, UnsupportedDriverError
from condi.core.parameters import MISSING, ParameterStore
from condi.core.registry import ResourceRegistry, close_handle
from condi.core.values import ValueSource
from condi.infrastructure.database.connection import DatabaseConnectionFactory
from condi.infrastructure.sources import SourceResolver
from condi.utils.logging import log_context, setup_logging

logger = logging.getLogger(__name__)


@dataclass
class BootstrapReport:
    """Outcome of one bootstrap (or reload) run."""

    reload_id: str
    secrets_loaded: int = 0
    environment_loaded: int = 0
    skipped_explicit: int = 0
    database_configured: bool = False
    database_error: Optional[CondiException] = field(default=None)

    @property
    def ok(self) -> bool:
        return self.database_error is None

    def raise_for_error(self) -> None:
        """Re-raise the default-database failure, if there was one."""
        if self.database_error is not None:
            raise self.database_error


class Container:
    """
    Process-wide configuration and resource registry.

    Construct one at start-up (or call ``initialize()``) and pass it to the
    components that need configuration or database handles.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        logger: Optional[logging.Logger] = None,
        resolver: Optional[SourceResolver] = None,
        connection_factory: Optional[DatabaseConnectionFactory] = None,
        environ: Optional[Mapping[str, str]] = None
    ):
        self.settings = settings or get_settings()
        self._logger = logger
        self.resolver = resolver or SourceResolver.from_settings(self.settings, environ=environ, logger=logger)
        self.parameters = ParameterStore(
            resolver=self.resolver,
            logger=logger,
            strict=self.settings.STRICT_PARAMETERS,
        )
        self.registry = ResourceRegistry(logger=logger, default_name=self.settings.DEFAULT_DATABASE_NAME)
        self.connection_factory = connection_factory or DatabaseConnectionFactory(self.settings, logger=logger)

        self._bootstrap_lock = threading.Lock()
        self._bootstrapped_default: Any = None
        self.last_report: Optional[BootstrapReport] = None

    # =========================================================================
    # LOGGER
    # =========================================================================

    @property
    def logger(self) -> logging.Logger:
        return self._logger or logger

    def get_logger(self) -> logging.Logger:
        return self.logger

    def set_logger(self, new_logger: logging.Logger) -> "Container":
        self._logger = new_logger
        self.parameters.set_logger(new_logger)
        self.registry.set_logger(new_logger)
        self.resolver.set_logger(new_logger)
        self.connection_factory.set_logger(new_logger)
        return self

    # =========================================================================
    # PARAMETERS
    # =========================================================================

    def set_parameter(self, name: str, value: Any) -> "Container":
        self.parameters.set_parameter(name, value)
        return self

    def set_parameters(self, parameters: Mapping[str, Any]) -> "Container":
        self.parameters.set_parameters(parameters)
        return self

    def get_parameter(self, name: str) -> Any:
        return self.parameters.get_parameter(name)

    def get_parameters(self) -> Dict[str, Any]:
        return self.parameters.get_parameters()

    def has_parameter(self, name: str) -> bool:
        return self.parameters.has_parameter(name)

    def get_string(self, name: str, default: Any = MISSING) -> str:
        return self.parameters.get_string(name, default)

    def get_int(self, name: str, default: Any = MISSING) -> int:
        return self.parameters.get_int(name, default)

    def get_int64(self, name: str, default: Any = MISSING) -> int:
        return self.parameters.get_int64(name, default)

    def get_float32(self, name: str, default: Any = MISSING) -> float:
        return self.parameters.get_float32(name, default)

    def get_float64(self, name: str, default: Any = MISSING) -> float:
        return self.parameters.get_float64(name, default)

    def get_bool(self, name: str, default: Any = MISSING) -> bool:
        return self.parameters.get_bool(name, default)

    def get_string_array(self, name: str, default: Any = MISSING) -> List[str]:
        return self.parameters.get_string_array(name, default)

    def get_int_array(self, name: str, default: Any = MISSING) -> List[int]:
        return self.parameters.get_int_array(name, default)

    def get_int64_array(self, name: str, default: Any = MISSING) -> List[int]:
        return self.parameters.get_int64_array(name, default)

    def get_float32_array(self, name: str, default: Any = MISSING) -> List[float]:
        return self.parameters.get_float32_array(name, default)

    def get_float64_array(self, name: str, default: Any = MISSING) -> List[float]:
        return self.parameters.get_float64_array(name, default)

    def get_bool_array(self, name: str, default: Any = MISSING) -> List[bool]:
        return self.parameters.get_bool_array(name, default)

    # =========================================================================
    # DATABASES
    # =========================================================================

    def set_database(self, name: str, database: Any) -> "Container":
        self.registry.set_database(name, database)
        return self

    def set_default_database(self, database: Any) -> "Container":
        self.registry.set_default_database(database)
        return self

    def set_databases(self, databases: Mapping[str, Any]) -> "Container":
        self.registry.set_databases(databases)
        return self

    def get_database(self, name: str) -> Any:
        return self.registry.get_database(name)

    def get_default_database(self) -> Any:
        return self.registry.get_default_database()

    def get_databases(self) -> List[Any]:
        return self.registry.get_databases()

    def close_databases(self) -> Dict[str, Optional[Exception]]:
        return self.registry.close_all()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def bootstrap(self) -> BootstrapReport:
        """
        Scan secrets and environment, then open the default database.

        Only the default-database step can fail; its error is logged and
        recorded on the returned report, never raised.
        """
        with self._bootstrap_lock, log_context() as reload_id:
            self.logger.debug("bootstrap -> START")

            loaded = self.resolver.load()
            _, skipped = self.parameters.replace_implicit(loaded)
            report = BootstrapReport(
                reload_id=reload_id,
                secrets_loaded=sum(1 for v in loaded.values() if v.source is ValueSource.SECRET),
                environment_loaded=sum(1 for v in loaded.values() if v.source is ValueSource.ENVIRONMENT),
                skipped_explicit=skipped,
            )

            report.database_configured, report.database_error = self._load_default_database()

            self.logger.info(
                "Configuration loaded",
                extra={"extra_fields": {
                    "secrets": report.secrets_loaded,
                    "environment": report.environment_loaded,
                    "skipped_explicit": report.skipped_explicit,
                    "database_configured": report.database_configured,
                }}
            )
            self.logger.debug("bootstrap -> END")
            self.last_report = report
            return report

    def reload(self) -> BootstrapReport:
        self.logger.info("Reloading config...")
        return self.bootstrap()

    def close(self) -> Dict[str, Optional[Exception]]:
        """Close every registered database handle (best effort)."""
        results = self.registry.close_all()
        self._bootstrapped_default = None
        return results

    def install_reload_handler(self) -> bool:
        """
        Reload on SIGHUP. Returns False where the signal can't be installed
        (no SIGHUP on this platform, or not called from the main thread).
        """
        if not hasattr(signal, "SIGHUP"):
            self.logger.debug("SIGHUP not available on this platform, reload signal disabled")
            return False
        if threading.current_thread() is not threading.main_thread():
            self.logger.warning("Reload signal can only be installed from the main thread")
            return False

        signal.signal(signal.SIGHUP, self._handle_reload_signal)
        self.logger.debug("Listening reload signal...")
        return True

    def _handle_reload_signal(self, signum, frame) -> None:
        # reload off the signal frame; bootstrap may already hold its lock on this thread
        threading.Thread(target=self.reload, name="condi-reload", daemon=True).start()

    def _load_default_database(self) -> Tuple[bool, Optional[CondiException]]:
        try:
            parameters = DatabaseParameters.from_lookup(self.parameters)
            if parameters is None:
                self.logger.debug("No database_host parameter, default database not configured")
                return False, None
            database = self.connection_factory.open(parameters)
        except UnsupportedDriverError as e:
            self.logger.critical(
                f"Error loading default database: {e.message}",
                extra={"extra_fields": e.details}
            )
            return False, e
        except CondiException as e:
            self.logger.error(
                f"Error loading default database: {e.message}",
                extra={"extra_fields": e.details}
            )
            return False, e

        previous = self._bootstrapped_default
        self.registry.set_default_database(database)
        self._bootstrapped_default = database
        if previous is not None and previous is not database:
            try:
                close_handle(previous)
            except Exception as e:
                self.logger.warning(f"Error closing replaced default database: {e}")

        self.logger.debug("Database connected")
        return True, None

    def __enter__(self) -> "Container":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


# =============================================================================
# PROCESS CONTAINER
# =============================================================================

_container: Optional[Container] = None
_container_lock = threading.Lock()


def initialize(
    logger: Optional[logging.Logger] = None,
    settings: Optional[Settings] = None,
    **kwargs
) -> Container:
    """
    Build the process container, run bootstrap and listen for reload signals.

    Without a logger, logging is configured from settings. Extra keyword
    arguments are passed to ``Container``.
    """
    global _container

    settings = settings or get_settings()
    if logger is None:
        logger = setup_logging(settings)

    container = Container(settings=settings, logger=logger, **kwargs)
    container.bootstrap()
    if settings.RELOAD_ON_SIGHUP:
        container.install_reload_handler()

    with _container_lock:
        _container = container
    return container


def get_container() -> Container:
    """
    The container built by ``initialize()``.

    Raises:
        ContainerNotInitializedError: if initialize() was never called
    """
    with _container_lock:
        if _container is None:
            raise ContainerNotInitializedError()
        return _container


def reset_container() -> None:
    """Forget the process container without closing it."""
    global _container
    with _container_lock:
        _container = None
