# 📄 File: condi/core/registry.py
#
# 🧭 Purpose (Layman Explanation):
# Keeps track of the database connections the app has opened, each under a name (one of them
# is "default"), plus the logger, and closes all connections when the app shuts down.
#
# 🧪 Purpose (Technical Summary):
# Thread-safe named resource registry: logger reference, name -> opaque database handle map,
# default-handle aliases and best-effort bulk teardown that logs per-handle results.
#
# 🔗 Dependencies:
# - threading (RLock guarding the handle map)
# - condi.core.exceptions
#
# 🔄 Connected Modules / Calls From:
# - condi.container (bootstrap registers the default engine, close() tears down)
# - Application code retrieving database handles

import logging
import threading
from typing import Any, Dict, List, Mapping, Optional

from condi.core.exceptions import DatabaseNotRegisteredError, InvalidResourceNameError

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_NAME = "default"


def close_handle(handle: Any) -> None:
    """Release a handle: SQLAlchemy engines are disposed, anything else is closed."""
    dispose = getattr(handle, "dispose", None)
    if callable(dispose):
        dispose()
        return
    handle.close()


class ResourceRegistry:
    """
    Logger and named database handles shared by the whole process.

    Re-registering a name replaces the handle without closing the old one;
    closing is only done by ``close_all``.
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        default_name: str = DEFAULT_DATABASE_NAME
    ):
        self._logger = logger
        self._databases: Dict[str, Any] = {}
        self._lock = threading.RLock()
        self.default_name = default_name

    # =========================================================================
    # LOGGER
    # =========================================================================

    @property
    def logger(self) -> logging.Logger:
        return self._logger or logger

    @property
    def has_logger(self) -> bool:
        return self._logger is not None

    def set_logger(self, new_logger: Optional[logging.Logger]) -> "ResourceRegistry":
        self._logger = new_logger
        return self

    # =========================================================================
    # DATABASES
    # =========================================================================

    def set_database(self, name: str, database: Any) -> "ResourceRegistry":
        if not isinstance(name, str) or not name:
            raise InvalidResourceNameError(name)
        with self._lock:
            self._databases[name] = database
        return self

    def set_default_database(self, database: Any) -> "ResourceRegistry":
        return self.set_database(self.default_name, database)

    def set_databases(self, databases: Mapping[str, Any]) -> "ResourceRegistry":
        """Replace every registered handle with ``databases``."""
        for name in databases:
            if not isinstance(name, str) or not name:
                raise InvalidResourceNameError(name)
        with self._lock:
            self._databases = dict(databases)
        return self

    def get_database(self, name: str) -> Any:
        """
        Handle registered under ``name``.

        Raises:
            DatabaseNotRegisteredError: if nothing is registered under ``name``
        """
        with self._lock:
            if name in self._databases:
                return self._databases[name]
        raise DatabaseNotRegisteredError(name)

    def get_default_database(self) -> Any:
        return self.get_database(self.default_name)

    def get_databases(self) -> List[Any]:
        with self._lock:
            return list(self._databases.values())

    def database_names(self) -> List[str]:
        with self._lock:
            return list(self._databases)

    def has_database(self, name: str) -> bool:
        with self._lock:
            return name in self._databases

    def remove_database(self, name: str) -> Optional[Any]:
        """Unregister ``name`` without closing it; returns the removed handle."""
        with self._lock:
            return self._databases.pop(name, None)

    def close_all(self) -> Dict[str, Optional[Exception]]:
        """
        Try to close every registered handle, continuing past failures.

        Returns a mapping of name to the exception raised while closing it
        (None for handles that closed cleanly).
        """
        with self._lock:
            databases = list(self._databases.items())

        results: Dict[str, Optional[Exception]] = {}
        for name, database in databases:
            try:
                close_handle(database)
            except Exception as e:
                results[name] = e
                self.logger.error(
                    f"Error closing database {name}: {e}",
                    extra={"extra_fields": {"name": name, "error": str(e)}}
                )
            else:
                results[name] = None
                self.logger.debug(
                    f"Closed database {name}",
                    extra={"extra_fields": {"name": name}}
                )
        return results
