# 📄 File: condi/core/parameters.py
#
# 🧭 Purpose (Layman Explanation):
# The registry's memory of settings. Code can put values in directly, and when it asks for a
# setting that was never put in, the store goes and looks in the secrets folder and the
# environment, then hands back the value as text, number, decimal or yes/no.
#
# 🧪 Purpose (Technical Summary):
# Thread-safe parameter store with explicit/implicit value tracking, read-through fallback to
# the SourceResolver on cache miss, and typed scalar/array getters with a uniform not-found
# policy (zero value + warning, or ParameterNotFoundError in strict mode).
#
# 🔗 Dependencies:
# - threading (RLock guarding the parameter map)
# - condi.core.values (tagged values and coercion)
# - condi.infrastructure.sources (read-through resolver, duck-typed)
#
# 🔄 Connected Modules / Calls From:
# - condi.container (Container delegates parameter operations here)
# - condi.config.database (DatabaseParameters.from_lookup)

import logging
import threading
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple

from condi.core.exceptions import InvalidParameterError, ParameterNotFoundError, ParameterTypeError
from condi.core.values import ZERO_VALUES, ParameterValue, ValueKind, ValueSource

logger = logging.getLogger(__name__)

MISSING = object()


class ParameterLookup(Protocol):
    """Read-only capability for components that only consume configuration."""

    def get_parameter(self, name: str) -> Any: ...

    def get_string(self, name: str, default: Any = ...) -> str: ...

    def get_int(self, name: str, default: Any = ...) -> int: ...

    def get_bool(self, name: str, default: Any = ...) -> bool: ...


class ParameterStore:
    """
    Mapping of parameter name to ParameterValue with typed accessors.

    Explicitly set values always win. Values loaded by bootstrap or resolved
    on a cache miss are tagged with their source so a reload can replace
    them without touching explicit ones.
    """

    def __init__(
        self,
        resolver: Any = None,
        logger: Optional[logging.Logger] = None,
        strict: bool = False
    ):
        self._values: Dict[str, ParameterValue] = {}
        self._lock = threading.RLock()
        self._resolver = resolver
        self._logger = logger
        self.strict = strict

    # =========================================================================
    # WIRING
    # =========================================================================

    @property
    def logger(self) -> logging.Logger:
        return self._logger or logger

    def set_logger(self, new_logger: Optional[logging.Logger]) -> "ParameterStore":
        self._logger = new_logger
        return self

    def set_resolver(self, resolver: Any) -> "ParameterStore":
        self._resolver = resolver
        return self

    # =========================================================================
    # WRITES
    # =========================================================================

    def set_parameter(self, name: str, value: Any) -> "ParameterStore":
        """Store ``value`` verbatim under ``name``; last write wins."""
        stored = ParameterValue.of(value, name=self._check_name(name), source=ValueSource.EXPLICIT)
        with self._lock:
            self._values[name] = stored
        return self

    def set_parameters(self, parameters: Mapping[str, Any]) -> "ParameterStore":
        """Replace the whole map; every entry becomes an explicit value."""
        values = {
            self._check_name(name): ParameterValue.of(value, name=name, source=ValueSource.EXPLICIT)
            for name, value in parameters.items()
        }
        with self._lock:
            self._values = values
        return self

    def replace_implicit(self, loaded: Mapping[str, ParameterValue]) -> Tuple[int, int]:
        """
        Swap every non-explicit value for ``loaded`` in one step.

        Keys that are explicitly set keep their value. Returns
        ``(applied, skipped)`` counts.
        """
        with self._lock:
            values = {
                name: value
                for name, value in self._values.items()
                if value.source is ValueSource.EXPLICIT
            }
            skipped = 0
            for name, value in loaded.items():
                if name in values:
                    skipped += 1
                    continue
                values[name] = value
            self._values = values
        return len(loaded) - skipped, skipped

    def unset_parameter(self, name: str) -> "ParameterStore":
        with self._lock:
            self._values.pop(name, None)
        return self

    # =========================================================================
    # UNTYPED READS
    # =========================================================================

    def has_parameter(self, name: str) -> bool:
        return self.lookup(name) is not None

    def get_parameter(self, name: str) -> Any:
        """Raw value for ``name`` (list for arrays), or None when absent everywhere."""
        value = self.lookup(name)
        return value.raw() if value is not None else None

    def get_parameters(self) -> Dict[str, Any]:
        """Snapshot of everything currently held in the store."""
        with self._lock:
            return {name: value.raw() for name, value in self._values.items()}

    def lookup(self, name: str) -> Optional[ParameterValue]:
        """
        Find ``name`` in the store, falling back to the resolver on a miss.

        A resolved value is kept in the store, tagged with its source.
        """
        with self._lock:
            value = self._values.get(name)
        if value is not None:
            return value
        if self._resolver is None:
            return None

        resolved = self._resolver.resolve_value(name)
        if resolved is None:
            return None
        with self._lock:
            # an explicit write may have landed while the resolver was reading
            return self._values.setdefault(name, resolved)

    # =========================================================================
    # TYPED SCALAR READS
    # =========================================================================

    def get_string(self, name: str, default: Any = MISSING) -> str:
        return self._get_scalar(name, ValueKind.STRING, default)

    def get_int(self, name: str, default: Any = MISSING) -> int:
        return self._get_scalar(name, ValueKind.INT, default)

    def get_int64(self, name: str, default: Any = MISSING) -> int:
        return self._get_scalar(name, ValueKind.INT64, default)

    def get_float32(self, name: str, default: Any = MISSING) -> float:
        return self._get_scalar(name, ValueKind.FLOAT32, default)

    def get_float64(self, name: str, default: Any = MISSING) -> float:
        return self._get_scalar(name, ValueKind.FLOAT64, default)

    def get_bool(self, name: str, default: Any = MISSING) -> bool:
        return self._get_scalar(name, ValueKind.BOOL, default)

    # =========================================================================
    # TYPED ARRAY READS
    # =========================================================================

    def get_string_array(self, name: str, default: Any = MISSING) -> List[str]:
        return self._get_array(name, ValueKind.STRING, default)

    def get_int_array(self, name: str, default: Any = MISSING) -> List[int]:
        return self._get_array(name, ValueKind.INT, default)

    def get_int64_array(self, name: str, default: Any = MISSING) -> List[int]:
        return self._get_array(name, ValueKind.INT64, default)

    def get_float32_array(self, name: str, default: Any = MISSING) -> List[float]:
        return self._get_array(name, ValueKind.FLOAT32, default)

    def get_float64_array(self, name: str, default: Any = MISSING) -> List[float]:
        return self._get_array(name, ValueKind.FLOAT64, default)

    def get_bool_array(self, name: str, default: Any = MISSING) -> List[bool]:
        return self._get_array(name, ValueKind.BOOL, default)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _get_scalar(self, name: str, kind: ValueKind, default: Any) -> Any:
        value = self.lookup(name)
        if value is None:
            return self._not_found(name, kind, default, ZERO_VALUES[kind])
        if value.is_array:
            raise ParameterTypeError(name=name, stored_shape="array", requested_shape=f"{kind.value} scalar")
        return value.coerce(name, kind)

    def _get_array(self, name: str, kind: ValueKind, default: Any) -> List[Any]:
        value = self.lookup(name)
        if value is None:
            return self._not_found(name, kind, default, [])
        return value.coerce_array(name, kind)

    def _not_found(self, name: str, kind: ValueKind, default: Any, zero: Any) -> Any:
        if default is not MISSING:
            return default
        if self.strict:
            raise ParameterNotFoundError(name)
        self.logger.warning(
            f'Parameter "{name}" not exists, using zero value',
            extra={"extra_fields": {"parameter": name, "kind": kind.value}}
        )
        return zero

    @staticmethod
    def _check_name(name: Any) -> str:
        if not isinstance(name, str) or not name:
            raise InvalidParameterError(
                message=f"Parameter name must be a non-empty string, got {name!r}",
                details={"name": repr(name)},
            )
        return name
