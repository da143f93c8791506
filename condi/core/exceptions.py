# 📄 File: condi/core/exceptions.py
# 🧭 Purpose (Layman Explanation):
# This file defines all the special error types the registry uses to say exactly what went
# wrong (a missing setting, a badly written number, an unknown database driver) by name.
# 🧪 Purpose (Technical Summary):
# Custom exception hierarchy with error codes, structured details and dictionary
# serialization for parameter coercion, resource registry and bootstrap failures.
# 🔗 Dependencies:
# typing
# 🔄 Connected Modules / Calls From:
# condi.core.values, condi.core.parameters, condi.core.registry,
# condi.infrastructure.database.connection, condi.container

from typing import Any, Dict, Optional


class CondiException(Exception):
    """
    Base exception class for the configuration registry.
    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        self.message = message
        self.details = dict(details or {})
        self.error_code = error_code or self.__class__.__name__.upper()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format."""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
            }
        }


# =============================================================================
# PARAMETER EXCEPTIONS
# =============================================================================

class ParameterError(CondiException):
    """Base class for failures while storing or reading a parameter."""

    def __init__(
        self,
        message: str,
        name: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        details = dict(details or {})
        if name is not None:
            details["parameter"] = name

        self.name = name
        super().__init__(message=message, details=details, error_code=error_code)


class ParameterNotFoundError(ParameterError):
    """
    Exception raised when a parameter exists in none of the sources.
    Only raised when the store runs in strict mode.
    """

    def __init__(self, name: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f'Parameter "{name}" not exists',
            name=name,
            details=details,
            error_code="PARAMETER_NOT_FOUND"
        )


class MalformedParameterError(ParameterError):
    """
    Exception raised when a present value cannot be parsed as the requested type.
    Never downgraded to a zero value.
    """

    def __init__(
        self,
        name: str,
        value: Any,
        expected_type: str,
        details: Optional[Dict[str, Any]] = None
    ):
        details = dict(details or {})
        details["value"] = str(value)
        details["expected_type"] = expected_type

        self.value = value
        self.expected_type = expected_type
        super().__init__(
            message=f'Error parsing {expected_type} parameter "{name}": {value!r} is not a valid {expected_type}',
            name=name,
            details=details,
            error_code="MALFORMED_PARAMETER"
        )


class ParameterTypeError(ParameterError):
    """
    Exception raised when a stored value has the wrong shape for the getter,
    e.g. a scalar getter called on an array value.
    """

    def __init__(
        self,
        name: str,
        stored_shape: str,
        requested_shape: str,
        details: Optional[Dict[str, Any]] = None
    ):
        details = dict(details or {})
        details["stored_shape"] = stored_shape
        details["requested_shape"] = requested_shape

        super().__init__(
            message=f'Parameter "{name}" holds {stored_shape} value, cannot read it as {requested_shape}',
            name=name,
            details=details,
            error_code="PARAMETER_TYPE_MISMATCH"
        )


class InvalidParameterError(ParameterError):
    """Exception raised for names or values the store refuses to hold."""

    def __init__(
        self,
        message: str = "Invalid parameter",
        name: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            name=name,
            details=details,
            error_code="INVALID_PARAMETER"
        )


# =============================================================================
# RESOURCE REGISTRY EXCEPTIONS
# =============================================================================

class RegistryError(CondiException):
    """Base class for resource registry failures."""
    pass


class DatabaseNotRegisteredError(RegistryError):
    """
    Exception raised when a named database connection is requested
    but nothing is registered under that name.
    """

    def __init__(self, name: str, details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        details["name"] = name

        self.name = name
        super().__init__(
            message=f"Database connection with name {name} not exists",
            details=details,
            error_code="DATABASE_NOT_REGISTERED"
        )


class InvalidResourceNameError(RegistryError):
    """Exception raised when a resource is registered under an empty name."""

    def __init__(self, name: Any, details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        details["name"] = repr(name)

        super().__init__(
            message=f"Resource name must be a non-empty string, got {name!r}",
            details=details,
            error_code="INVALID_RESOURCE_NAME"
        )


# =============================================================================
# DATABASE BOOTSTRAP EXCEPTIONS
# =============================================================================

class DatabaseConfigurationError(CondiException):
    """Base class for invalid database wiring parameters."""
    pass


class UnsupportedDriverError(DatabaseConfigurationError):
    """
    Exception raised when the configured database driver is not in the driver table.
    Fatal for the default-database step only.
    """

    def __init__(
        self,
        driver: str,
        supported: Optional[list] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        details = dict(details or {})
        details["driver"] = driver
        if supported is not None:
            details["supported_drivers"] = list(supported)

        self.driver = driver
        super().__init__(
            message=f"Database driver '{driver}' is not supported",
            details=details,
            error_code="UNSUPPORTED_DRIVER"
        )


class DatabaseConnectionError(CondiException):
    """
    Exception raised when a database handle cannot be opened or verified.
    """

    def __init__(
        self,
        message: str = "Error loading default database",
        driver: Optional[str] = None,
        host: Optional[str] = None,
        attempts: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        details = dict(details or {})
        if driver:
            details["driver"] = driver
        if host:
            details["host"] = host
        if attempts is not None:
            details["attempts"] = attempts

        super().__init__(
            message=message,
            details=details,
            error_code="DATABASE_CONNECTION_ERROR"
        )


# =============================================================================
# CONTAINER EXCEPTIONS
# =============================================================================

class ContainerNotInitializedError(CondiException):
    """Exception raised when the process container is used before initialize()."""

    def __init__(self, message: str = "Container isn't initialized. You must use condi.initialize() first."):
        super().__init__(
            message=message,
            error_code="CONTAINER_NOT_INITIALIZED"
        )
