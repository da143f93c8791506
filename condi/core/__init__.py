"""
Core package for the registry.
Provides the value model, parameter store, resource registry and error types.
"""

from .exceptions import (
    CondiException,
    ParameterError,
    ParameterNotFoundError,
    MalformedParameterError,
    ParameterTypeError,
    InvalidParameterError,
    RegistryError,
    DatabaseNotRegisteredError,
    InvalidResourceNameError,
    DatabaseConfigurationError,
    UnsupportedDriverError,
    DatabaseConnectionError,
    ContainerNotInitializedError
)

from .values import ParameterValue, ValueKind, ValueSource
from .parameters import ParameterLookup, ParameterStore
from .registry import ResourceRegistry
