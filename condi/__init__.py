# 📄 File: condi/__init__.py
#
# 🧭 Purpose (Layman Explanation):
# The front door of the registry: everything an application normally needs can be
# imported from here.
#
# 🧪 Purpose (Technical Summary):
# Package exports for the container facade, its components and the error hierarchy.

"""
condi: process-wide configuration and resource registry.

Resolves typed parameters from explicit values, orchestrator secret files and
environment variables, and keeps named database handles plus a logger.
"""

from .container import BootstrapReport, Container, get_container, initialize, reset_container
from .core.exceptions import (
    CondiException,
    ContainerNotInitializedError,
    DatabaseConnectionError,
    DatabaseNotRegisteredError,
    MalformedParameterError,
    ParameterError,
    ParameterNotFoundError,
    ParameterTypeError,
    UnsupportedDriverError,
)
from .core.parameters import ParameterLookup, ParameterStore
from .core.registry import ResourceRegistry
from .core.values import ParameterValue, ValueKind, ValueSource
from .infrastructure.sources import SourceResolver

__version__ = "1.0.0"

__all__ = [
    "BootstrapReport",
    "Container",
    "get_container",
    "initialize",
    "reset_container",
    "CondiException",
    "ContainerNotInitializedError",
    "DatabaseConnectionError",
    "DatabaseNotRegisteredError",
    "MalformedParameterError",
    "ParameterError",
    "ParameterNotFoundError",
    "ParameterTypeError",
    "UnsupportedDriverError",
    "ParameterLookup",
    "ParameterStore",
    "ResourceRegistry",
    "ParameterValue",
    "ValueKind",
    "ValueSource",
    "SourceResolver",
]
