"""Unified error hierarchy for ploicloud-provider.

All custom exception classes are defined in domain-specific modules within
this package. This __init__.py re-exports everything for convenient access.

Usage:
    from ploicloud_provider.core.errors import APIError, ConfigurationError
"""

from ploicloud_provider.core.errors.client import (
    APIError,
    ClientRequestError,
    ConfigurationError,
    ProviderError,
    RequestCanceledError,
    SerializationError,
    ServerRequestError,
    TransportError,
    wrap_operation_error,
)
from ploicloud_provider.core.errors.resource import (
    ImportIdError,
    ResourceValidationError,
)

__all__ = [
    # Client errors
    "ProviderError",
    "ConfigurationError",
    "SerializationError",
    "TransportError",
    "RequestCanceledError",
    "APIError",
    "ClientRequestError",
    "ServerRequestError",
    "wrap_operation_error",
    # Resource errors
    "ResourceValidationError",
    "ImportIdError",
]
