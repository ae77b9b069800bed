"""Managed resource kinds.

Importing this package registers every resource descriptor.

Example usage:
    from ploicloud_provider.resources import get_resource_class

    resource = get_resource_class("service")(client)
    state = await resource.read(resource.import_state("12.345"))
"""

from typing import Dict, Type

from ploicloud_provider.resources.application import APPLICATION_DESCRIPTOR, ApplicationResource
from ploicloud_provider.resources.base import ManagedResource
from ploicloud_provider.resources.secret import SECRET_DESCRIPTOR, SecretResource
from ploicloud_provider.resources.service import (
    SERVICE_DESCRIPTOR,
    ServiceResource,
    validate_service_request,
)

RESOURCE_TYPES: Dict[str, Type[ManagedResource]] = {
    ApplicationResource.kind: ApplicationResource,
    ServiceResource.kind: ServiceResource,
    SecretResource.kind: SecretResource,
}


def get_resource_class(kind: str) -> Type[ManagedResource]:
    """Look up a resource class by kind.

    Raises:
        KeyError: If *kind* is unknown
    """
    try:
        return RESOURCE_TYPES[kind]
    except KeyError:
        known = ", ".join(sorted(RESOURCE_TYPES))
        raise KeyError(f"Unknown resource kind '{kind}' (known: {known})") from None


__all__ = [
    "RESOURCE_TYPES",
    "get_resource_class",
    "ManagedResource",
    "ApplicationResource",
    "ServiceResource",
    "SecretResource",
    "APPLICATION_DESCRIPTOR",
    "SERVICE_DESCRIPTOR",
    "SECRET_DESCRIPTOR",
    "validate_service_request",
]
