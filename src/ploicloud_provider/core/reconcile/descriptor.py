"""
Resource descriptors: the declarative schema the reconciler runs on.

A ``ResourceDescriptor`` names a resource kind and lists its ``FieldSpec``
entries in declaration order. Each field carries a value kind, a merge
policy and a sensitivity flag. Adding a resource kind means adding a
descriptor, not new merge code.

Values are coerced into their declared kind with pydantic ``TypeAdapter``
instances, so wire payloads and user input pass through the same
validation rules before reconciliation.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import ConfigDict, TypeAdapter, ValidationError

from ploicloud_provider.core.client.models import FlexibleSettings
from ploicloud_provider.core.errors import ResourceValidationError

logger = logging.getLogger(__name__)

# Placeholder the API returns instead of a sensitive value it will not echo
MASKED_SENTINEL = "********"


class FieldKind(str, Enum):
    """Value kinds a field may hold."""

    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    STRING_LIST = "list-of-string"
    STRING_MAP = "map-of-string"


class MergePolicy(str, Enum):
    """How the reconciler picks a field's value from desired/prior/server."""

    SERVER_AUTHORITATIVE = "server_authoritative"
    PRESERVE_PLANNED_IF_SERVER_EMPTY = "preserve_planned_if_server_empty"
    IMMUTABLE = "immutable"


_LAX = ConfigDict(coerce_numbers_to_str=True)

_ADAPTERS: Dict[FieldKind, TypeAdapter] = {
    FieldKind.STRING: TypeAdapter(str, config=_LAX),
    FieldKind.INTEGER: TypeAdapter(int),
    FieldKind.BOOLEAN: TypeAdapter(bool),
    FieldKind.STRING_LIST: TypeAdapter(List[str], config=_LAX),
    FieldKind.STRING_MAP: TypeAdapter(FlexibleSettings),
}


def is_empty(value: Any) -> bool:
    """True for null and for the zero value of every field kind."""
    if value is None:
        return True
    if isinstance(value, bool):
        return value is False
    if isinstance(value, (int, float)):
        return value == 0
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) == 0
    return False


@dataclass(frozen=True)
class FieldSpec:
    """One attribute of a resource.

    Attributes:
        name: Identifier, unique within its descriptor
        kind: Value kind
        sensitive: Remote representation may arrive masked
        merge_policy: Reconciliation policy
        api_name: Wire name when it differs from ``name``
        writable: Sent in create/update payloads (False for computed fields)
        description: Human-readable summary
    """

    name: str
    kind: FieldKind = FieldKind.STRING
    sensitive: bool = False
    merge_policy: MergePolicy = MergePolicy.SERVER_AUTHORITATIVE
    api_name: Optional[str] = None
    writable: bool = True
    description: str = ""

    @property
    def wire_name(self) -> str:
        return self.api_name or self.name

    def coerce(self, value: Any) -> Any:
        """Validate *value* against this field's kind. ``None`` passes through.

        Raises:
            ResourceValidationError: If the value cannot be coerced
        """
        if value is None:
            return None
        try:
            return _ADAPTERS[self.kind].validate_python(value)
        except (ValidationError, ValueError) as e:
            raise ResourceValidationError(
                f"invalid value for field '{self.name}' (expected {self.kind.value}): {e}",
                field=self.name,
            ) from e

    def is_masked(self, value: Any) -> bool:
        return self.sensitive and value == MASKED_SENTINEL


@dataclass(frozen=True)
class ResourceDescriptor:
    """Ordered field schema for one resource kind."""

    kind: str
    fields: Tuple[FieldSpec, ...] = ()

    def __post_init__(self) -> None:
        seen = set()
        for spec in self.fields:
            if spec.name in seen:
                raise ValueError(f"Duplicate field '{spec.name}' in descriptor '{self.kind}'")
            seen.add(spec.name)

    @property
    def field_names(self) -> List[str]:
        return [spec.name for spec in self.fields]

    @property
    def sensitive_fields(self) -> frozenset:
        return frozenset(spec.name for spec in self.fields if spec.sensitive)

    def field(self, name: str) -> FieldSpec:
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(f"Unknown field '{name}' for resource '{self.kind}'")

    def coerce(self, values: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """Validate caller-supplied values (desired or prior state).

        Raises:
            ResourceValidationError: Unknown field or a value of the wrong kind
        """
        if not values:
            return {}
        known = set(self.field_names)
        unknown = sorted(set(values) - known)
        if unknown:
            raise ResourceValidationError(
                f"unknown field(s) for {self.kind}: {', '.join(unknown)}",
                field=unknown[0],
            )
        return {spec.name: spec.coerce(values[spec.name]) for spec in self.fields if spec.name in values}

    def from_api(self, payload: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """Decode a server payload into field values.

        Only fields present on the wire appear in the result; explicit nulls
        are kept as ``None``. Keys the descriptor does not declare are ignored.
        """
        if not payload:
            return {}
        result: Dict[str, Any] = {}
        for spec in self.fields:
            if spec.wire_name in payload:
                result[spec.name] = spec.coerce(payload[spec.wire_name])
        return result

    def to_api(self, values: Mapping[str, Any], *, omit_empty: bool = True) -> Dict[str, Any]:
        """Build a request payload from writable fields, dropping empty values."""
        payload: Dict[str, Any] = {}
        for spec in self.fields:
            if not spec.writable or spec.name not in values:
                continue
            value = values[spec.name]
            if value is None or (omit_empty and is_empty(value)):
                continue
            payload[spec.wire_name] = value
        return payload


class DescriptorRegistry:
    """
    Central registry of resource descriptors, keyed by kind.

    Example:
        >>> registry = DescriptorRegistry()
        >>> registry.register(ResourceDescriptor(kind="volume", fields=(FieldSpec("id"),)))
        >>> registry.get("volume").kind
        'volume'
    """

    def __init__(self) -> None:
        self._descriptors: Dict[str, ResourceDescriptor] = {}

    def register(self, descriptor: ResourceDescriptor) -> None:
        """
        Register a descriptor.

        Raises:
            ValueError: If a different descriptor is already registered for the kind
        """
        existing = self._descriptors.get(descriptor.kind)
        if existing is not None and existing is not descriptor:
            raise ValueError(f"Descriptor '{descriptor.kind}' already registered")
        self._descriptors[descriptor.kind] = descriptor

    def unregister(self, kind: str) -> bool:
        return self._descriptors.pop(kind, None) is not None

    def get(self, kind: str) -> Optional[ResourceDescriptor]:
        return self._descriptors.get(kind)

    def kinds(self) -> List[str]:
        return sorted(self._descriptors)


# Global registry instance
_registry: Optional[DescriptorRegistry] = None


def get_descriptor_registry() -> DescriptorRegistry:
    """Get the global descriptor registry."""
    global _registry
    if _registry is None:
        _registry = DescriptorRegistry()
    return _registry


def register_descriptor(descriptor: ResourceDescriptor) -> ResourceDescriptor:
    """Register *descriptor* globally and return it, for module-level use."""
    get_descriptor_registry().register(descriptor)
    return descriptor


def get_descriptor(kind: str) -> ResourceDescriptor:
    """Look up a registered descriptor.

    Raises:
        KeyError: If no descriptor is registered for *kind*
    """
    descriptor = get_descriptor_registry().get(kind)
    if descriptor is None:
        known = ", ".join(get_descriptor_registry().kinds()) or "none"
        raise KeyError(f"No descriptor registered for '{kind}' (known: {known})")
    return descriptor
