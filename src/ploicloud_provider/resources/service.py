"""Application service resource (databases, caches, queues, workers).

Import ID: ``"<application_id>.<service_id>"``.

The API has no single-service GET, so ``fetch`` reads the parent
application and selects the service from its ``services`` list.
"""

import logging
import re
from typing import Any, Dict, Mapping, Optional

from ploicloud_provider.core.client.diagnostics import SERVICE_TYPES
from ploicloud_provider.core.client.models import normalize_settings, unwrap_envelope
from ploicloud_provider.core.errors import ResourceValidationError
from ploicloud_provider.core.reconcile import (
    FieldKind,
    FieldSpec,
    MergePolicy,
    ResourceDescriptor,
    parse_composite_id,
    register_descriptor,
)
from ploicloud_provider.resources.base import ManagedResource

logger = logging.getLogger(__name__)

VALID_SERVICE_TYPES = SERVICE_TYPES + ("worker",)

_MEMORY_PATTERN = re.compile(r"^\d+(\.\d+)?(Mi|Gi)$")
_STORAGE_PATTERN = re.compile(r"^\d+(\.\d+)?(Mi|Gi|Ti)$")
_CPU_PATTERN = re.compile(r"^(\d+m|\d+(\.\d+)?)$")

_PRESERVE = MergePolicy.PRESERVE_PLANNED_IF_SERVER_EMPTY

SERVICE_DESCRIPTOR = register_descriptor(
    ResourceDescriptor(
        kind="service",
        fields=(
            FieldSpec("id", FieldKind.INTEGER, writable=False),
            FieldSpec("application_id", FieldKind.INTEGER, merge_policy=MergePolicy.IMMUTABLE),
            FieldSpec("service_name", merge_policy=_PRESERVE),
            FieldSpec("type", merge_policy=MergePolicy.IMMUTABLE),
            FieldSpec("version", merge_policy=_PRESERVE),
            FieldSpec("settings", FieldKind.STRING_MAP, merge_policy=_PRESERVE),
            FieldSpec("replicas", FieldKind.INTEGER, merge_policy=_PRESERVE),
            FieldSpec("cpu_request", merge_policy=_PRESERVE),
            FieldSpec("memory_request", merge_policy=_PRESERVE),
            FieldSpec("storage_size", merge_policy=_PRESERVE),
            FieldSpec("extensions", FieldKind.STRING_LIST, merge_policy=_PRESERVE),
            FieldSpec("command", merge_policy=_PRESERVE),
            FieldSpec("status", writable=False),
        ),
    )
)


def validate_service_request(payload: Optional[Mapping[str, Any]]) -> None:
    """Reject service payloads the API is known to refuse.

    Raises:
        ResourceValidationError: Naming the offending field
    """
    if payload is None:
        raise ResourceValidationError("service payload must not be empty")

    application_id = payload.get("application_id") or 0
    if application_id <= 0:
        raise ResourceValidationError("application_id must be greater than 0", field="application_id")

    service_type = payload.get("type") or ""
    if not service_type:
        raise ResourceValidationError("service type is required", field="type")
    if service_type not in VALID_SERVICE_TYPES:
        raise ResourceValidationError(
            f"invalid service type '{service_type}'. Must be one of: {', '.join(VALID_SERVICE_TYPES)}",
            field="type",
        )

    if service_type == "worker":
        settings = normalize_settings(payload.get("settings"))
        if not payload.get("command") and not settings.get("command"):
            raise ResourceValidationError("command is required for worker type services", field="command")

    memory = payload.get("memory_request")
    if memory and not _MEMORY_PATTERN.match(memory):
        raise ResourceValidationError(
            f"invalid memory_request format '{memory}'. Use format like '256Mi' or '1Gi'",
            field="memory_request",
        )

    cpu = payload.get("cpu_request")
    if cpu and not _CPU_PATTERN.match(cpu):
        raise ResourceValidationError(
            f"invalid cpu_request format '{cpu}'. Use format like '250m', '1', or '2'",
            field="cpu_request",
        )

    storage = payload.get("storage_size")
    if storage and not _STORAGE_PATTERN.match(storage):
        raise ResourceValidationError(
            f"invalid storage_size format '{storage}'. Use format like '1Gi' or '10Gi'",
            field="storage_size",
        )


class ServiceResource(ManagedResource):
    kind = "service"
    descriptor = SERVICE_DESCRIPTOR
    identity_fields = ("application_id", "id")

    def collection_path(self, state: Mapping[str, Any]) -> str:
        return f"/applications/{state['application_id']}/services"

    def instance_path(self, state: Mapping[str, Any]) -> str:
        return f"/applications/{state['application_id']}/services/{state['id']}"

    @classmethod
    def parse_import_id(cls, import_id: str) -> Dict[str, Any]:
        application_id, service_id = parse_composite_id(import_id, ("application_id", "service_id"))
        return {"application_id": application_id, "id": service_id}

    def validate(self, payload: Optional[Mapping[str, Any]]) -> None:
        validate_service_request(payload)

    def from_response(self, data: Any, context: Mapping[str, Any]) -> Dict[str, Any]:
        server = super().from_response(data, context)
        # Nested service payloads omit the parent id
        if server.get("application_id") is None and context.get("application_id") is not None:
            server["application_id"] = context["application_id"]
        return server

    async def fetch(self, prior: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        data = await self._client.request(
            f"read {self.kind}",
            "GET",
            f"/applications/{prior['application_id']}",
            expected=self.read_statuses,
            not_found_ok=True,
        )
        application = unwrap_envelope(data)
        if not isinstance(application, Mapping):
            return None
        for service in application.get("services") or []:
            if isinstance(service, Mapping) and str(service.get("id")) == str(prior["id"]):
                return self.from_response(service, prior)
        logger.debug(
            "Service %s not listed on application %s",
            prior["id"],
            prior["application_id"],
        )
        return None
