"""Application resource. Import ID: ``"<application_id>"``."""

from typing import Any, Dict, Mapping

from ploicloud_provider.core.reconcile import (
    FieldKind,
    FieldSpec,
    MergePolicy,
    ResourceDescriptor,
    parse_single_id,
    register_descriptor,
)
from ploicloud_provider.resources.base import ManagedResource

_PRESERVE = MergePolicy.PRESERVE_PLANNED_IF_SERVER_EMPTY

APPLICATION_DESCRIPTOR = register_descriptor(
    ResourceDescriptor(
        kind="application",
        fields=(
            FieldSpec("id", FieldKind.INTEGER, writable=False),
            FieldSpec("name", merge_policy=_PRESERVE),
            FieldSpec("application_type", merge_policy=MergePolicy.IMMUTABLE),
            FieldSpec("php_version", merge_policy=_PRESERVE),
            FieldSpec("replicas", FieldKind.INTEGER, merge_policy=_PRESERVE),
            FieldSpec("cpu_request", merge_policy=_PRESERVE),
            FieldSpec("memory_request", merge_policy=_PRESERVE),
            FieldSpec("build_commands", FieldKind.STRING_LIST, merge_policy=_PRESERVE),
            FieldSpec("region", merge_policy=MergePolicy.IMMUTABLE),
            FieldSpec("default_branch", merge_policy=MergePolicy.IMMUTABLE),
            FieldSpec("url", writable=False),
            FieldSpec("status", writable=False),
        ),
    )
)


class ApplicationResource(ManagedResource):
    kind = "application"
    descriptor = APPLICATION_DESCRIPTOR

    def collection_path(self, state: Mapping[str, Any]) -> str:
        return "/applications"

    def instance_path(self, state: Mapping[str, Any]) -> str:
        return f"/applications/{state['id']}"

    @classmethod
    def parse_import_id(cls, import_id: str) -> Dict[str, Any]:
        return {"id": parse_single_id(import_id, "application_id")}
