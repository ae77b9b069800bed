"""Application secret (environment variable) resource.

Import ID: ``"<application_id>.<key>"``; the key may itself contain dots.

The API lists secrets per application and masks their values, so ``value``
is declared sensitive: a masked echo never replaces the known value.
Creating a secret whose key already exists updates it instead.
"""

import logging
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote

from ploicloud_provider.core.client.models import unwrap_envelope
from ploicloud_provider.core.errors import APIError
from ploicloud_provider.core.reconcile import (
    FieldKind,
    FieldSpec,
    MergePolicy,
    ReconciledState,
    ResourceDescriptor,
    register_descriptor,
    split_keyed_id,
)
from ploicloud_provider.resources.base import ManagedResource

logger = logging.getLogger(__name__)

SECRET_DESCRIPTOR = register_descriptor(
    ResourceDescriptor(
        kind="secret",
        fields=(
            FieldSpec("application_id", FieldKind.INTEGER, merge_policy=MergePolicy.IMMUTABLE),
            FieldSpec("key", merge_policy=MergePolicy.IMMUTABLE),
            FieldSpec("value", sensitive=True),
        ),
    )
)


def _already_exists(error: APIError) -> bool:
    texts = [error.message]
    for messages in error.field_errors.values():
        texts.extend(messages)
    return any("already exists" in text.lower() for text in texts)


class SecretResource(ManagedResource):
    kind = "secret"
    descriptor = SECRET_DESCRIPTOR
    identity_fields = ("application_id", "key")

    def collection_path(self, state: Mapping[str, Any]) -> str:
        return f"/applications/{state['application_id']}/secrets"

    def instance_path(self, state: Mapping[str, Any]) -> str:
        return f"{self.collection_path(state)}/{quote(str(state['key']), safe='')}"

    @classmethod
    def parse_import_id(cls, import_id: str) -> Dict[str, Any]:
        application_id, key = split_keyed_id(import_id, ("application_id", "key"))
        return {"application_id": application_id, "key": key}

    async def create(self, desired: Mapping[str, Any]) -> ReconciledState:
        try:
            return await super().create(desired)
        except APIError as e:
            if e.status_code >= 500 or not _already_exists(e):
                raise
            logger.info(
                "Secret %s already exists on application %s; updating it instead",
                desired.get("key"),
                desired.get("application_id"),
            )
        return await self.update(desired, self._identity(desired))

    async def fetch(self, prior: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        data = await self._client.request(
            f"read {self.kind}",
            "GET",
            self.collection_path(prior),
            expected=self.read_statuses,
            not_found_ok=True,
        )
        secrets = unwrap_envelope(data)
        if not isinstance(secrets, list):
            return None
        for secret in secrets:
            if isinstance(secret, Mapping) and secret.get("key") == prior["key"]:
                server = self.from_response(secret, prior)
                server.setdefault("application_id", prior["application_id"])
                return server
        return None
