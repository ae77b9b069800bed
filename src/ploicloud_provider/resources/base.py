"""Abstract base class for managed resources.

``ManagedResource`` is the CRUD contract exposed to the host runtime. A
concrete resource supplies a ``ResourceDescriptor``, its API paths and its
import identifier format; the base class turns desired state into requests
through the ``ResilientClient`` and feeds every response through
``reconcile``.

Contract:
    - create(desired) -> ReconciledState
    - read(prior) -> ReconciledState, or None when the resource is gone
    - update(desired, prior) -> ReconciledState
    - delete(prior) -> None
    - import_state(import_id) -> identity fields to seed ``read``

Every failure is raised as a ``ProviderError`` naming the operation, e.g.
"create service". Operations on the same instance must be serialized by
the caller; different instances may run concurrently.

Example usage:
    class VolumeResource(ManagedResource):
        kind = "volume"
        descriptor = VOLUME_DESCRIPTOR
        identity_fields = ("application_id", "id")

        def collection_path(self, state):
            return f"/applications/{state['application_id']}/volumes"

        def instance_path(self, state):
            return f"{self.collection_path(state)}/{state['id']}"

        @classmethod
        def parse_import_id(cls, import_id):
            application_id, volume_id = parse_composite_id(import_id)
            return {"application_id": application_id, "id": volume_id}
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple

from ploicloud_provider.core.client.models import unwrap_envelope
from ploicloud_provider.core.client.resilient import ResilientClient
from ploicloud_provider.core.errors import (
    ProviderError,
    ResourceValidationError,
    wrap_operation_error,
)
from ploicloud_provider.core.reconcile import (
    ReconciledState,
    ReconcileMode,
    ResourceDescriptor,
    reconcile,
)

logger = logging.getLogger(__name__)


class ManagedResource(ABC):
    """Base class for one resource kind.

    Class attributes:
        kind: Resource kind name, used in operation names
        descriptor: Field schema and merge policies
        identity_fields: Fields that identify an instance; carried from
            prior state into updates
        create_statuses / read_statuses / update_statuses / delete_statuses:
            Status codes accepted as success
    """

    kind: ClassVar[str]
    descriptor: ClassVar[ResourceDescriptor]
    identity_fields: ClassVar[Tuple[str, ...]] = ("id",)

    create_statuses: ClassVar[Tuple[int, ...]] = (200, 201)
    read_statuses: ClassVar[Tuple[int, ...]] = (200,)
    update_statuses: ClassVar[Tuple[int, ...]] = (200,)
    delete_statuses: ClassVar[Tuple[int, ...]] = (200, 204)

    def __init__(self, client: ResilientClient):
        self._client = client

    @property
    def client(self) -> ResilientClient:
        return self._client

    # ------------------------------------------------------------------
    # Hooks for concrete resources
    # ------------------------------------------------------------------

    @abstractmethod
    def collection_path(self, state: Mapping[str, Any]) -> str:
        """Path that create requests are POSTed to."""
        ...

    @abstractmethod
    def instance_path(self, state: Mapping[str, Any]) -> str:
        """Path of one existing instance."""
        ...

    @classmethod
    @abstractmethod
    def parse_import_id(cls, import_id: str) -> Dict[str, Any]:
        """Decode an import identifier into identity fields.

        Raises:
            ImportIdError: If the identifier is malformed
        """
        ...

    def validate(self, payload: Optional[Mapping[str, Any]]) -> None:
        """Pre-flight check run on create payloads before any I/O."""

    def to_payload(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        return self.descriptor.to_api(values)

    def from_response(self, data: Any, context: Mapping[str, Any]) -> Dict[str, Any]:
        """Decode a response body into server-state values.

        Args:
            data: Decoded JSON body, possibly wrapped in a ``data`` envelope
            context: Values the request was built from, for fields the
                response omits
        """
        payload = unwrap_envelope(data)
        if not isinstance(payload, Mapping):
            return {}
        return self.descriptor.from_api(payload)

    async def fetch(self, prior: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        """Return the current server state, or None if the instance is gone."""
        data = await self._client.request(
            f"read {self.kind}",
            "GET",
            self.instance_path(prior),
            expected=self.read_statuses,
            not_found_ok=True,
        )
        if data is None:
            return None
        return self.from_response(data, prior)

    # ------------------------------------------------------------------
    # CRUD contract
    # ------------------------------------------------------------------

    def _coerce(self, operation: str, values: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        try:
            return self.descriptor.coerce(values)
        except ResourceValidationError as e:
            raise wrap_operation_error(operation, e)

    def _identity(self, prior: Mapping[str, Any]) -> Dict[str, Any]:
        return {name: prior[name] for name in self.identity_fields if prior.get(name) is not None}

    def _finish(self, operation: str, state: ReconciledState) -> ReconciledState:
        for note in state.notes:
            logger.debug(
                "%s: %s",
                operation,
                note.message,
                extra={"resource_kind": self.kind, "field": note.field, "note": note.kind.value},
            )
        return state

    async def create(self, desired: Mapping[str, Any]) -> ReconciledState:
        operation = f"create {self.kind}"
        values = self._coerce(operation, desired)
        payload = self.to_payload(values)
        data = await self._client.request(
            operation,
            "POST",
            self.collection_path(values),
            payload,
            expected=self.create_statuses,
            validate=self.validate,
        )
        server = self._decode(operation, data, values)
        logger.debug("Created %s", self.kind, extra={"resource_kind": self.kind})
        return self._finish(
            operation,
            reconcile(self.descriptor, desired=values, server=server, mode=ReconcileMode.CREATE),
        )

    async def read(self, prior: Mapping[str, Any]) -> Optional[ReconciledState]:
        operation = f"read {self.kind}"
        values = self._coerce(operation, prior)
        try:
            server = await self.fetch(values)
        except ProviderError as e:
            raise wrap_operation_error(operation, e)
        except KeyError as e:
            raise wrap_operation_error(operation, e) from e
        if server is None:
            logger.info(
                "%s no longer exists; removing it from state",
                self.kind,
                extra={"resource_kind": self.kind},
            )
            return None
        return self._finish(
            operation,
            reconcile(self.descriptor, prior=values, server=server, mode=ReconcileMode.READ),
        )

    async def update(
        self,
        desired: Mapping[str, Any],
        prior: Mapping[str, Any],
    ) -> ReconciledState:
        operation = f"update {self.kind}"
        prior_values = self._coerce(operation, prior)
        # Persisted identity always addresses the instance
        values = {**self._coerce(operation, desired), **self._identity(prior_values)}
        payload = self.to_payload(values)
        data = await self._client.request(
            operation,
            "PUT",
            self.instance_path(values),
            payload,
            expected=self.update_statuses,
        )
        server = self._decode(operation, data, values)
        return self._finish(
            operation,
            reconcile(
                self.descriptor,
                desired=values,
                prior=prior_values,
                server=server,
                mode=ReconcileMode.UPDATE,
            ),
        )

    async def delete(self, prior: Mapping[str, Any]) -> None:
        operation = f"delete {self.kind}"
        values = self._coerce(operation, prior)
        await self._client.request(
            operation,
            "DELETE",
            self.instance_path(values),
            expected=self.delete_statuses,
        )
        logger.debug("Deleted %s", self.kind, extra={"resource_kind": self.kind})

    @classmethod
    def import_state(cls, import_id: str) -> Dict[str, Any]:
        """Identity fields for *import_id*; pass the result to ``read``."""
        return cls.parse_import_id(import_id)

    def _decode(self, operation: str, data: Any, context: Mapping[str, Any]) -> Dict[str, Any]:
        try:
            return self.from_response(data, context)
        except ProviderError as e:
            raise wrap_operation_error(operation, e)
