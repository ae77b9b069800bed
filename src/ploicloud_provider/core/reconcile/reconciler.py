"""
Three-way state reconciliation.

``reconcile`` merges the desired state (what the user asked for), the prior
state (what was persisted last time) and the server state (what the API
just returned) into the state to persist next. It is a pure function: the
only side effect is logging of the notes it records.

Per field, in declaration order, the first matching rule wins:

1. Sensitive field whose server value is the masking sentinel: the server
   value is never adopted; fall back as for an empty server value.
2. ``IMMUTABLE``: prior, else desired, else server. A non-empty server
   value that differs is recorded as a ``drift-detected`` note.
3. ``SERVER_AUTHORITATIVE``: server whenever it has a non-null entry
   (explicit empty values included), else desired, else prior.
4. ``PRESERVE_PLANNED_IF_SERVER_EMPTY``: server if non-empty, else fall back.

The fallback for an empty (or masked) server value depends on the mode:
desired on create, prior on read, and on update desired when set, else
prior. A masked server value is never adopted; values the user supplied
are kept as given.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ploicloud_provider.core.reconcile.descriptor import (
    MASKED_SENTINEL,
    FieldSpec,
    MergePolicy,
    ResourceDescriptor,
    is_empty,
)

logger = logging.getLogger(__name__)


class Provenance(str, Enum):
    """Which input a reconciled value came from."""

    DESIRED = "from-desired"
    PRIOR = "from-prior"
    SERVER = "from-server"


class ReconcileMode(str, Enum):
    """CRUD phase the reconciliation runs in."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"


class NoteKind(str, Enum):
    DRIFT_DETECTED = "drift-detected"
    MASKED_VALUE_IGNORED = "masked-value-ignored"


@dataclass(frozen=True)
class ReconcileNote:
    """Informational finding recorded during reconciliation. Never fatal.

    Values are omitted for sensitive fields.
    """

    field: str
    kind: NoteKind
    message: str
    server_value: Any = None
    kept_value: Any = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "field": self.field,
            "kind": self.kind.value,
            "message": self.message,
        }
        if self.server_value is not None:
            result["server_value"] = self.server_value
        if self.kept_value is not None:
            result["kept_value"] = self.kept_value
        return result


@dataclass(frozen=True)
class FieldValue:
    value: Any
    provenance: Provenance


@dataclass
class ReconciledState:
    """Reconciled value per field, each tagged with its provenance.

    Attributes:
        kind: Resource kind
        mode: Phase the state was produced in
        fields: Field name to value and provenance, in declaration order
        notes: Drift and masked-value findings
        sensitive_fields: Fields whose values must be redacted for display
    """

    kind: str
    mode: ReconcileMode
    fields: Dict[str, FieldValue] = field(default_factory=dict)
    notes: List[ReconcileNote] = field(default_factory=list)
    sensitive_fields: frozenset = frozenset()

    def values(self) -> Dict[str, Any]:
        """Plain values, suitable for persisting as the next prior state."""
        return {name: fv.value for name, fv in self.fields.items()}

    def get(self, name: str, default: Any = None) -> Any:
        fv = self.fields.get(name)
        return default if fv is None else fv.value

    def provenance(self, name: str) -> Provenance:
        return self.fields[name].provenance

    @property
    def drift(self) -> List[ReconcileNote]:
        return [note for note in self.notes if note.kind == NoteKind.DRIFT_DETECTED]

    @property
    def has_drift(self) -> bool:
        return bool(self.drift)

    def to_dict(self, *, redact_sensitive: bool = False) -> Dict[str, Any]:
        """Serializable form with provenance, for display or diagnostics."""
        fields_out: Dict[str, Any] = {}
        for name, fv in self.fields.items():
            value = fv.value
            if redact_sensitive and name in self.sensitive_fields and value is not None:
                value = MASKED_SENTINEL
            fields_out[name] = {"value": value, "provenance": fv.provenance.value}
        return {
            "kind": self.kind,
            "mode": self.mode.value,
            "fields": fields_out,
            "notes": [note.to_dict() for note in self.notes],
        }


Candidate = Tuple[Any, Provenance]


def infer_mode(
    desired: Optional[Mapping[str, Any]],
    prior: Optional[Mapping[str, Any]],
) -> ReconcileMode:
    """Create when nothing was persisted, read when nothing is desired, else update."""
    if not prior:
        return ReconcileMode.CREATE
    if desired is None:
        return ReconcileMode.READ
    return ReconcileMode.UPDATE


def _first_known(*candidates: Candidate) -> Candidate:
    """First candidate holding a non-null value.

    When every candidate is null, the first candidate's source is kept with
    ``None``. Masked server values are screened before this is reached;
    desired and prior values are taken as given.
    """
    for value, provenance in candidates:
        if value is not None:
            return value, provenance
    return None, candidates[0][1]


def _fallback(mode: ReconcileMode, desired: Any, prior: Any) -> Candidate:
    if mode == ReconcileMode.CREATE:
        return _first_known((desired, Provenance.DESIRED))
    if mode == ReconcileMode.READ:
        return _first_known((prior, Provenance.PRIOR))
    return _first_known((desired, Provenance.DESIRED), (prior, Provenance.PRIOR))


def _reconcile_field(
    spec: FieldSpec,
    mode: ReconcileMode,
    desired: Any,
    prior: Any,
    server: Any,
    notes: List[ReconcileNote],
) -> Candidate:
    if spec.is_masked(server):
        notes.append(
            ReconcileNote(
                field=spec.name,
                kind=NoteKind.MASKED_VALUE_IGNORED,
                message=f"server returned a masked value for '{spec.name}'; keeping the known value",
            )
        )
        return _fallback(mode, desired, prior)

    policy = spec.merge_policy

    if policy == MergePolicy.IMMUTABLE:
        value, provenance = _first_known(
            (prior, Provenance.PRIOR),
            (desired, Provenance.DESIRED),
            (server, Provenance.SERVER),
        )
        if provenance != Provenance.SERVER and not is_empty(server) and server != value and value is not None:
            notes.append(
                ReconcileNote(
                    field=spec.name,
                    kind=NoteKind.DRIFT_DETECTED,
                    message=f"server reports a different value for immutable field '{spec.name}'",
                    server_value=None if spec.sensitive else server,
                    kept_value=None if spec.sensitive else value,
                )
            )
        return value, provenance

    if policy == MergePolicy.SERVER_AUTHORITATIVE:
        return _first_known(
            (server, Provenance.SERVER),
            (desired, Provenance.DESIRED),
            (prior, Provenance.PRIOR),
        )

    if not is_empty(server):
        return server, Provenance.SERVER
    return _fallback(mode, desired, prior)


def reconcile(
    descriptor: ResourceDescriptor,
    desired: Optional[Mapping[str, Any]] = None,
    prior: Optional[Mapping[str, Any]] = None,
    server: Optional[Mapping[str, Any]] = None,
    *,
    mode: Optional[ReconcileMode] = None,
) -> ReconciledState:
    """Merge desired, prior and server views of one resource.

    Args:
        descriptor: Field schema and merge policies
        desired: Values the caller wants (create/update), or None
        prior: Values persisted last time (read/update), or None
        server: Values decoded from the API response
        mode: CRUD phase; inferred from which inputs are present when omitted

    Returns:
        ReconciledState with one value per descriptor field
    """
    if mode is None:
        mode = infer_mode(desired, prior)
    desired = desired or {}
    prior = prior or {}
    server = server or {}

    state = ReconciledState(
        kind=descriptor.kind,
        mode=mode,
        sensitive_fields=descriptor.sensitive_fields,
    )
    for spec in descriptor.fields:
        value, provenance = _reconcile_field(
            spec,
            mode,
            desired.get(spec.name),
            prior.get(spec.name),
            server.get(spec.name),
            state.notes,
        )
        state.fields[spec.name] = FieldValue(value=value, provenance=provenance)

    for note in state.notes:
        if note.kind == NoteKind.DRIFT_DETECTED:
            logger.warning(
                "Drift detected on %s.%s: %s",
                descriptor.kind,
                note.field,
                note.message,
                extra={"resource_kind": descriptor.kind, "field": note.field},
            )
        else:
            logger.debug("%s.%s: %s", descriptor.kind, note.field, note.message)

    return state
