"""State reconciliation: descriptors, the three-way merge and import identifiers.

Usage:
    from ploicloud_provider.core.reconcile import reconcile, get_descriptor

    state = reconcile(get_descriptor("service"), desired=plan, server=response)
"""

from ploicloud_provider.core.reconcile.descriptor import (
    MASKED_SENTINEL,
    DescriptorRegistry,
    FieldKind,
    FieldSpec,
    MergePolicy,
    ResourceDescriptor,
    get_descriptor,
    get_descriptor_registry,
    is_empty,
    register_descriptor,
)
from ploicloud_provider.core.reconcile.identifiers import (
    format_composite_id,
    parse_composite_id,
    parse_single_id,
    split_keyed_id,
)
from ploicloud_provider.core.reconcile.reconciler import (
    FieldValue,
    NoteKind,
    Provenance,
    ReconciledState,
    ReconcileMode,
    ReconcileNote,
    infer_mode,
    reconcile,
)

__all__ = [
    # Descriptors
    "MASKED_SENTINEL",
    "DescriptorRegistry",
    "FieldKind",
    "FieldSpec",
    "MergePolicy",
    "ResourceDescriptor",
    "get_descriptor",
    "get_descriptor_registry",
    "is_empty",
    "register_descriptor",
    # Reconciler
    "FieldValue",
    "NoteKind",
    "Provenance",
    "ReconciledState",
    "ReconcileMode",
    "ReconcileNote",
    "infer_mode",
    "reconcile",
    # Identifiers
    "format_composite_id",
    "parse_composite_id",
    "parse_single_id",
    "split_keyed_id",
]
