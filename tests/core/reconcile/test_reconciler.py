"""Tests for the three-way reconciler.

Tests cover:
1. PreservePlannedIfServerEmpty on create, read and update
2. ServerAuthoritative adopts explicit server values, empty ones included
3. Immutable keeps prior/desired and records drift without failing
4. Masked sensitive values never replace a known value, whatever the policy
5. Provenance tagging, mode inference and serialization
"""

import logging

import pytest

from ploicloud_provider.core.reconcile import (
    MASKED_SENTINEL,
    FieldKind,
    FieldSpec,
    MergePolicy,
    NoteKind,
    Provenance,
    ReconcileMode,
    ResourceDescriptor,
    infer_mode,
    reconcile,
)

PRESERVE = MergePolicy.PRESERVE_PLANNED_IF_SERVER_EMPTY


@pytest.fixture
def descriptor():
    return ResourceDescriptor(
        kind="widget",
        fields=(
            FieldSpec("id", FieldKind.INTEGER, writable=False),
            FieldSpec("region", merge_policy=MergePolicy.IMMUTABLE),
            FieldSpec("memory", merge_policy=PRESERVE),
            FieldSpec("replicas", FieldKind.INTEGER, merge_policy=PRESERVE),
            FieldSpec("tags", FieldKind.STRING_LIST, merge_policy=PRESERVE),
            FieldSpec("status"),
            FieldSpec("password", sensitive=True),
            FieldSpec("api_key", sensitive=True, merge_policy=MergePolicy.IMMUTABLE),
        ),
    )


class TestPreservePlanned:
    def test_create_keeps_desired_when_server_blank(self, descriptor):
        state = reconcile(descriptor, desired={"memory": "512Mi"}, server={"memory": ""})

        assert state.get("memory") == "512Mi"
        assert state.provenance("memory") == Provenance.DESIRED

    def test_server_value_wins_when_present(self, descriptor):
        state = reconcile(descriptor, prior={"memory": "512Mi"}, server={"memory": "1Gi"})

        assert state.get("memory") == "1Gi"
        assert state.provenance("memory") == Provenance.SERVER

    def test_read_keeps_prior(self, descriptor):
        state = reconcile(
            descriptor,
            prior={"id": 1, "replicas": 3},
            server={"id": 1, "replicas": 0},
            mode=ReconcileMode.READ,
        )

        assert state.get("replicas") == 3
        assert state.provenance("replicas") == Provenance.PRIOR

    def test_update_prefers_desired_then_prior(self, descriptor):
        state = reconcile(
            descriptor,
            desired={"memory": "2Gi"},
            prior={"memory": "1Gi", "tags": ["a"]},
            server={"memory": "", "tags": []},
            mode=ReconcileMode.UPDATE,
        )

        assert state.get("memory") == "2Gi"
        assert state.provenance("memory") == Provenance.DESIRED
        assert state.get("tags") == ["a"]
        assert state.provenance("tags") == Provenance.PRIOR

    def test_absent_server_field_counts_as_empty(self, descriptor):
        state = reconcile(descriptor, desired={"memory": "256Mi"}, server={})

        assert state.get("memory") == "256Mi"

    def test_nothing_known_stays_none(self, descriptor):
        state = reconcile(descriptor, desired={}, server={"memory": ""})

        assert state.get("memory") is None
        assert state.provenance("memory") == Provenance.DESIRED


class TestServerAuthoritative:
    def test_explicit_empty_string_is_adopted(self, descriptor):
        state = reconcile(descriptor, prior={"status": "running"}, server={"status": ""})

        assert state.get("status") == ""
        assert state.provenance("status") == Provenance.SERVER

    def test_null_falls_back_to_desired(self, descriptor):
        state = reconcile(descriptor, desired={"status": "pending"}, server={"status": None})

        assert state.get("status") == "pending"
        assert state.provenance("status") == Provenance.DESIRED

    def test_null_on_read_falls_back_to_prior(self, descriptor):
        state = reconcile(descriptor, prior={"id": 4, "status": "running"}, server={"id": 4})

        assert state.get("status") == "running"
        assert state.provenance("status") == Provenance.PRIOR


class TestImmutable:
    def test_prior_kept_and_drift_noted(self, descriptor, caplog):
        with caplog.at_level(logging.WARNING):
            state = reconcile(descriptor, prior={"id": 1, "region": "eu"}, server={"region": "us"})

        assert state.get("region") == "eu"
        assert state.provenance("region") == Provenance.PRIOR
        assert [note.field for note in state.drift] == ["region"]
        assert state.drift[0].server_value == "us"
        assert state.drift[0].kept_value == "eu"
        assert state.has_drift
        assert "Drift detected on widget.region" in caplog.text

    def test_create_uses_desired(self, descriptor):
        state = reconcile(descriptor, desired={"region": "eu"}, server={"region": "eu"})

        assert state.get("region") == "eu"
        assert state.provenance("region") == Provenance.DESIRED
        assert not state.has_drift

    def test_server_default_captured_when_unset(self, descriptor):
        state = reconcile(descriptor, desired={}, server={"region": "eu-central"})

        assert state.get("region") == "eu-central"
        assert state.provenance("region") == Provenance.SERVER
        assert not state.has_drift

    def test_blank_server_value_is_not_drift(self, descriptor):
        state = reconcile(descriptor, prior={"id": 1, "region": "eu"}, server={"region": ""})

        assert not state.has_drift


class TestMaskedSecrets:
    def test_prior_secret_preserved(self, descriptor):
        state = reconcile(
            descriptor,
            prior={"id": 1, "password": "real-secret"},
            server={"password": MASKED_SENTINEL},
        )

        assert state.get("password") == "real-secret"
        assert state.provenance("password") == Provenance.PRIOR
        assert [n.kind for n in state.notes] == [NoteKind.MASKED_VALUE_IGNORED]

    def test_create_uses_desired_secret(self, descriptor):
        state = reconcile(descriptor, desired={"password": "new-secret"}, server={"password": MASKED_SENTINEL})

        assert state.get("password") == "new-secret"
        assert state.provenance("password") == Provenance.DESIRED

    def test_sentinel_never_persisted_even_without_known_value(self, descriptor):
        state = reconcile(descriptor, prior={"id": 1}, server={"password": MASKED_SENTINEL})

        assert state.get("password") is None

    def test_update_prefers_desired_over_masked_echo(self, descriptor):
        state = reconcile(
            descriptor,
            desired={"password": "fresh"},
            prior={"password": MASKED_SENTINEL},
            server={"password": MASKED_SENTINEL},
            mode=ReconcileMode.UPDATE,
        )

        assert state.get("password") == "fresh"

    def test_user_supplied_asterisks_are_kept(self, descriptor):
        state = reconcile(descriptor, desired={"password": MASKED_SENTINEL}, server={"id": 1})

        assert state.get("password") == MASKED_SENTINEL
        assert state.provenance("password") == Provenance.DESIRED

    def test_user_supplied_asterisks_survive_masked_echo(self, descriptor):
        state = reconcile(
            descriptor,
            desired={"password": MASKED_SENTINEL},
            prior={"id": 1, "password": MASKED_SENTINEL},
            server={"password": MASKED_SENTINEL},
            mode=ReconcileMode.UPDATE,
        )

        assert state.get("password") == MASKED_SENTINEL
        assert state.provenance("password") == Provenance.DESIRED

    def test_masked_immutable_sensitive_field_is_not_drift(self, descriptor):
        state = reconcile(descriptor, prior={"id": 1, "api_key": "k-123"}, server={"api_key": MASKED_SENTINEL})

        assert state.get("api_key") == "k-123"
        assert not state.has_drift

    def test_unmasked_server_secret_adopted(self, descriptor):
        state = reconcile(descriptor, prior={"id": 1, "password": "old"}, server={"password": "rotated"})

        assert state.get("password") == "rotated"

    def test_non_sensitive_field_may_hold_asterisks(self, descriptor):
        state = reconcile(descriptor, prior={"id": 1}, server={"status": MASKED_SENTINEL})

        assert state.get("status") == MASKED_SENTINEL


class TestStateShape:
    def test_every_field_present_in_declaration_order(self, descriptor):
        state = reconcile(descriptor, desired={"memory": "1Gi"}, server={"id": 3})

        assert list(state.values()) == descriptor.field_names
        assert state.values()["id"] == 3

    def test_to_dict_redacts_sensitive(self, descriptor):
        state = reconcile(descriptor, desired={"password": "pw"}, server={"id": 1})

        redacted = state.to_dict(redact_sensitive=True)
        plain = state.to_dict()

        assert redacted["fields"]["password"] == {"value": MASKED_SENTINEL, "provenance": "from-desired"}
        assert plain["fields"]["password"]["value"] == "pw"
        assert redacted["mode"] == "create"
        assert redacted["kind"] == "widget"

    def test_drift_note_hides_sensitive_values(self):
        descriptor = ResourceDescriptor(
            kind="vault",
            fields=(FieldSpec("token", sensitive=True, merge_policy=MergePolicy.IMMUTABLE),),
        )

        state = reconcile(descriptor, prior={"token": "a"}, server={"token": "b"})

        assert state.drift[0].server_value is None
        assert state.drift[0].kept_value is None


class TestInferMode:
    def test_no_prior_is_create(self):
        assert infer_mode({"a": 1}, None) == ReconcileMode.CREATE

    def test_no_desired_is_read(self):
        assert infer_mode(None, {"id": 1}) == ReconcileMode.READ

    def test_both_is_update(self):
        assert infer_mode({"a": 1}, {"id": 1}) == ReconcileMode.UPDATE
