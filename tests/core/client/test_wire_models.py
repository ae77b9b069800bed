"""Tests for the loosely typed wire payload models."""

import pytest
from pydantic import BaseModel, ValidationError

from ploicloud_provider.core.client.models import (
    ErrorBody,
    FlexibleSettings,
    coerce_messages,
    normalize_settings,
    parse_error_body,
    unwrap_envelope,
)


class ServicePayload(BaseModel):
    settings: FlexibleSettings = {}


class TestNormalizeSettings:
    def test_object(self):
        assert normalize_settings({"command": "run.sh", "port": 8080}) == {
            "command": "run.sh",
            "port": "8080",
        }

    def test_empty_array(self):
        assert normalize_settings([]) == {}

    def test_null(self):
        assert normalize_settings(None) == {}

    def test_null_values_dropped(self):
        assert normalize_settings({"a": None, "b": "x"}) == {"b": "x"}

    def test_nested_values_json_encoded(self):
        assert normalize_settings({"flags": [1, 2], "on": True}) == {"flags": "[1, 2]", "on": "true"}

    def test_scalar_rejected(self):
        with pytest.raises(ValueError):
            normalize_settings("oops")


class TestFlexibleSettings:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ({"command": "run.sh"}, {"command": "run.sh"}),
            ([], {}),
            (None, {}),
        ],
    )
    def test_all_shapes_decode_to_map(self, raw, expected):
        assert ServicePayload.model_validate({"settings": raw}).settings == expected

    def test_invalid_shape_is_validation_error(self):
        with pytest.raises(ValidationError):
            ServicePayload.model_validate({"settings": 12})


class TestErrorBody:
    def test_list_and_string_messages(self):
        body = ErrorBody.model_validate(
            {"message": "invalid", "errors": {"type": "bad", "version": ["x", "y"]}}
        )

        assert body.errors == {"type": ["bad"], "version": ["x", "y"]}

    def test_other_json_values_coerced_to_strings(self):
        body = ErrorBody.model_validate({"errors": {"replicas": 3, "limits": {"max": 2}}})

        assert body.errors == {"replicas": ["3"], "limits": ['{"max": 2}']}

    def test_missing_fields_default(self):
        body = ErrorBody.model_validate({"unexpected": True})

        assert body.message == ""
        assert body.errors == {}

    def test_non_object_errors_ignored(self):
        assert ErrorBody.model_validate({"errors": ["a"]}).errors == {}

    def test_coerce_messages_none(self):
        assert coerce_messages(None) == []


class TestParseErrorBody:
    def test_valid(self):
        assert parse_error_body(b'{"message": "nope"}').message == "nope"

    @pytest.mark.parametrize("body", [b"", b"not json", b"[1]", "null"])
    def test_non_objects_return_none(self, body):
        assert parse_error_body(body) is None


class TestUnwrapEnvelope:
    def test_envelope(self):
        assert unwrap_envelope({"data": {"id": 1}}) == {"id": 1}

    def test_bare_payload(self):
        assert unwrap_envelope({"id": 1}) == {"id": 1}

    def test_list_envelope(self):
        assert unwrap_envelope({"data": [{"key": "A"}]}) == [{"key": "A"}]
