"""Tests for error enrichment (diagnose / suggestion tables)."""

import pytest

from ploicloud_provider.core.client.diagnostics import (
    CLIENT_ERROR_SUGGESTION,
    DOCS_LINK,
    FIELD_HINTS,
    GENERIC_VALIDATION_SUGGESTION,
    SERVER_ERROR_SUGGESTION,
    STATUS_SUGGESTIONS,
    diagnose,
    diagnose_response,
    generate_validation_suggestion,
    suggest,
)
from ploicloud_provider.core.client.transport import RawResponse
from ploicloud_provider.core.errors import ClientRequestError, ServerRequestError


class TestGenerateValidationSuggestion:
    def test_known_field_uses_hint(self):
        assert generate_validation_suggestion({"storage_size": ["required"]}) == FIELD_HINTS["storage_size"]

    def test_unknown_field_gets_generic_hint(self):
        result = generate_validation_suggestion({"domain": ["is taken", "too long"]})

        assert result == "Field 'domain': is taken, too long - check field value against documented constraints"

    def test_multiple_fields_sorted_and_joined(self):
        result = generate_validation_suggestion({"version": ["bad"], "type": ["bad"]})

        assert result == f"{FIELD_HINTS['type']}; {FIELD_HINTS['version']}"

    def test_no_field_errors(self):
        assert generate_validation_suggestion({}) == GENERIC_VALIDATION_SUGGESTION

    def test_type_hint_lists_service_types(self):
        assert "mysql" in FIELD_HINTS["type"]
        assert "valkey" in FIELD_HINTS["type"]


class TestSuggest:
    @pytest.mark.parametrize("status", [401, 403, 404])
    def test_fixed_status_suggestions(self, status):
        assert suggest(status) == STATUS_SUGGESTIONS[status]

    @pytest.mark.parametrize("status", [500, 502, 503, 599])
    def test_server_errors(self, status):
        assert suggest(status) == SERVER_ERROR_SUGGESTION

    def test_other_client_errors(self):
        assert suggest(409) == CLIENT_ERROR_SUGGESTION

    def test_422_without_errors(self):
        assert suggest(422) == GENERIC_VALIDATION_SUGGESTION


class TestDiagnose:
    def test_validation_body(self):
        body = b'{"message": "The given data was invalid.", "errors": {"storage_size": ["required"]}}'

        error = diagnose(422, body, operation="create service")

        assert isinstance(error, ClientRequestError)
        assert error.status_code == 422
        assert error.message == "The given data was invalid."
        assert error.field_errors == {"storage_size": ["required"]}
        assert error.suggestion == FIELD_HINTS["storage_size"]
        assert error.docs_link == DOCS_LINK
        rendered = str(error)
        assert "failed to create service" in rendered
        assert "storage_size: required" in rendered
        assert f"Documentation: {DOCS_LINK}" in rendered

    def test_string_error_values_are_tolerated(self):
        error = diagnose(422, '{"message": "bad", "errors": {"type": "invalid"}}')

        assert error.field_errors == {"type": ["invalid"]}

    def test_non_json_body_degrades_to_status_line(self):
        error = diagnose(502, b"<html>Bad Gateway</html>")

        assert isinstance(error, ServerRequestError)
        assert error.message == "HTTP 502 Bad Gateway"
        assert error.field_errors == {}
        assert error.suggestion == SERVER_ERROR_SUGGESTION

    @pytest.mark.parametrize("body", [b"", b"[]", b"null", b"42", b'"text"'])
    def test_malformed_bodies_never_raise(self, body):
        error = diagnose(500, body)

        assert error.message.startswith("HTTP 500")

    def test_missing_message_uses_reason(self):
        error = diagnose(418, b"{}", reason="I'm a teapot")

        assert error.message == "HTTP 418 I'm a teapot"

    def test_unauthorized(self):
        error = diagnose(401, b'{"message": "Unauthenticated."}', operation="read application")

        assert error.suggestion == STATUS_SUGGESTIONS[401]
        assert str(error).startswith("failed to read application: Unauthenticated.")

    def test_error_is_not_retryable_for_4xx(self):
        assert diagnose(404).retryable is False
        assert diagnose(503).retryable is True

    def test_diagnose_response(self):
        response = RawResponse(status_code=404, body=b'{"message": "Not found"}', reason="Not Found")

        error = diagnose_response(response, "read service")

        assert error.operation == "read service"
        assert error.suggestion == STATUS_SUGGESTIONS[404]
