"""Tests for the provider error hierarchy."""

import pytest

from ploicloud_provider.core.errors import (
    APIError,
    ClientRequestError,
    ConfigurationError,
    ImportIdError,
    ProviderError,
    RequestCanceledError,
    ResourceValidationError,
    SerializationError,
    ServerRequestError,
    TransportError,
    wrap_operation_error,
)


@pytest.mark.parametrize(
    "error_cls",
    [
        ConfigurationError,
        SerializationError,
        RequestCanceledError,
        ResourceValidationError,
    ],
)
def test_all_errors_are_provider_errors(error_cls):
    assert issubclass(error_cls, ProviderError)


def test_message_without_operation():
    assert str(ProviderError("boom")) == "boom"


def test_with_operation_sets_once():
    error = ProviderError("boom")

    error.with_operation("create service").with_operation("outer")

    assert error.operation == "create service"
    assert str(error) == "failed to create service: boom"


def test_transport_error_mentions_attempts():
    error = TransportError("refused", attempts=4)

    assert error.attempts == 4
    assert str(error) == "failed to execute HTTP request after 4 attempts: refused"


def test_api_error_rendering():
    error = ClientRequestError(
        status_code=422,
        message="invalid",
        field_errors={"type": ["bad"], "storage_size": ["required", "too small"]},
        suggestion="Fix it",
        docs_link="https://docs.test",
        operation="create service",
    )

    assert str(error).splitlines() == [
        "failed to create service: invalid",
        "  storage_size: required, too small",
        "  type: bad",
        "Suggestion: Fix it",
        "Documentation: https://docs.test",
    ]


def test_api_error_subclasses():
    assert issubclass(ClientRequestError, APIError)
    assert issubclass(ServerRequestError, APIError)
    assert ServerRequestError(503, "down").retryable
    assert not ClientRequestError(400, "bad").retryable


def test_import_id_error_names_segment():
    error = ImportIdError("bad segment", import_id="1.x", segment="service_id")

    assert error.segment == "service_id"
    assert error.operation == "import resource"
    assert str(error) == "failed to import resource: bad segment"


def test_wrap_operation_error_foreign_exception():
    original = KeyError("id")

    wrapped = wrap_operation_error("read service", original)

    assert isinstance(wrapped, ProviderError)
    assert wrapped.original_error is original
    assert str(wrapped).startswith("failed to read service:")


def test_wrap_operation_error_provider_error_annotated_in_place():
    error = SerializationError("bad body")

    assert wrap_operation_error("update secret", error) is error
    assert error.operation == "update secret"
