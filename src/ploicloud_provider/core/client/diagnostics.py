"""Error enrichment: turn a non-2xx response into an actionable ``APIError``.

Pure data transformation, no I/O. Malformed or non-JSON bodies degrade to a
status-line message instead of failing the enrichment itself.

Suggestion derivation:
    - 422 with field errors: per-field hints from ``FIELD_HINTS`` (unknown
      fields get a generic hint), joined with "; "
    - 422 without field errors: a generic documentation hint
    - 401 / 403 / 404: fixed per-status text
    - 5xx: transient-error text (the client already retried)
    - anything else: per-status-class default
"""

import logging
from typing import Mapping, Optional

from ploicloud_provider.core.client.models import parse_error_body
from ploicloud_provider.core.client.transport import RawResponse
from ploicloud_provider.core.errors import (
    APIError,
    ClientRequestError,
    ServerRequestError,
)

logger = logging.getLogger(__name__)

DOCS_LINK = "https://docs.ploi.io/cloud"

SERVICE_TYPES = ("mysql", "postgresql", "redis", "valkey", "rabbitmq", "mongodb", "minio", "sftp")

FIELD_HINTS: dict[str, str] = {
    "type": f"Service type must be one of the known values: {', '.join(SERVICE_TYPES)}",
    "version": "Check that the version is supported for the selected service type",
    "storage_size": "Storage size must be specified with units (e.g., '1Gi', '10Gi')",
    "memory_request": "Memory request must be specified with units (e.g., '256Mi', '1Gi')",
    "cpu_request": "CPU request must be specified correctly (e.g., '250m', '1', '2')",
}

GENERIC_VALIDATION_SUGGESTION = "Check the API documentation for required fields and valid values"
GENERIC_FIELD_HINT = "check field value against documented constraints"

STATUS_SUGGESTIONS: dict[int, str] = {
    401: "Verify the API token is valid and has the required permissions",
    403: "Verify the API token is authorized for this operation",
    404: "Verify the resource exists and the identifier is correct",
}

SERVER_ERROR_SUGGESTION = (
    "Transient server error; the request was already retried, please retry later"
)
CLIENT_ERROR_SUGGESTION = "Check the request parameters against the API documentation"
DEFAULT_SUGGESTION = "Check the API documentation for this operation"


def generate_validation_suggestion(field_errors: Mapping[str, list[str]]) -> str:
    """Build the hint string for a 422 response.

    Fields are visited in sorted order so the output is deterministic.
    """
    if not field_errors:
        return GENERIC_VALIDATION_SUGGESTION

    suggestions = []
    for field_name in sorted(field_errors):
        hint = FIELD_HINTS.get(field_name)
        if hint is None:
            messages = ", ".join(field_errors[field_name])
            if messages:
                hint = f"Field '{field_name}': {messages} - {GENERIC_FIELD_HINT}"
            else:
                hint = f"Field '{field_name}': {GENERIC_FIELD_HINT}"
        suggestions.append(hint)
    return "; ".join(suggestions)


def suggest(status_code: int, field_errors: Optional[Mapping[str, list[str]]] = None) -> str:
    """Return the suggestion text for a status code and its field errors."""
    if status_code == 422:
        return generate_validation_suggestion(field_errors or {})
    if status_code in STATUS_SUGGESTIONS:
        return STATUS_SUGGESTIONS[status_code]
    if 500 <= status_code < 600:
        return SERVER_ERROR_SUGGESTION
    if 400 <= status_code < 500:
        return CLIENT_ERROR_SUGGESTION
    return DEFAULT_SUGGESTION


def diagnose(
    status_code: int,
    body: bytes | str = b"",
    operation: Optional[str] = None,
    reason: str = "",
) -> APIError:
    """Decode an error response into a ``ClientRequestError`` or ``ServerRequestError``.

    Args:
        status_code: HTTP status of the failed response
        body: Raw response body (JSON or anything else)
        operation: Action that failed, e.g. "create service"
        reason: Reason phrase, used when the body carries no message

    Returns:
        The diagnosed error (never raises for malformed bodies)
    """
    parsed = parse_error_body(body)
    status_line = RawResponse(status_code=status_code, reason=reason).status_line

    if parsed is None:
        logger.debug("Error body for HTTP %d is not a JSON object; using status line", status_code)
        message = f"HTTP {status_line}"
        field_errors: dict[str, list[str]] = {}
    else:
        message = parsed.message or f"HTTP {status_line}"
        field_errors = parsed.errors

    error_cls = ServerRequestError if status_code >= 500 else ClientRequestError
    return error_cls(
        status_code=status_code,
        message=message,
        field_errors=field_errors,
        suggestion=suggest(status_code, field_errors),
        docs_link=DOCS_LINK,
        operation=operation,
    )


def diagnose_response(response: RawResponse, operation: Optional[str] = None) -> APIError:
    """``diagnose`` for a ``RawResponse``."""
    return diagnose(
        response.status_code,
        response.body,
        operation=operation,
        reason=response.reason,
    )
