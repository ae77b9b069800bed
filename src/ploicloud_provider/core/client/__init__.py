"""Ploi Cloud API client layer.

- transport: one HTTP exchange via ``httpx``
- resilient: retry, logging and error enrichment around a transport
- diagnostics: non-2xx responses into actionable ``APIError`` values
- sanitize / request_log: log-safe rendering of requests and responses
- models: pydantic models for loosely typed payloads
"""

from ploicloud_provider.core.client.diagnostics import (
    DOCS_LINK,
    FIELD_HINTS,
    SERVICE_TYPES,
    diagnose,
    diagnose_response,
    generate_validation_suggestion,
    suggest,
)
from ploicloud_provider.core.client.models import (
    ErrorBody,
    FlexibleSettings,
    normalize_settings,
    parse_error_body,
    unwrap_envelope,
)
from ploicloud_provider.core.client.request_log import RequestLogEntry, RequestLogger
from ploicloud_provider.core.client.resilient import ResilientClient
from ploicloud_provider.core.client.sanitize import (
    redact_headers,
    redact_secrets,
    sanitize_body,
    sanitize_token,
    sanitize_url,
)
from ploicloud_provider.core.client.transport import HttpxTransport, RawResponse, Transport

__all__ = [
    # Transport
    "Transport",
    "HttpxTransport",
    "RawResponse",
    # Client
    "ResilientClient",
    # Diagnostics
    "DOCS_LINK",
    "FIELD_HINTS",
    "SERVICE_TYPES",
    "diagnose",
    "diagnose_response",
    "generate_validation_suggestion",
    "suggest",
    # Models
    "ErrorBody",
    "FlexibleSettings",
    "normalize_settings",
    "parse_error_body",
    "unwrap_envelope",
    # Logging
    "RequestLogEntry",
    "RequestLogger",
    "redact_headers",
    "redact_secrets",
    "sanitize_body",
    "sanitize_token",
    "sanitize_url",
]
