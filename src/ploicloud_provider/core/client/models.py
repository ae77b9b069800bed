"""Wire models for loosely typed API payloads.

The API is inconsistent about a few shapes:

- error bodies carry ``errors`` values that may be a string, a list of
  strings, or any other JSON value
- service ``settings`` may arrive as an object, an empty array, or null
- single resources are wrapped in a ``{"data": ...}`` envelope

Everything here normalizes those shapes into one canonical form before
any business logic sees them.
"""

import json
import logging
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value)


def coerce_messages(value: Any) -> list[str]:
    """Normalize one ``errors`` entry into a list of messages.

    Example:
        >>> coerce_messages("required")
        ['required']
        >>> coerce_messages(["required", 5])
        ['required', '5']
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [_stringify(item) for item in value]
    return [_stringify(value)]


def normalize_settings(raw: Any) -> dict[str, str]:
    """Decode a settings payload into a string-to-string map.

    Objects keep their entries (non-string values are JSON-encoded, nulls
    dropped); arrays and null decode to an empty map.
    """
    if raw is None:
        return {}
    if isinstance(raw, dict):
        return {str(key): _stringify(value) for key, value in raw.items() if value is not None}
    if isinstance(raw, (list, tuple)):
        if raw:
            logger.debug("Ignoring non-empty settings array with %d items", len(raw))
        return {}
    raise ValueError(f"settings must be an object, array or null, got {type(raw).__name__}")


FlexibleSettings = Annotated[dict[str, str], BeforeValidator(normalize_settings)]


class ErrorBody(BaseModel):
    """Decoded error response: ``{"message": ..., "errors": {...}}``."""

    model_config = ConfigDict(extra="ignore")

    message: str = ""
    errors: dict[str, list[str]] = Field(default_factory=dict)

    @field_validator("message", mode="before")
    @classmethod
    def _coerce_message(cls, value: Any) -> str:
        if value is None:
            return ""
        return _stringify(value)

    @field_validator("errors", mode="before")
    @classmethod
    def _coerce_errors(cls, value: Any) -> dict[str, list[str]]:
        if not isinstance(value, dict):
            return {}
        return {str(key): coerce_messages(item) for key, item in value.items()}


def unwrap_envelope(payload: Any) -> Any:
    """Return the contents of a ``{"data": ...}`` envelope, or *payload* itself."""
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload


def parse_error_body(body: bytes | str) -> Optional[ErrorBody]:
    """Decode an error body, returning ``None`` for non-JSON or non-object input."""
    try:
        data = json.loads(body) if body else None
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    return ErrorBody.model_validate(data)
