"""Redaction helpers for anything that reaches a log record.

SECURITY: request logging and error messages pass URLs, tokens, headers and
bodies through these helpers. The bearer token is never written in full and
query strings are never written at all.

    - sanitize_url(url) -> str
    - sanitize_token(token) -> str
    - sanitize_body(body) -> str
    - redact_headers(headers) -> dict
    - redact_secrets(text) -> str
"""

from __future__ import annotations

import json
import re
from typing import Any, Mapping

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SANITIZED_QUERY = "[params sanitized]"
MASKED_TOKEN = "***"
REDACTED_VALUE = "****"

# Regex to detect potential API keys / bearer tokens in free text
_SECRET_PATTERN = re.compile(
    r"(?i)"
    r"(?:"
    r"(?:api[_-]?key|token|bearer|authorization|secret|password|credential)"
    r"[\s:=]+"
    r")"
    r"['\"]?([^\s'\"]{8,})['\"]?",
)

# JSON keys whose values never appear in logs
_SENSITIVE_KEYS = frozenset(
    {
        "value",
        "password",
        "secret",
        "token",
        "api_token",
        "api_key",
        "apikey",
        "authorization",
        "private_key",
    }
)

# Request headers whose values carry credentials
_CREDENTIAL_HEADERS = ("authorization", "proxy-authorization", "cookie")


def sanitize_url(url: str) -> str:
    """Replace the query string of *url* with a fixed placeholder.

    Example:
        >>> sanitize_url("https://host/path?token=abc")
        'https://host/path?[params sanitized]'
    """
    if "?" in url:
        return url.split("?", 1)[0] + "?" + SANITIZED_QUERY
    return url


def sanitize_token(token: str) -> str:
    """Mask the middle of a credential, keeping 4 characters at each end.

    Tokens of 8 characters or fewer are masked entirely.

    Example:
        >>> sanitize_token("abcd1234efgh5678")
        'abcd***5678'
    """
    if len(token) <= 8:
        return MASKED_TOKEN
    return token[:4] + MASKED_TOKEN + token[-4:]


def redact_secrets(text: str) -> str:
    """Remove API keys and bearer tokens from a free-text string."""
    if not text:
        return text

    def _replace(match: re.Match[str]) -> str:
        full = match.group(0)
        secret = match.group(1)
        return full.replace(secret, REDACTED_VALUE)

    return _SECRET_PATTERN.sub(_replace, text)


def _redact_json(data: Any) -> Any:
    if isinstance(data, dict):
        return {
            key: (
                REDACTED_VALUE
                if isinstance(key, str) and key.lower() in _SENSITIVE_KEYS and data[key] not in (None, "")
                else _redact_json(data[key])
            )
            for key in data
        }
    if isinstance(data, list):
        return [_redact_json(item) for item in data]
    return data


def sanitize_body(body: str | bytes | None) -> str:
    """Return a log-safe rendition of a request or response body.

    JSON bodies have the values of secret-like keys (``value``, ``password``,
    ``token`` ...) replaced; anything else goes through ``redact_secrets``.
    """
    if body is None:
        return ""
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if not body:
        return ""
    try:
        parsed = json.loads(body)
    except ValueError:
        return redact_secrets(body)
    return json.dumps(_redact_json(parsed), separators=(",", ":"))


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Copy of *headers* for logging; credential values become ``REDACTED_VALUE``."""
    return {
        name: REDACTED_VALUE if name.lower() in _CREDENTIAL_HEADERS else value
        for name, value in headers.items()
    }
