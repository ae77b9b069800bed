"""Structured request/response logging for the resilient client.

Every attempt the client makes is described by a ``RequestLogEntry`` and
handed to a ``RequestLogger``. What is written depends on the
``LoggingConfig`` the client was built with:

- disabled: nothing
- compact: one record per attempt with method, sanitized URL, status and
  duration (INFO on success, WARNING when a retry follows, ERROR otherwise)
- verbose: the compact record plus DEBUG records carrying redacted request
  headers and sanitized request and response bodies
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ploicloud_provider.config.provider import LoggingConfig
from ploicloud_provider.core.client.sanitize import (
    redact_headers,
    redact_secrets,
    sanitize_body,
    sanitize_url,
)

logger = logging.getLogger(__name__)


@dataclass
class RequestLogEntry:
    """One attempt of one logical request.

    Attributes:
        method: HTTP verb
        url: Full request URL (sanitized when written)
        attempt: 1-based attempt number
        max_attempts: Total attempts allowed for this request
        request_headers: Headers sent, credentials redacted when written
        status_code: Response status, 0 when no response was received
        request_body: Raw request body, sanitized when written
        response_body: Raw response body, sanitized when written
        error: Failure description, empty on success
        duration: Wall-clock seconds spent on the attempt
        retry_in: Backoff before the next attempt, if one follows
    """

    method: str
    url: str
    attempt: int = 1
    max_attempts: int = 1
    request_headers: Dict[str, str] = field(default_factory=dict)
    status_code: int = 0
    request_body: Optional[bytes] = None
    response_body: Optional[bytes] = None
    error: str = ""
    duration: float = 0.0
    retry_in: Optional[float] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def duration_ms(self) -> float:
        return round(self.duration * 1000, 2)

    def to_dict(self) -> Dict[str, Any]:
        """Log-safe dict form, suitable for ``extra=`` or external sinks."""
        result: Dict[str, Any] = {
            "timestamp": self.timestamp.isoformat(),
            "method": self.method,
            "url": sanitize_url(self.url),
            "attempt": self.attempt,
            "max_attempts": self.max_attempts,
            "status_code": self.status_code,
            "duration_ms": self.duration_ms,
        }
        if self.error:
            result["error"] = redact_secrets(self.error)
        if self.retry_in is not None:
            result["retry_in"] = self.retry_in
        return result


class RequestLogger:
    """Writes ``RequestLogEntry`` records according to a ``LoggingConfig``."""

    def __init__(
        self,
        config: Optional[LoggingConfig] = None,
        log: Optional[logging.Logger] = None,
    ):
        self._config = config or LoggingConfig()
        self._log = log or logger

    @property
    def config(self) -> LoggingConfig:
        return self._config

    def log(self, entry: RequestLogEntry) -> None:
        if not self._config.enabled:
            return

        url = sanitize_url(entry.url)
        extra = entry.to_dict()

        if entry.error and entry.retry_in is not None:
            self._log.warning(
                "Ploi API %s %s failed: %s - retrying in %.1fs (attempt %d/%d, took %.0fms)",
                entry.method,
                url,
                redact_secrets(entry.error),
                entry.retry_in,
                entry.attempt,
                entry.max_attempts,
                entry.duration_ms,
                extra=extra,
            )
        elif entry.error:
            self._log.error(
                "Ploi API %s %s failed: %s (took %.0fms)",
                entry.method,
                url,
                redact_secrets(entry.error),
                entry.duration_ms,
                extra=extra,
            )
        else:
            self._log.info(
                "Ploi API %s %s: %d (took %.0fms)",
                entry.method,
                url,
                entry.status_code,
                entry.duration_ms,
                extra=extra,
            )

        if self._config.verbose:
            self._log_bodies(entry, extra)

    def _log_bodies(self, entry: RequestLogEntry, extra: Dict[str, Any]) -> None:
        if entry.request_headers:
            self._log.debug("Request Headers: %s", redact_headers(entry.request_headers), extra=extra)
        if entry.request_body:
            self._log.debug("Request Body: %s", sanitize_body(entry.request_body), extra=extra)
        if entry.status_code and entry.response_body:
            self._log.debug("Response Body: %s", sanitize_body(entry.response_body), extra=extra)
