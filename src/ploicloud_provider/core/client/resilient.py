"""Resilient API client.

Wraps a ``Transport`` with:

- precondition checks (transport, endpoint, credential) that fail fast with
  ``ConfigurationError`` before any network attempt
- bounded retry with linear backoff (``attempt_index x backoff_unit``) for
  network failures and 5xx responses
- structured, sanitized request logging through ``RequestLogger``
- error enrichment for non-2xx responses via ``diagnose_response``

Retry policy:
    - network failure: retried; surfaced as ``TransportError`` (with the
      attempt count) once the bound is exhausted
    - 5xx: retried; once the bound is exhausted the *last* response is
      returned, not an error, so the caller can diagnose it properly
    - 2xx/3xx/4xx: returned immediately, never retried
    - serialization failures, configuration errors, validation hooks and
      cancellation: never retried

The client holds no mutable state between calls and is safe to share
between concurrent operations.
"""

import asyncio
import json
import logging
import time
from typing import Any, Awaitable, Callable, Collection, Optional

import httpx

from ploicloud_provider.config.provider import (
    DEFAULT_API_ENDPOINT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT,
    LoggingConfig,
)
from ploicloud_provider.core.client.diagnostics import diagnose_response
from ploicloud_provider.core.client.request_log import RequestLogEntry, RequestLogger
from ploicloud_provider.core.client.transport import HttpxTransport, RawResponse, Transport
from ploicloud_provider.core.errors import (
    ConfigurationError,
    ProviderError,
    RequestCanceledError,
    SerializationError,
    TransportError,
    wrap_operation_error,
)

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]
RequestValidator = Callable[[Any], None]

DEFAULT_BACKOFF_UNIT = 1.0
USER_AGENT = "ploicloud-provider"


class ResilientClient:
    """HTTP client for the Ploi Cloud API with bounded retries.

    Args:
        api_token: Bearer token sent with every request
        api_endpoint: Base URL that request paths are appended to
        transport: Transport to use (default: ``HttpxTransport``)
        timeout: Per-request timeout for the default transport
        max_retries: Default retry bound for ``execute``
        logging_config: Request logging switches
        backoff_unit: Seconds of backoff per attempt index (linear)
        sleep_func: Injectable async sleep, for tests

    Example:
        client = ResilientClient(api_token="...", logging_config=LoggingConfig(enabled=True))
        response = await client.execute("GET", "/applications/42")
    """

    def __init__(
        self,
        api_token: str,
        api_endpoint: str = DEFAULT_API_ENDPOINT,
        *,
        transport: Optional[Transport] = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        logging_config: Optional[LoggingConfig] = None,
        backoff_unit: float = DEFAULT_BACKOFF_UNIT,
        sleep_func: Optional[SleepFunc] = None,
    ):
        self._api_token = api_token
        self._api_endpoint = (api_endpoint or "").rstrip("/")
        self._transport = transport if transport is not None else HttpxTransport(timeout=timeout)
        self._max_retries = max_retries
        self._backoff_unit = backoff_unit
        self._sleep = sleep_func or asyncio.sleep
        self._request_logger = RequestLogger(logging_config)

    @property
    def api_endpoint(self) -> str:
        return self._api_endpoint

    @property
    def max_retries(self) -> int:
        return self._max_retries

    @property
    def logging_config(self) -> LoggingConfig:
        return self._request_logger.config

    def backoff_for(self, attempt: int) -> float:
        """Backoff after the zero-based *attempt*: 1x, 2x, 3x ... the unit."""
        return (attempt + 1) * self._backoff_unit

    def _check_configured(self) -> None:
        if self._transport is None:
            raise ConfigurationError("HTTP transport is not configured")
        if not self._api_endpoint:
            raise ConfigurationError("API endpoint is empty")
        if not self._api_token:
            raise ConfigurationError("API token is empty")

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }

    def _url(self, path: str) -> str:
        if not path.startswith("/"):
            path = "/" + path
        return self._api_endpoint + path

    @staticmethod
    def _serialize(body: Any) -> Optional[bytes]:
        if body is None:
            return None
        try:
            return json.dumps(body, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise SerializationError(
                f"failed to marshal request body: {e}", original_error=e
            ) from e

    async def execute(
        self,
        method: str,
        path: str,
        body: Any = None,
        max_retries: Optional[int] = None,
        *,
        deadline: Optional[float] = None,
    ) -> RawResponse:
        """Send one logical request, retrying transient failures.

        Args:
            method: HTTP verb
            path: Path relative to the configured endpoint
            body: Optional JSON-serializable payload
            max_retries: Retry bound (default: the client's bound)
            deadline: Optional overall budget in seconds covering every
                attempt and backoff; expiry raises ``RequestCanceledError``

        Returns:
            The first non-5xx response, or the last 5xx response once the
            retry bound is exhausted. Callers must check the status code.

        Raises:
            ConfigurationError: Missing transport, endpoint or credential
            SerializationError: *body* cannot be encoded
            TransportError: Network failure on every attempt
            RequestCanceledError: *deadline* expired
        """
        self._check_configured()
        if not method:
            raise ConfigurationError("HTTP method must not be empty")
        retries = self._max_retries if max_retries is None else max_retries
        if retries < 0:
            raise ConfigurationError(f"max_retries must be >= 0, got {retries}")

        content = self._serialize(body)
        attempts = self._attempts(method.upper(), self._url(path), content, retries)
        if deadline is None:
            return await attempts
        try:
            return await asyncio.wait_for(attempts, timeout=deadline)
        except asyncio.TimeoutError as e:
            raise RequestCanceledError(
                f"{method.upper()} {path} exceeded its deadline of {deadline}s"
            ) from e

    async def _attempts(
        self,
        method: str,
        url: str,
        content: Optional[bytes],
        retries: int,
    ) -> RawResponse:
        max_attempts = retries + 1
        last_response: Optional[RawResponse] = None
        last_error: Optional[Exception] = None

        headers = self._headers()
        for attempt in range(max_attempts):
            start = time.perf_counter()
            entry = RequestLogEntry(
                method=method,
                url=url,
                attempt=attempt + 1,
                max_attempts=max_attempts,
                request_headers=headers,
                request_body=content,
            )
            try:
                response = await self._transport.send(
                    method, url, headers=headers, content=content
                )
            except httpx.TransportError as e:
                last_error = e
                entry.duration = time.perf_counter() - start
                entry.error = f"failed to execute HTTP request: {e or type(e).__name__}"
                if attempt < retries:
                    entry.retry_in = self.backoff_for(attempt)
                    self._request_logger.log(entry)
                    await self._sleep(entry.retry_in)
                    continue
                self._request_logger.log(entry)
                raise TransportError(
                    str(e) or type(e).__name__,
                    attempts=max_attempts,
                    original_error=e,
                ) from e
            except asyncio.CancelledError:
                logger.debug("Request %s %s cancelled on attempt %d", method, url, attempt + 1)
                raise

            entry.duration = time.perf_counter() - start
            entry.status_code = response.status_code
            entry.response_body = response.body
            if response.status_code >= 400:
                entry.error = f"HTTP {response.status_line}"

            if 500 <= response.status_code < 600 and attempt < retries:
                last_response = response
                entry.retry_in = self.backoff_for(attempt)
                self._request_logger.log(entry)
                await self._sleep(entry.retry_in)
                continue

            self._request_logger.log(entry)
            return response

        # Only reachable if the loop body never returned or raised
        if last_response is not None:
            return last_response
        raise TransportError(str(last_error), attempts=max_attempts, original_error=last_error)

    async def request(
        self,
        operation: str,
        method: str,
        path: str,
        body: Any = None,
        *,
        expected: Collection[int] = (200,),
        not_found_ok: bool = False,
        validate: Optional[RequestValidator] = None,
        max_retries: Optional[int] = None,
        deadline: Optional[float] = None,
    ) -> Any:
        """Execute a request and decode its JSON body.

        Args:
            operation: Action name used in error messages, e.g. "create service"
            method: HTTP verb
            path: Path relative to the configured endpoint
            body: Optional JSON-serializable payload
            expected: Status codes that count as success
            not_found_ok: Return ``None`` on 404 instead of raising
            validate: Hook run on *body* before any network I/O
            max_retries: Retry bound override
            deadline: Overall budget in seconds

        Returns:
            Decoded JSON body, or ``None`` for an empty body (or a tolerated 404)

        Raises:
            ProviderError: Any failure, annotated with *operation*
        """
        try:
            if validate is not None:
                validate(body)
            response = await self.execute(
                method, path, body, max_retries=max_retries, deadline=deadline
            )
            if not_found_ok and response.status_code == 404:
                return None
            if response.status_code not in expected:
                raise diagnose_response(response, operation)
            if not response.body.strip():
                return None
            try:
                return response.json()
            except ValueError as e:
                raise ProviderError(
                    f"response body is not valid JSON: {e}", original_error=e
                ) from e
        except ProviderError as e:
            raise wrap_operation_error(operation, e)
