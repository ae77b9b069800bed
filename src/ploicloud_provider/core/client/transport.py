"""Single-request HTTP transport.

Executes exactly one request and hands back status, headers and the fully
read body. No retries and no interpretation of status codes happen here.
Network-level failures surface as ``httpx.TransportError`` (which includes
``httpx.TimeoutException``); the resilient client decides what to do with
them.
"""

import json
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Mapping, Optional, Protocol

import httpx

from ploicloud_provider.config.provider import DEFAULT_TIMEOUT


@dataclass(frozen=True)
class RawResponse:
    """Undecoded response for one HTTP exchange.

    Attributes:
        status_code: HTTP status code
        body: Full response body, read once
        headers: Response headers
        reason: Reason phrase reported by the server, if any
    """

    status_code: int
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)
    reason: str = ""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def status_line(self) -> str:
        """Status code plus reason phrase, e.g. ``"503 Service Unavailable"``."""
        reason = self.reason
        if not reason:
            try:
                reason = HTTPStatus(self.status_code).phrase
            except ValueError:
                reason = ""
        return f"{self.status_code} {reason}".strip()

    def json(self) -> Any:
        """Decode the body as JSON. Raises ``ValueError`` on malformed input."""
        return json.loads(self.body)


class Transport(Protocol):
    """Anything that can execute one HTTP request."""

    async def send(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        content: Optional[bytes] = None,
    ) -> RawResponse: ...


class HttpxTransport:
    """``Transport`` backed by ``httpx.AsyncClient``.

    A client is opened per request, so one instance can be shared by
    concurrent operations without any mutable state between calls.

    Args:
        timeout: Request timeout in seconds (connect, read, write and pool)
        transport: Optional low-level httpx transport, e.g.
            ``httpx.MockTransport`` in tests
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._timeout = timeout
        self._transport = transport

    @property
    def timeout(self) -> float:
        return self._timeout

    async def send(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        content: Optional[bytes] = None,
    ) -> RawResponse:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.request(method, url, headers=dict(headers), content=content)
            return RawResponse(
                status_code=response.status_code,
                body=response.content,
                headers=dict(response.headers),
                reason=response.reason_phrase,
            )
