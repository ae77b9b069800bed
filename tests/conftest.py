"""Shared test fixtures.

Provides a scripted fake transport (queued responses/exceptions, recorded
requests), a recording async sleep so retry tests never wait, and an
``httpx.MockTransport``-backed fake API for resource CRUD tests.
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx
import pytest

from ploicloud_provider.core.client.resilient import ResilientClient
from ploicloud_provider.core.client.transport import HttpxTransport, RawResponse

TEST_TOKEN = "test-token-abcdef123456"
TEST_ENDPOINT = "https://cloud.test/api/v1"


# ---------------------------------------------------------------------------
# Scripted transport
# ---------------------------------------------------------------------------


@dataclass
class RecordedRequest:
    method: str
    url: str
    headers: Dict[str, str]
    content: Optional[bytes]

    def json(self) -> Any:
        return json.loads(self.content) if self.content else None


Outcome = Union[RawResponse, BaseException]


class ScriptedTransport:
    """Transport that replays queued outcomes in order and records every call."""

    def __init__(self, *outcomes: Outcome):
        self.outcomes: List[Outcome] = list(outcomes)
        self.requests: List[RecordedRequest] = []

    def queue(self, *outcomes: Outcome) -> "ScriptedTransport":
        self.outcomes.extend(outcomes)
        return self

    @property
    def call_count(self) -> int:
        return len(self.requests)

    async def send(self, method, url, *, headers, content=None) -> RawResponse:
        self.requests.append(RecordedRequest(method, url, dict(headers), content))
        if not self.outcomes:
            raise AssertionError(f"unexpected request {method} {url}: no scripted outcome left")
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def make_response(
    status_code: int = 200,
    json_data: Any = None,
    *,
    body: Optional[bytes] = None,
    reason: str = "",
) -> RawResponse:
    """Build a RawResponse with a JSON (or raw) body."""
    if body is None:
        body = json.dumps(json_data).encode() if json_data is not None else b""
    return RawResponse(status_code=status_code, body=body, reason=reason)


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def response_factory() -> Callable[..., RawResponse]:
    return make_response


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def scripted_transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture
def make_client(recording_sleep):
    """Factory for clients wired to a transport and the recording sleep."""

    def _make(transport, **kwargs) -> ResilientClient:
        kwargs.setdefault("api_token", TEST_TOKEN)
        kwargs.setdefault("api_endpoint", TEST_ENDPOINT)
        kwargs.setdefault("sleep_func", recording_sleep)
        return ResilientClient(transport=transport, **kwargs)

    return _make


# ---------------------------------------------------------------------------
# Fake API over httpx.MockTransport
# ---------------------------------------------------------------------------


Route = Tuple[str, str]
Handler = Union[Tuple[int, Any], Callable[[httpx.Request], httpx.Response]]


class FakeApi:
    """Routes ``(METHOD, path)`` pairs to canned responses.

    A route maps to ``(status, json_body)`` or a callable taking the
    ``httpx.Request``. Unrouted requests get a 404. Every request is kept
    in ``requests``.
    """

    def __init__(self, recording_sleep: RecordingSleep):
        self.routes: Dict[Route, Handler] = {}
        self.requests: List[httpx.Request] = []
        self._sleep = recording_sleep

    def route(self, method: str, path: str, handler: Handler) -> "FakeApi":
        self.routes[(method.upper(), path)] = handler
        return self

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.raw_path.decode().split("?", 1)[0]
        prefix = httpx.URL(TEST_ENDPOINT).raw_path.decode()
        if path.startswith(prefix):
            path = path[len(prefix):]
        handler = self.routes.get((request.method, path))
        if handler is None:
            return httpx.Response(404, json={"message": "Not found"})
        if callable(handler):
            return handler(request)
        status, payload = handler
        if payload is None:
            return httpx.Response(status)
        return httpx.Response(status, json=payload)

    def calls(self, method: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method.upper()]

    def client(self, **kwargs) -> ResilientClient:
        transport = HttpxTransport(transport=httpx.MockTransport(self.handle))
        return ResilientClient(
            api_token=TEST_TOKEN,
            api_endpoint=TEST_ENDPOINT,
            transport=transport,
            sleep_func=self._sleep,
            **kwargs,
        )


@pytest.fixture
def fake_api(recording_sleep) -> FakeApi:
    return FakeApi(recording_sleep)
