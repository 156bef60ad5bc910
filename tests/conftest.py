from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable

import httpx
import pytest

from lobactl.common import observability

Handler = Callable[[httpx.Request], Awaitable[httpx.Response]]


@pytest.fixture(autouse=True, scope="session")
def _structured_logging():
    observability.configure_logging("lobactl.tests", "INFO")


@dataclass
class FakeAgents:
    """Routes requests to per-host handlers and records every request seen."""

    handlers: dict[str, Handler] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)

    def add(self, host: str, handler: Handler) -> str:
        self.handlers[host] = handler
        return f"http://{host}:8880"

    def respond(self, host: str, body: bytes, *, status_code: int = 200, delay: float = 0.0) -> str:
        async def handler(request: httpx.Request) -> httpx.Response:
            if delay:
                await asyncio.sleep(delay)
            return httpx.Response(status_code, content=body, request=request)

        return self.add(host, handler)

    def refuse(self, host: str) -> str:
        async def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        return self.add(host, handler)

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.handlers[request.url.host]
        return await handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def fake_agents() -> FakeAgents:
    return FakeAgents()


class RecordingStream:
    """Binary stream that keeps each write call separately."""

    def __init__(self) -> None:
        self.writes: list[bytes] = []

    def write(self, data: bytes) -> int:
        self.writes.append(bytes(data))
        return len(data)

    def flush(self) -> None:
        pass

    def getvalue(self) -> bytes:
        return b"".join(self.writes)


@pytest.fixture
def recording_stream() -> RecordingStream:
    return RecordingStream()


INFO_PAYLOAD = (
    b'{"services":[{"protocol":"tcp","address":"192.168.122.2","port":80,"schedule":"wrr",'
    b'"destinations":[{"address":"192.168.122.62","port":80,"forward":"droute","weight":100,'
    b'"activeConn":0,"inactiveConn":0,"detached":true,"locked":false}]}]}'
)


@pytest.fixture
def info_payload() -> bytes:
    return INFO_PAYLOAD
