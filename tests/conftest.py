"""
Shared test doubles: a scripted transport and a recording sleep.
"""

from collections.abc import Callable
from typing import Any

import pytest

from hookfetch.http.abort import AbortSignal
from hookfetch.http.messages import Request, Response


class FakeTransport:
    """
    Transport returning scripted results in order.

    Each script item is a Response, an exception instance (raised), or a
    callable taking the request and returning either. The last item repeats
    once the script runs out.
    """

    def __init__(self, *script: Any):
        self.script = list(script) or [Response(200)]
        self.requests: list[Request] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def __call__(self, request: Request) -> Response:
        self.requests.append(request)
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if callable(item) and not isinstance(item, (Response, BaseException)):
            item = item(request)
        if isinstance(item, BaseException):
            raise item
        return item


class RecordingSleep:
    """Sleep replacement recording delays; honors an aborted signal."""

    def __init__(self, on_sleep: Callable[[float], None] | None = None):
        self.delays: list[float] = []
        self.on_sleep = on_sleep

    async def __call__(self, delay: float, signal: AbortSignal | None = None, request: Request | None = None) -> None:
        self.delays.append(delay)
        if self.on_sleep is not None:
            self.on_sleep(delay)
        if signal is not None:
            signal.throw_if_aborted(request)


@pytest.fixture
def ok_transport() -> FakeTransport:
    return FakeTransport(Response(200, body=b"ok"))


@pytest.fixture
def failing_transport() -> FakeTransport:
    return FakeTransport(ConnectionError("connection refused"))


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()
