"""
Cooperative cancellation for requests.

An AbortController owns an AbortSignal; the signal travels with a Request and
is checked before a send, raced against an in-flight send, and raced against
retry delays.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TYPE_CHECKING, Any, TypeVar

from hookfetch.exceptions import RequestCancelledError

if TYPE_CHECKING:
    from hookfetch.http.messages import Request

T = TypeVar("T")


class AbortSignal:
    """Read side of an AbortController."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: Any = None

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        """Suspend until the signal is aborted."""
        await self._event.wait()

    def throw_if_aborted(self, request: Request | None = None) -> None:
        if self.aborted:
            raise RequestCancelledError(_reason_message(self.reason), request=request)

    def _abort(self, reason: Any) -> None:
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()

    @classmethod
    def timeout(cls, delay_ms: float) -> "AbortSignal":
        """
        Create a signal that aborts itself after delay_ms.

        Must be called from within a running event loop.
        """
        signal = cls()
        loop = asyncio.get_running_loop()
        loop.call_later(max(delay_ms, 0) / 1000.0, signal._abort, f"timed out after {delay_ms}ms")
        return signal

    def __repr__(self) -> str:
        return f"AbortSignal(aborted={self.aborted})"


class AbortController:
    """
    Owner of an AbortSignal.

    Examples:
        >>> controller = AbortController()
        >>> request = Request("https://example.com", signal=controller.signal)
        >>> controller.abort("user navigated away")
    """

    def __init__(self) -> None:
        self.signal = AbortSignal()

    def abort(self, reason: Any = None) -> None:
        """Abort the signal. Aborting twice keeps the first reason."""
        self.signal._abort(reason)


def _reason_message(reason: Any) -> str:
    if reason is None:
        return "Request was cancelled"
    return f"Request was cancelled: {reason}"


async def run_abortable(
    awaitable: Awaitable[T],
    signal: AbortSignal | None,
    request: Request | None = None,
) -> T:
    """
    Await awaitable, abandoning it if signal aborts first.

    The pending awaitable is cancelled and RequestCancelledError raised when
    the signal wins the race. If both complete together the result wins.
    """
    if signal is None:
        return await awaitable
    if signal.aborted:
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        signal.throw_if_aborted(request)

    task = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(signal.wait())
    try:
        done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        waiter.cancel()
        raise

    if task in done:
        waiter.cancel()
        return task.result()

    task.cancel()
    await asyncio.gather(task, return_exceptions=True)
    raise RequestCancelledError(_reason_message(signal.reason), request=request)


async def abortable_sleep(
    delay_ms: float,
    signal: AbortSignal | None = None,
    request: Request | None = None,
) -> None:
    """
    Sleep for delay_ms without blocking the loop.

    Raises RequestCancelledError if signal aborts before or during the wait.
    """
    seconds = max(delay_ms, 0) / 1000.0
    if signal is None:
        await asyncio.sleep(seconds)
        return
    await run_abortable(asyncio.sleep(seconds), signal, request)
