"""
Interceptor chain executor.

Runs the request phase over an ordered list of interceptors, sends the
resulting request through an injected transport unless an interceptor
short-circuited with a response, then runs the response phase. The executor
keeps no state: everything it needs is passed in.

Error flow:
- A request hook that raises is offered to the same interceptor's
  request_error. With no request_error the failure propagates at once and the
  rest of the phase is skipped.
- In the response phase a failure (from the transport, or from a response
  hook) is offered to the failing interceptor's response_error and then to
  each later response_error in turn until one returns a Response. Remaining
  response hooks are skipped while the outcome is a failure.
- RequestCancelledError is never offered to hooks.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Sequence
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Union

from hookfetch.core.interceptors import HookName, Interceptor, Outcome
from hookfetch.exceptions import InterceptorError, RequestCancelledError, TransportError
from hookfetch.http.abort import run_abortable
from hookfetch.http.messages import Request, Response
from hookfetch.utils.async_utils import maybe_await
from hookfetch.utils.logging import get_logger

if TYPE_CHECKING:
    from hookfetch.client import HttpClient

logger = get_logger("hookfetch.core.chain")

Transport = Callable[[Request], Awaitable[Response]]


class ResponseOrder(StrEnum):
    """Order in which response hooks run relative to registration."""

    REVERSE = "reverse"  # last registered runs first, like nested middleware
    REGISTRATION = "registration"  # same order as the request phase


async def _invoke(
    interceptor: Interceptor,
    hook: HookName,
    expected: tuple[type, ...],
    *args: Any,
) -> Outcome[Any]:
    """Call one hook and capture its result or failure as an Outcome."""
    try:
        result = await maybe_await(interceptor.get_hook(hook)(*args))
    except RequestCancelledError:
        raise
    except Exception as e:
        logger.debug(f"Interceptor {interceptor.display_name!r} {hook} hook raised {type(e).__name__}: {e}")
        return Outcome.failure(e)

    if not isinstance(result, expected):
        names = " or ".join(t.__name__ for t in expected)
        return Outcome.failure(
            InterceptorError(interceptor.display_name, hook.value, f"expected {names}, got {type(result).__name__}")
        )
    return Outcome.success(result)


async def _request_phase(
    interceptors: Iterable[Interceptor],
    request: Request,
) -> tuple[Request, Union[Request, Response]]:
    """Run the request phase; returns (last request seen, phase result)."""
    current: Union[Request, Response] = request
    last_request = request

    for interceptor in interceptors:
        if not interceptor.has_hook(HookName.REQUEST):
            continue

        outcome = await _invoke(interceptor, HookName.REQUEST, (Request, Response), current)
        if outcome.is_failure:
            if not interceptor.has_hook(HookName.REQUEST_ERROR):
                raise outcome.error  # type: ignore[misc]
            outcome = await _invoke(interceptor, HookName.REQUEST_ERROR, (Request, Response), outcome.error)
            if outcome.is_failure:
                raise outcome.error  # type: ignore[misc]

        current = outcome.value
        if isinstance(current, Response):
            logger.debug(f"Interceptor {interceptor.display_name!r} short-circuited {last_request.method} {last_request.url}")
            return last_request, current
        last_request = current

    return last_request, current


async def run_request_phase(interceptors: Iterable[Interceptor], request: Request) -> Union[Request, Response]:
    """
    Apply request hooks in registration order.

    Args:
        interceptors: Interceptors in registration order
        request: The request submitted by the caller

    Returns:
        The request to send, or a Response that short-circuits the send

    Raises:
        Exception: The first hook failure not recovered by its own request_error
    """
    _, result = await _request_phase(interceptors, request)
    return result


async def send(transport: Transport, request: Request) -> Response:
    """
    Send request through the transport.

    Raises:
        RequestCancelledError: The request's signal aborted before or during the send
        TransportError: The transport failed; carries the request
    """
    if request.signal is not None:
        request.signal.throw_if_aborted(request)

    logger.debug(f"Sending {request.method} {request.url}")
    try:
        response = await run_abortable(transport(request), request.signal, request)
    except (RequestCancelledError, TransportError):
        raise
    except Exception as e:
        raise TransportError(f"{request.method} {request.url} failed: {e}", request=request, cause=e) from e

    if not isinstance(response, Response):
        raise TransportError(
            f"Transport returned {type(response).__name__} instead of Response",
            request=request,
        )
    if response.request is None:
        response = response.replace(request=request)
    logger.debug(f"{request.method} {request.url} -> {response.status}")
    return response


def _ordered(interceptors: Sequence[Interceptor], order: ResponseOrder) -> Iterable[Interceptor]:
    if order == ResponseOrder.REVERSE:
        return reversed(interceptors)
    return iter(interceptors)


async def run_response_phase(
    interceptors: Sequence[Interceptor],
    outcome: Outcome[Response],
    request: Request,
    client: HttpClient | None = None,
    order: ResponseOrder = ResponseOrder.REVERSE,
) -> Response:
    """
    Apply response hooks to the outcome of the exchange.

    Args:
        interceptors: Interceptors in registration order
        outcome: The transport response, or the transport failure
        request: The request that was sent, given to hooks for context
        client: The client running the call, given to response_error hooks
        order: Whether response hooks run in reverse or registration order

    Returns:
        The final response

    Raises:
        Exception: The failure left unrecovered at the end of the phase
    """
    if outcome.is_failure and isinstance(outcome.error, RequestCancelledError):
        raise outcome.error

    for interceptor in _ordered(interceptors, order):
        if not outcome.is_failure:
            if not interceptor.has_hook(HookName.RESPONSE):
                continue
            outcome = await _invoke(interceptor, HookName.RESPONSE, (Response,), outcome.value, request)
            if not outcome.is_failure:
                continue

        if interceptor.has_hook(HookName.RESPONSE_ERROR):
            outcome = await _invoke(interceptor, HookName.RESPONSE_ERROR, (Response,), outcome.error, request, client)

    return outcome.unwrap()


async def execute(
    interceptors: Sequence[Interceptor],
    transport: Transport,
    request: Request,
    client: HttpClient | None = None,
    order: ResponseOrder = ResponseOrder.REVERSE,
) -> Response:
    """
    Run one attempt of a logical call through the whole chain.

    Request phase, then the transport send unless short-circuited, then the
    response phase. Request-phase failures are raised without entering the
    response phase.
    """
    sent_request, result = await _request_phase(interceptors, request)

    if isinstance(result, Response):
        outcome: Outcome[Response] = Outcome.success(result)
    else:
        sent_request = result
        try:
            outcome = Outcome.success(await send(transport, result))
        except TransportError as e:
            outcome = Outcome.failure(e)

    return await run_response_phase(interceptors, outcome, sent_request, client, order)
