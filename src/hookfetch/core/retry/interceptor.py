"""
Retry interceptor.

Plugs the retry policy into the interceptor chain. HttpClient.fetch() opens a
logical call through logical_call(), which snapshots the request before any
request hook runs; the response and response_error hooks decide eligibility
and, when a retry is due, wait out the backoff and resend a fresh copy of the
snapshot through the client.

Resends go through client.fetch, so the whole chain (request phase included)
runs again for every attempt. While the retry loop is resending, the nested
call's retry hooks only record the outcome, and the loop evaluates it. This
keeps the call depth constant however many retries are configured.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Optional

from hookfetch.core.interceptors import Interceptor, Outcome
from hookfetch.core.retry.policy import RetryConfiguration, RetryResult, compute_delay, is_retry_eligible
from hookfetch.core.retry.state import RetryState
from hookfetch.exceptions import ConfigurationError, InterceptorError, RequestCancelledError
from hookfetch.http.abort import AbortSignal, abortable_sleep
from hookfetch.http.messages import Request, Response
from hookfetch.utils.async_utils import maybe_await
from hookfetch.utils.logging import get_logger

if TYPE_CHECKING:
    from hookfetch.client import HttpClient

logger = get_logger("hookfetch.retry.interceptor")

Sleep = Callable[[float, Optional[AbortSignal], Optional[Request]], Awaitable[None]]


class _RetryableResponse(Exception):
    """Hands an eligible response from the response hook to response_error."""

    def __init__(self, response: Response) -> None:
        super().__init__(f"retryable response: HTTP {response.status}")
        self.response = response


class _PolicyFailure(Exception):
    """A do_retry failure raised in the response hook; re-raised unwrapped by response_error."""

    def __init__(self, error: Exception) -> None:
        super().__init__(str(error))
        self.error = error


def _describe(result: RetryResult) -> str:
    if isinstance(result, BaseException):
        return f"{type(result).__name__}: {result}"
    return f"HTTP {result.status}"


class RetryInterceptor(Interceptor):
    """
    Interceptor that re-attempts failed or unsatisfactory exchanges.

    Examples:
        >>> config = RetryConfiguration(max_retries=3, interval=250, strategy="exponential")
        >>> client = HttpClient(transport).configure(
        ...     lambda c: c.with_retry(config).with_interceptor(auth)
        ... )
    """

    name = "retry"

    def __init__(self, config: RetryConfiguration, *, sleep: Sleep = abortable_sleep) -> None:
        """
        Initialize RetryInterceptor.

        Args:
            config: Retry policy shared by every call through this interceptor
            sleep: Abortable wait used for backoff delays (milliseconds)
        """
        super().__init__()
        if not isinstance(config, RetryConfiguration):
            raise ConfigurationError("RetryInterceptor requires a RetryConfiguration")
        self.config = config
        self._sleep = sleep

    @contextmanager
    def logical_call(self, request: Request) -> Iterator[RetryState]:
        """
        Scope one fetch() to a logical call.

        A fetch started by the retry loop joins the call being retried; any
        other fetch starts a new call with counter 0 and a snapshot of the
        request as built by the client, before the request phase.
        """
        state = RetryState.current()
        if state is not None and state.claim_resubmission():
            yield state
            return

        state = RetryState(request_clone=request.clone())
        token = state.activate()
        try:
            yield state
        finally:
            RetryState.deactivate(token)

    def request(self, request: Request) -> Request:
        state = RetryState.current()
        if state is None or RetryState.of(request) is state:
            return request
        return state.attach(request)

    async def response(self, response: Response, request: Request) -> Response:
        state = RetryState.current()
        if state is None:
            return response
        if state.resubmitting:
            state.observe(Outcome.success(response), request)
            return response

        state.record_attempt()
        try:
            eligible = await is_retry_eligible(response, request, self.config, state.counter)
        except Exception as e:
            raise _PolicyFailure(e) from e
        if eligible:
            raise _RetryableResponse(response)
        return response

    async def response_error(self, error: BaseException, request: Request, client: HttpClient | None) -> Response:
        if isinstance(error, _PolicyFailure):
            raise error.error

        state = RetryState.current()
        if state is None:
            raise error

        if isinstance(error, _RetryableResponse):
            result: RetryResult = error.response
        else:
            if state.resubmitting:
                state.observe(Outcome.failure(error), request)
                raise error
            state.record_attempt()
            if not await is_retry_eligible(error, request, self.config, state.counter):
                self._log_terminal(error, request, state)
                raise error
            result = error

        return await self._retry_loop(result, request, client, state)

    async def _retry_loop(
        self,
        result: RetryResult,
        request: Request,
        client: HttpClient | None,
        state: RetryState,
    ) -> Response:
        """Resend until an attempt is not eligible for retry, then surface it."""
        if client is None:
            raise ConfigurationError("RetryInterceptor needs the client to resend requests")

        while True:
            delay = compute_delay(state.counter + 1, self.config)
            state.record_retry(delay)
            logger.warning(
                f"{request.method} {request.url} attempt {state.attempts} failed ({_describe(result)}). "
                f"Retry {state.counter}/{self.config.max_retries} in {delay:.0f}ms"
            )
            await self._sleep(delay, request.signal, request)

            next_request = await self._prepare(state, client)
            outcome, request = await self._resubmit(next_request, client, state)
            state.record_attempt()

            result = outcome.error if outcome.is_failure else outcome.value
            if not await is_retry_eligible(result, request, self.config, state.counter):
                break

        self._log_terminal(result, request, state)
        return outcome.unwrap()

    async def _prepare(self, state: RetryState, client: HttpClient) -> Request:
        """Fresh copy of the snapshot, passed through before_retry if set."""
        next_request = state.attach(state.request_clone.clone())
        if self.config.before_retry is None:
            return next_request

        prepared = await maybe_await(self.config.before_retry(next_request, client))
        if not isinstance(prepared, Request):
            raise InterceptorError(self.display_name, "before_retry", f"expected Request, got {type(prepared).__name__}")
        return prepared

    async def _resubmit(
        self,
        next_request: Request,
        client: HttpClient,
        state: RetryState,
    ) -> tuple[Outcome[Any], Request]:
        """Run one more attempt through the full chain and return what it produced."""
        state.observed = None
        state.resubmitting = True
        state.resubmit_pending = True
        try:
            response = await client.fetch(next_request)
        except RequestCancelledError:
            raise
        except Exception as e:
            observed = state.observed
            # Failures that never reached this interceptor (request phase) are fatal
            if observed is None or observed[0].error is not e:
                raise
            return observed
        finally:
            state.resubmitting = False
            state.resubmit_pending = False

        if state.observed is None:
            return Outcome.success(response), next_request
        return state.observed

    def _log_terminal(self, result: RetryResult, request: Request, state: RetryState) -> None:
        if state.counter >= self.config.max_retries and self.config.max_retries > 0:
            logger.debug(
                f"{request.method} {request.url} retries exhausted after {state.attempts} attempts "
                f"({_describe(result)})"
            )
