"""
Per-call retry bookkeeping.

One RetryState exists per logical call. The active state is held in a
context variable for the duration of HttpClient.fetch(), so it survives
interceptors that replace the request outright, and concurrent calls (each
in its own task) never see each other's counters. A copy is also stamped
into the extensions of each sent request for inspection; that copy is never
used to decide which call a request belongs to.
"""

from __future__ import annotations

from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from typing import Any, Optional

from hookfetch.core.interceptors import Outcome
from hookfetch.http.messages import Request

# Key under which the state is stored in Request.extensions
RETRY_STATE_KEY = "retry_state"

_current_state: ContextVar[Optional["RetryState"]] = ContextVar("hookfetch_retry_state", default=None)


@dataclass
class RetryState:
    """
    Retry progress of one logical call.

    Attributes:
        request_clone: Snapshot of the request taken before the request phase
            of the first attempt; every retry starts from a copy of it
        counter: Retries performed so far (never exceeds max_retries)
        attempts: Attempts whose outcome reached the retry interceptor
        delays: Backoff delays waited before each retry, in milliseconds
        resubmitting: True while the retry loop is resending the request;
            the interceptor's hooks then only record what they see
        resubmit_pending: Set by the retry loop just before it calls fetch();
            the next fetch() consumes it and joins this call instead of
            starting a new one
        observed: Outcome and request recorded during a resubmission
    """

    request_clone: Request
    counter: int = 0
    attempts: int = 0
    delays: list[float] = field(default_factory=list)
    resubmitting: bool = False
    resubmit_pending: bool = False
    observed: Optional[tuple[Outcome[Any], Request]] = field(default=None, repr=False)

    def record_attempt(self) -> None:
        self.attempts += 1

    def record_retry(self, delay: float) -> None:
        """Count a scheduled retry and the delay before it."""
        self.counter += 1
        self.delays.append(delay)

    def observe(self, outcome: Outcome[Any], request: Request) -> None:
        self.observed = (outcome, request)

    @classmethod
    def current(cls) -> "RetryState | None":
        """The state of the logical call running in this context, if any."""
        return _current_state.get()

    def activate(self) -> Token:
        """Make this the current state; pass the token to deactivate()."""
        return _current_state.set(self)

    @staticmethod
    def deactivate(token: Token) -> None:
        _current_state.reset(token)

    def claim_resubmission(self) -> bool:
        """Consume the pending resubmission marker, if set."""
        if not self.resubmit_pending:
            return False
        self.resubmit_pending = False
        return True

    @classmethod
    def of(cls, request: Request | None) -> "RetryState | None":
        """The state stamped on request, if any."""
        if request is None:
            return None
        return request.extensions.get(RETRY_STATE_KEY)

    def attach(self, request: Request) -> Request:
        """Return a copy of request carrying this state."""
        return request.with_extensions(**{RETRY_STATE_KEY: self})
