"""
hookfetch exception hierarchy.

All library exceptions inherit from HookfetchError so callers can catch any
client failure with a single base class while still handling specific
failures where it matters.

Hierarchy::

    HookfetchError
    ├── ConfigurationError      - client/retry configuration, config files
    ├── TransportError          - the send primitive rejected (network, timeout)
    ├── InterceptorError        - an interceptor hook returned an unusable value
    ├── HttpStatusError         - non-2xx response rejected by an interceptor
    └── RequestCancelledError   - abort signal fired during send or retry delay

Retry exhaustion has no exception of its own: the last failure (or the last
response) of the call is surfaced unchanged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hookfetch.http.messages import Request, Response


class HookfetchError(Exception):
    """Base exception for all hookfetch errors."""

    def __init__(self, message: str, *, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


# --- Configuration -----------------------------------------------------------


class ConfigurationError(HookfetchError):
    """Raised when client, retry, or file configuration is invalid."""


# --- Transport ---------------------------------------------------------------


class TransportError(HookfetchError):
    """Raised when the transport fails to produce a response.

    Carries the request that was being sent so error hooks and callers have
    context for the failure.
    """

    def __init__(self, message: str, *, request: Request | None = None, cause: BaseException | None = None) -> None:
        details = {"url": request.url, "method": request.method} if request is not None else {}
        super().__init__(message, details=details)
        self.request = request
        if cause is not None:
            self.__cause__ = cause


# --- Interceptors ------------------------------------------------------------


class InterceptorError(HookfetchError):
    """Raised when an interceptor hook returns a value of the wrong kind."""

    def __init__(self, interceptor_name: str, hook: str, message: str) -> None:
        full = f"Interceptor '{interceptor_name}' {hook} hook: {message}"
        super().__init__(full, details={"interceptor": interceptor_name, "hook": hook})
        self.interceptor_name = interceptor_name
        self.hook = hook


class HttpStatusError(HookfetchError):
    """Raised for responses outside the 2xx range when error responses are rejected."""

    def __init__(self, response: Response) -> None:
        super().__init__(
            f"HTTP {response.status} {response.status_text}".rstrip(),
            details={"status": response.status, "url": response.url},
        )
        self.response = response
        self.status = response.status


# --- Cancellation ------------------------------------------------------------


class RequestCancelledError(HookfetchError):
    """Raised when the request's abort signal fires during a send or retry delay."""

    def __init__(self, message: str = "Request was cancelled", *, request: Request | None = None) -> None:
        details = {"url": request.url} if request is not None else {}
        super().__init__(message, details=details)
        self.request = request
