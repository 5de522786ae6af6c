"""
Interceptor definition and the typed outcome threaded through the chain.

An interceptor has up to four optional hook slots. Hooks are supplied either
as constructor arguments or as methods on a subclass, and may be plain
functions or coroutines.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Generic, TypeVar, Union

from hookfetch.http.messages import Request, Response

if TYPE_CHECKING:
    from hookfetch.client import HttpClient

T = TypeVar("T")

RequestHook = Callable[[Request], Union[Request, Response, Awaitable[Union[Request, Response]]]]
RequestErrorHook = Callable[[BaseException], Union[Request, Response, Awaitable[Union[Request, Response]]]]
ResponseHook = Callable[[Response, Request], Union[Response, Awaitable[Response]]]
ResponseErrorHook = Callable[[BaseException, Request, "HttpClient"], Union[Response, Awaitable[Response]]]


class HookName(StrEnum):
    """Names of the four interceptor hook slots."""

    REQUEST = "request"
    REQUEST_ERROR = "request_error"
    RESPONSE = "response"
    RESPONSE_ERROR = "response_error"


class Interceptor:
    """
    A named bundle of optional request/response hooks.

    Examples:
        >>> # Hooks as callables
        >>> auth = Interceptor(
        ...     name="auth",
        ...     request=lambda req: req.with_header("Authorization", "Bearer abc"),
        ... )

        >>> # Hooks as methods
        >>> class Timing(Interceptor):
        ...     name = "timing"
        ...
        ...     async def response(self, response, request):
        ...         return response
    """

    name: str | None = None
    request: RequestHook | None = None
    request_error: RequestErrorHook | None = None
    response: ResponseHook | None = None
    response_error: ResponseErrorHook | None = None

    def __init__(
        self,
        *,
        name: str | None = None,
        request: RequestHook | None = None,
        request_error: RequestErrorHook | None = None,
        response: ResponseHook | None = None,
        response_error: ResponseErrorHook | None = None,
    ) -> None:
        if name is not None:
            self.name = name
        # Only set slots that were given so subclass methods are not shadowed
        if request is not None:
            self.request = request
        if request_error is not None:
            self.request_error = request_error
        if response is not None:
            self.response = response
        if response_error is not None:
            self.response_error = response_error

    @property
    def display_name(self) -> str:
        return self.name or type(self).__name__

    def has_hook(self, hook: HookName) -> bool:
        return callable(getattr(self, hook.value, None))

    def get_hook(self, hook: HookName) -> Callable[..., Any]:
        return getattr(self, hook.value)

    def __repr__(self) -> str:
        hooks = ", ".join(h.value for h in HookName if self.has_hook(h))
        return f"<{type(self).__name__} {self.display_name!r} hooks=[{hooks}]>"


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """
    Success-or-failure result of one chain step.

    Exactly one of value/error is meaningful, selected by is_failure.
    """

    value: T | None = None
    error: BaseException | None = None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: BaseException) -> "Outcome[T]":
        return cls(error=error)

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    def unwrap(self) -> T:
        """Return the value, or raise the error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
