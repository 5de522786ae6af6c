"""
HTTP client running requests through the interceptor chain.

The client owns the interceptor list, request defaults and base URL, and
delegates every send to an injected transport.
"""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Callable, Mapping
from contextlib import nullcontext
from typing import Any, Optional, Union

from hookfetch.core.chain import ResponseOrder, Transport, execute
from hookfetch.core.configuration import HttpClientConfiguration
from hookfetch.core.interceptors import Interceptor
from hookfetch.core.retry.interceptor import RetryInterceptor
from hookfetch.exceptions import ConfigurationError
from hookfetch.http.messages import TRANSPORT_OPTIONS, Request, RequestInit, Response, merge_headers
from hookfetch.utils.logging import get_logger

logger = get_logger("hookfetch.client")

_ABSOLUTE_URL = re.compile(r"^([a-z][a-z0-9+\-.]*:)?//", re.IGNORECASE)

ConfigureArg = Union[
    HttpClientConfiguration,
    Callable[[HttpClientConfiguration], Optional[HttpClientConfiguration]],
    RequestInit,
    Mapping[str, Any],
]


def is_absolute_url(url: str) -> bool:
    return bool(_ABSOLUTE_URL.match(url))


def join_url(base_url: str, url: str) -> str:
    """Apply base_url to a relative url; absolute urls are returned as given."""
    if not base_url or is_absolute_url(url):
        return url
    if not url:
        return base_url
    if url.startswith(("?", "#")):
        return base_url + url
    return base_url.rstrip("/") + "/" + url.lstrip("/")


class HttpClient:
    """
    Client that sends requests through registered interceptors.

    Example:
        ```python
        from hookfetch import HttpClient, Interceptor, RetryConfiguration
        from hookfetch.transports import AiohttpTransport

        client = HttpClient(AiohttpTransport(timeout=30)).configure(
            lambda c: c.with_base_url("https://api.example.com")
            .with_interceptor(Interceptor(request=add_auth_header))
            .with_retry(RetryConfiguration(max_retries=3, interval=200, strategy="exponential"))
        )

        async with client:
            response = await client.get("/users")
        ```
    """

    def __init__(self, transport: Optional[Transport] = None) -> None:
        """
        Initialize HttpClient.

        Args:
            transport: Async callable sending a Request and returning a Response
        """
        self.transport = transport
        self.base_url = ""
        self.defaults = RequestInit()
        self.interceptors: list[Interceptor] = []
        self.retry_interceptor: Optional[RetryInterceptor] = None
        self.response_order = ResponseOrder.REVERSE
        self.is_configured = False
        self.active_request_count = 0

    @property
    def is_requesting(self) -> bool:
        return self.active_request_count > 0

    def _current_configuration(self) -> HttpClientConfiguration:
        """Configuration seeded with this client's current settings."""
        config = HttpClientConfiguration()
        config.base_url = self.base_url
        config.defaults = self.defaults
        config.response_order = self.response_order
        config.transport = self.transport
        for interceptor in self.interceptors:
            config.with_interceptor(interceptor)
        return config

    def configure(self, config: ConfigureArg) -> "HttpClient":
        """
        Apply configuration.

        Args:
            config: An HttpClientConfiguration; a callable that receives one
                seeded with the current settings (it may return it or None);
                or a RequestInit/mapping used as request defaults

        Returns:
            This client, for chaining

        Raises:
            ConfigurationError: The argument or the resulting settings are invalid
        """
        if isinstance(config, HttpClientConfiguration):
            normalized = config
        elif isinstance(config, (RequestInit, Mapping)):
            normalized = self._current_configuration().with_defaults(config)
        elif callable(config):
            seeded = self._current_configuration()
            result = config(seeded)
            if result is not None and not isinstance(result, HttpClientConfiguration):
                raise ConfigurationError("Configuration callback must return an HttpClientConfiguration or None")
            normalized = result or seeded
        else:
            raise ConfigurationError(f"Invalid client configuration: {type(config).__name__}")

        self.base_url = normalized.base_url
        self.defaults = normalized.defaults
        self.interceptors = normalized.build_interceptors()
        self.retry_interceptor = normalized.retry_interceptor
        self.response_order = normalized.response_order
        if normalized.transport is not None:
            self.transport = normalized.transport
        self.is_configured = True

        logger.debug(
            f"Client configured: base_url={self.base_url!r}, "
            f"interceptors={[i.display_name for i in self.interceptors]}, order={self.response_order}"
        )
        return self

    def build_request(self, input: Union[str, Request], init: Union[RequestInit, Mapping[str, Any], None] = None) -> Request:
        """
        Build the request for a call.

        Applies init over the input, the base URL to relative URLs, and the
        client defaults to anything still unset. Default headers never replace
        headers the request already has.
        """
        init = RequestInit.coerce(init)

        if isinstance(input, Request):
            request = input
            overrides = init.as_kwargs()
            if "headers" in overrides:
                overrides["headers"] = merge_headers(request.headers, init.headers)
            if overrides:
                request = request.replace(**overrides)
        elif isinstance(input, str):
            kwargs = init.as_kwargs()
            kwargs.setdefault("method", self.defaults.method or "GET")
            request = Request(input, **kwargs)
        else:
            raise TypeError(f"fetch() input must be a URL string or Request, got {type(input).__name__}")

        changes: dict[str, Any] = {}
        url = join_url(self.base_url, request.url)
        if url != request.url:
            changes["url"] = url
        for name in (*TRANSPORT_OPTIONS, "signal", "body"):
            default = getattr(self.defaults, name)
            if default is not None and getattr(request, name) is None:
                changes[name] = default
        if self.defaults.headers:
            changes["headers"] = merge_headers(self.defaults.headers, request.headers)

        return request.replace(**changes) if changes else request

    async def fetch(self, input: Union[str, Request], init: Union[RequestInit, Mapping[str, Any], None] = None) -> Response:
        """
        Run one logical call through the interceptor chain.

        Args:
            input: URL (relative to base_url or absolute) or a Request
            init: Per-call request options layered over input

        Returns:
            The final Response after all interceptors

        Raises:
            ConfigurationError: No transport is configured
            Exception: The terminal failure of the call
        """
        if self.transport is None:
            raise ConfigurationError("HttpClient has no transport configured")

        request = self.build_request(input, init)
        scope = nullcontext() if self.retry_interceptor is None else self.retry_interceptor.logical_call(request)
        self._request_started(request)
        try:
            with scope:
                return await execute(self.interceptors, self.transport, request, self, self.response_order)
        finally:
            self._request_finished(request)

    async def get(self, input: Union[str, Request], init: Union[RequestInit, Mapping[str, Any], None] = None) -> Response:
        return await self._call_with_method("GET", input, None, init)

    async def post(self, input: Union[str, Request], body: Any = None, init: Union[RequestInit, Mapping[str, Any], None] = None) -> Response:
        return await self._call_with_method("POST", input, body, init)

    async def put(self, input: Union[str, Request], body: Any = None, init: Union[RequestInit, Mapping[str, Any], None] = None) -> Response:
        return await self._call_with_method("PUT", input, body, init)

    async def patch(self, input: Union[str, Request], body: Any = None, init: Union[RequestInit, Mapping[str, Any], None] = None) -> Response:
        return await self._call_with_method("PATCH", input, body, init)

    async def delete(self, input: Union[str, Request], body: Any = None, init: Union[RequestInit, Mapping[str, Any], None] = None) -> Response:
        return await self._call_with_method("DELETE", input, body, init)

    async def _call_with_method(self, method: str, input: Union[str, Request], body: Any, init: Union[RequestInit, Mapping[str, Any], None]) -> Response:
        init = RequestInit.coerce(init)
        init = dataclasses.replace(init, method=method, body=body if body is not None else init.body)
        return await self.fetch(input, init)

    def _request_started(self, request: Request) -> None:
        self.active_request_count += 1
        if self.active_request_count == 1:
            logger.debug("Client started requesting")
        logger.debug(f"{request.method} {request.url} started ({self.active_request_count} active)")

    def _request_finished(self, request: Request) -> None:
        self.active_request_count -= 1
        if self.active_request_count == 0:
            logger.debug("Client requests drained")

    async def aclose(self) -> None:
        """Close the transport if it holds resources."""
        close = getattr(self.transport, "aclose", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        await self.aclose()
