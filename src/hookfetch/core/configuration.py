"""
Fluent configuration for HttpClient.

Collects base URL, request defaults, interceptors, the optional retry
interceptor, response-phase ordering, and the transport, then hands them to
HttpClient.configure().
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Optional, Union

from hookfetch.core.chain import ResponseOrder, Transport
from hookfetch.core.interceptors import Interceptor
from hookfetch.core.retry.interceptor import RetryInterceptor, Sleep
from hookfetch.core.retry.policy import RetryConfiguration
from hookfetch.exceptions import ConfigurationError, HttpStatusError
from hookfetch.http.messages import Request, RequestInit, Response

if TYPE_CHECKING:
    from hookfetch.config.loader import Config


def _reject_error_response(response: Response, request: Request) -> Response:
    if not response.ok:
        raise HttpStatusError(response)
    return response


class HttpClientConfiguration:
    """
    Builder for HttpClient settings.

    Examples:
        >>> config = (
        ...     HttpClientConfiguration()
        ...     .with_base_url("https://api.example.com/")
        ...     .with_defaults({"headers": {"Accept": "application/json"}})
        ...     .with_interceptor(auth_interceptor)
        ...     .with_retry(RetryConfiguration(max_retries=3, interval=500))
        ... )
        >>> client = HttpClient(transport).configure(config)
    """

    def __init__(self) -> None:
        self.base_url: str = ""
        self.defaults: RequestInit = RequestInit()
        self.interceptors: list[Interceptor] = []
        self.retry_interceptor: Optional[RetryInterceptor] = None
        self.response_order: ResponseOrder = ResponseOrder.REVERSE
        self.transport: Optional[Transport] = None

    def with_base_url(self, base_url: str) -> "HttpClientConfiguration":
        """Prefix applied to relative request URLs."""
        self.base_url = base_url
        return self

    def with_defaults(self, defaults: Union[RequestInit, Mapping[str, Any]]) -> "HttpClientConfiguration":
        """Replace the request defaults."""
        self.defaults = RequestInit.coerce(defaults)
        return self

    def with_interceptor(self, interceptor: Interceptor) -> "HttpClientConfiguration":
        """
        Register an interceptor.

        Raises:
            ConfigurationError: Not an Interceptor, or a second RetryInterceptor
        """
        if not isinstance(interceptor, Interceptor):
            raise ConfigurationError(f"Expected an Interceptor, got {type(interceptor).__name__}")
        if isinstance(interceptor, RetryInterceptor):
            if self.retry_interceptor is not None:
                raise ConfigurationError("Only one RetryInterceptor is allowed")
            self.retry_interceptor = interceptor
        else:
            self.interceptors.append(interceptor)
        return self

    def with_retry(
        self,
        config: Union[RetryConfiguration, Mapping[str, Any]],
        *,
        sleep: Optional[Sleep] = None,
    ) -> "HttpClientConfiguration":
        """Add a RetryInterceptor built from config."""
        if not isinstance(config, RetryConfiguration):
            config = RetryConfiguration.from_dict(dict(config))
        interceptor = RetryInterceptor(config) if sleep is None else RetryInterceptor(config, sleep=sleep)
        return self.with_interceptor(interceptor)

    def with_response_order(self, order: Union[ResponseOrder, str]) -> "HttpClientConfiguration":
        try:
            self.response_order = ResponseOrder(order)
        except ValueError:
            raise ConfigurationError(
                f"Invalid response order: {order!r} (expected one of: {', '.join(o.value for o in ResponseOrder)})"
            ) from None
        return self

    def with_transport(self, transport: Transport) -> "HttpClientConfiguration":
        if not callable(transport):
            raise ConfigurationError("Transport must be callable: transport(request) -> Response")
        self.transport = transport
        return self

    def reject_error_responses(self) -> "HttpClientConfiguration":
        """Turn responses outside 2xx into HttpStatusError failures."""
        return self.with_interceptor(Interceptor(name="reject_error_responses", response=_reject_error_response))

    def use_standard_configuration(self) -> "HttpClientConfiguration":
        """Same-origin credentials by default and rejection of error responses."""
        self.defaults = self.defaults.merged_over(RequestInit(credentials="same-origin"))
        return self.reject_error_responses()

    def build_interceptors(self) -> list[Interceptor]:
        """
        Interceptors in registration order, retry interceptor outermost.

        Outermost means first for reverse response order and last for
        registration order, so its response hooks see every failure last.
        The retry snapshot is taken by HttpClient.fetch() before the request
        phase, wherever the interceptor sits.
        """
        interceptors = list(self.interceptors)
        if self.retry_interceptor is None:
            return interceptors
        if self.response_order == ResponseOrder.REVERSE:
            return [self.retry_interceptor, *interceptors]
        return [*interceptors, self.retry_interceptor]

    @classmethod
    def from_config(cls, config: "Config") -> "HttpClientConfiguration":
        """
        Build from a loaded configuration file.

        Reads the "client", "retry" and "transport" sections.
        """
        built = cls()

        client_cfg = config.get("client", {}) or {}
        if not isinstance(client_cfg, dict):
            raise ConfigurationError("Configuration 'client' must be a mapping")
        if client_cfg.get("base_url"):
            built.with_base_url(str(client_cfg["base_url"]))
        if client_cfg.get("defaults"):
            built.with_defaults(client_cfg["defaults"])
        if client_cfg.get("response_order"):
            built.with_response_order(client_cfg["response_order"])
        if client_cfg.get("standard_configuration"):
            built.use_standard_configuration()
        elif client_cfg.get("reject_error_responses"):
            built.reject_error_responses()

        retry_cfg = config.get("retry")
        if retry_cfg:
            if not isinstance(retry_cfg, dict):
                raise ConfigurationError("Configuration 'retry' must be a mapping")
            built.with_retry(RetryConfiguration.from_dict(retry_cfg))

        transport_cfg = config.get("transport")
        if transport_cfg:
            if not isinstance(transport_cfg, dict):
                raise ConfigurationError("Configuration 'transport' must be a mapping")
            transport_type = transport_cfg.get("type", "aiohttp")
            if transport_type != "aiohttp":
                raise ConfigurationError(f"Unknown transport type: {transport_type!r}")
            from hookfetch.transports.aiohttp_transport import AiohttpTransport

            built.with_transport(AiohttpTransport(timeout=float(transport_cfg.get("timeout", 30.0))))

        return built
