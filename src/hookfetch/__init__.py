"""
hookfetch - an asyncio HTTP client built around an interceptor chain.

Interceptors observe, rewrite, short-circuit and recover requests and
responses around a pluggable transport; a retry interceptor re-attempts
failed exchanges with configurable backoff.
"""

__version__ = "0.1.0"

from hookfetch.client import HttpClient
from hookfetch.core.chain import ResponseOrder
from hookfetch.core.configuration import HttpClientConfiguration
from hookfetch.core.interceptors import Interceptor, Outcome
from hookfetch.core.retry import (
    CustomStrategy,
    RetryConfiguration,
    RetryInterceptor,
    RetryState,
    RetryStrategy,
    compute_delay,
)

# Exceptions
from hookfetch.exceptions import (
    ConfigurationError,
    HookfetchError,
    HttpStatusError,
    InterceptorError,
    RequestCancelledError,
    TransportError,
)
from hookfetch.http import AbortController, AbortSignal, Request, RequestInit, Response

# Logging utilities
from hookfetch.utils.logging import get_logger, setup_logging, setup_logging_from_config

__all__ = [
    # Client
    "HttpClient",
    "HttpClientConfiguration",
    "ResponseOrder",
    # Interceptors
    "Interceptor",
    "Outcome",
    # Retry
    "RetryConfiguration",
    "RetryStrategy",
    "CustomStrategy",
    "RetryInterceptor",
    "RetryState",
    "compute_delay",
    # Messages
    "Request",
    "RequestInit",
    "Response",
    "AbortController",
    "AbortSignal",
    # Exceptions
    "HookfetchError",
    "ConfigurationError",
    "TransportError",
    "InterceptorError",
    "HttpStatusError",
    "RequestCancelledError",
    # Logging
    "get_logger",
    "setup_logging",
    "setup_logging_from_config",
]
