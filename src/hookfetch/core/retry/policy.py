"""
Retry policy: eligibility and backoff delay calculation.

Pure functions over a RetryConfiguration. The configuration is shared by all
calls made through a client, so it holds no per-call counters; those live in
RetryState.
"""

from __future__ import annotations

import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Optional, Union

from hookfetch.exceptions import ConfigurationError, RequestCancelledError
from hookfetch.http.messages import Request, Response
from hookfetch.utils.async_utils import maybe_await

if TYPE_CHECKING:
    from hookfetch.client import HttpClient

# Exponential backoff is clamped so huge attempt counts stay finite
MAX_BACKOFF_EXPONENT = 32
MAX_DELAY_MS = 2**31 - 1

RetryResult = Union[Response, BaseException]
DoRetry = Callable[[RetryResult, Request], Union[bool, Awaitable[bool]]]
BeforeRetry = Callable[[Request, "HttpClient"], Union[Request, Awaitable[Request]]]


class RetryStrategy(StrEnum):
    """Built-in backoff curves."""

    FIXED = "fixed"  # interval
    LINEAR = "linear"  # interval * attempt
    EXPONENTIAL = "exponential"  # interval * 2^attempt
    RANDOM = "random"  # uniform(min_random_interval, max_random_interval)


# Numeric identifiers accepted for compatibility with fetch-client configs
_NUMERIC_STRATEGIES = {
    0: RetryStrategy.FIXED,
    1: RetryStrategy.LINEAR,
    2: RetryStrategy.EXPONENTIAL,
    3: RetryStrategy.RANDOM,
}


@dataclass(frozen=True)
class CustomStrategy:
    """Backoff computed by a user function from the attempt number."""

    func: Callable[[int], float]

    def __call__(self, attempt: int) -> float:
        return self.func(attempt)


Strategy = Union[RetryStrategy, CustomStrategy]


def coerce_strategy(value: Any) -> Strategy:
    """
    Normalize a strategy given as enum, name, legacy number, or callable.

    Raises:
        ConfigurationError: The value names no known strategy
    """
    if isinstance(value, (RetryStrategy, CustomStrategy)):
        return value
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid retry strategy: {value!r}")
    if isinstance(value, int):
        if value not in _NUMERIC_STRATEGIES:
            raise ConfigurationError(f"Invalid retry strategy: {value!r}")
        return _NUMERIC_STRATEGIES[value]
    if isinstance(value, str):
        try:
            return RetryStrategy(value.lower())
        except ValueError:
            raise ConfigurationError(
                f"Invalid retry strategy: {value!r} (expected one of: {', '.join(s.value for s in RetryStrategy)})"
            ) from None
    if callable(value):
        return CustomStrategy(value)
    raise ConfigurationError(f"Invalid retry strategy: {value!r}")


@dataclass
class RetryConfiguration:
    """
    Retry behavior for a client.

    Examples:
        >>> # Three retries, one second apart
        >>> config = RetryConfiguration(max_retries=3, interval=1000)

        >>> # Exponential backoff: 200ms, 400ms, 800ms
        >>> config = RetryConfiguration(max_retries=3, interval=100, strategy="exponential")

        >>> # Jittered, with a seeded source for reproducible delays
        >>> config = RetryConfiguration(
        ...     max_retries=5,
        ...     strategy=RetryStrategy.RANDOM,
        ...     min_random_interval=50,
        ...     max_random_interval=150,
        ...     random_source=random.Random(42),
        ... )

        >>> # Refresh a token before each retry
        >>> async def refresh(request, client):
        ...     return request.with_header("Authorization", f"Bearer {await get_token()}")
        >>> config = RetryConfiguration(max_retries=1, before_retry=refresh)
    """

    # Retries allowed after the first attempt (total sends = max_retries + 1)
    max_retries: int

    # Base delay in milliseconds
    interval: float = 0

    # Backoff curve; also accepts a name, legacy number, or callable
    strategy: Strategy = RetryStrategy.FIXED

    # Jitter bounds in milliseconds, used by RetryStrategy.RANDOM
    min_random_interval: Optional[float] = None
    max_random_interval: Optional[float] = None

    # Overrides default eligibility; receives the response or the exception
    do_retry: Optional[DoRetry] = None

    # Produces the request to resend from a fresh copy of the original
    before_retry: Optional[BeforeRetry] = None

    # Random source for the jittered strategy (default: module random)
    random_source: Optional[random.Random] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        """Validate configuration."""
        if isinstance(self.max_retries, bool) or not isinstance(self.max_retries, int):
            raise ConfigurationError("max_retries must be an integer")
        if self.max_retries < 0:
            raise ConfigurationError("max_retries must be >= 0")
        if self.interval < 0:
            raise ConfigurationError("interval must be >= 0")
        self.strategy = coerce_strategy(self.strategy)
        for name in ("min_random_interval", "max_random_interval"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ConfigurationError(f"{name} must be >= 0")
        if (
            self.min_random_interval is not None
            and self.max_random_interval is not None
            and self.min_random_interval > self.max_random_interval
        ):
            raise ConfigurationError("min_random_interval must be <= max_random_interval")

    @property
    def has_random_bounds(self) -> bool:
        return self.min_random_interval is not None and self.max_random_interval is not None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RetryConfiguration":
        """
        Build from a plain mapping such as a config file section.

        Only data fields are read; callables must be attached in code.
        """
        if "max_retries" not in data:
            raise ConfigurationError("retry.max_retries is required")
        allowed = {"max_retries", "interval", "strategy", "min_random_interval", "max_random_interval"}
        unknown = set(data) - allowed
        if unknown:
            raise ConfigurationError(f"Unknown retry option(s): {', '.join(sorted(unknown))}")
        return cls(**data)


def compute_delay(attempt: int, config: RetryConfiguration) -> float:
    """
    Delay in milliseconds before retry number attempt.

    Args:
        attempt: Retry number, 1 for the first retry
        config: Retry configuration

    Returns:
        Non-negative delay in milliseconds
    """
    strategy = config.strategy
    interval = config.interval

    if isinstance(strategy, CustomStrategy):
        delay = strategy(attempt)
    elif strategy == RetryStrategy.LINEAR:
        delay = interval * attempt
    elif strategy == RetryStrategy.EXPONENTIAL:
        delay = min(interval * (2 ** min(attempt, MAX_BACKOFF_EXPONENT)), MAX_DELAY_MS)
    elif strategy == RetryStrategy.RANDOM and config.has_random_bounds:
        source = config.random_source or random
        delay = source.uniform(config.min_random_interval, config.max_random_interval)
    else:
        # FIXED, and RANDOM without bounds
        delay = interval

    return max(delay, 0)


def default_do_retry(result: RetryResult, request: Request) -> bool:
    """Retry transport failures and responses outside the 2xx range."""
    if isinstance(result, BaseException):
        return True
    return not result.ok


async def is_retry_eligible(
    result: RetryResult,
    request: Request,
    config: RetryConfiguration,
    counter: int,
) -> bool:
    """
    Decide whether a failed or unsatisfactory attempt should be retried.

    Args:
        result: The attempt's response, or the exception it failed with
        request: The request that produced result
        config: Retry configuration
        counter: Retries already performed in this logical call

    Returns:
        True if counter < max_retries and do_retry (or the default) approves
    """
    if isinstance(result, RequestCancelledError):
        return False
    if counter >= config.max_retries:
        return False
    if config.do_retry is None:
        return default_do_retry(result, request)
    return bool(await maybe_await(config.do_retry(result, request)))
