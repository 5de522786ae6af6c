"""
Retry support: policy engine, per-call state, and the retry interceptor.
"""

from hookfetch.core.retry.interceptor import RetryInterceptor
from hookfetch.core.retry.policy import (
    MAX_BACKOFF_EXPONENT,
    MAX_DELAY_MS,
    CustomStrategy,
    RetryConfiguration,
    RetryStrategy,
    compute_delay,
    default_do_retry,
    is_retry_eligible,
)
from hookfetch.core.retry.state import RETRY_STATE_KEY, RetryState

__all__ = [
    # Policy
    "RetryConfiguration",
    "RetryStrategy",
    "CustomStrategy",
    "compute_delay",
    "default_do_retry",
    "is_retry_eligible",
    "MAX_BACKOFF_EXPONENT",
    "MAX_DELAY_MS",
    # State
    "RetryState",
    "RETRY_STATE_KEY",
    # Interceptor
    "RetryInterceptor",
]
