"""
Interceptor chain, retry engine, and client configuration.
"""

from hookfetch.core.chain import ResponseOrder, Transport, execute, run_request_phase, run_response_phase, send
from hookfetch.core.configuration import HttpClientConfiguration
from hookfetch.core.interceptors import HookName, Interceptor, Outcome

__all__ = [
    "HookName",
    "Interceptor",
    "Outcome",
    "ResponseOrder",
    "Transport",
    "execute",
    "run_request_phase",
    "run_response_phase",
    "send",
    "HttpClientConfiguration",
]
