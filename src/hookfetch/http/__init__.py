"""
Request/response values and cancellation primitives.
"""

from hookfetch.http.abort import AbortController, AbortSignal, abortable_sleep, run_abortable
from hookfetch.http.messages import Request, RequestInit, Response, make_headers, merge_headers

__all__ = [
    "AbortController",
    "AbortSignal",
    "abortable_sleep",
    "run_abortable",
    "Request",
    "RequestInit",
    "Response",
    "make_headers",
    "merge_headers",
]
