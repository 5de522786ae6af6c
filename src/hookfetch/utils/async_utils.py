"""
Async utilities for hookfetch.
"""

from __future__ import annotations

import inspect
from typing import Awaitable, TypeVar, Union

T = TypeVar("T")


async def maybe_await(value: Union[T, Awaitable[T]]) -> T:
    """
    Resolve a hook result that may or may not be awaitable.

    Hooks can be plain functions or coroutines; the chain awaits either the
    same way.
    """
    if inspect.isawaitable(value):
        return await value
    return value
