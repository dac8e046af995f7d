"""
Function Retry Adapter
======================
Applies the client's retry/backoff behavior to arbitrary operations.
"""

import inspect
from functools import wraps
from typing import Any, Awaitable, Callable, Optional, TypeVar

from ..config import RetryConfiguration
from .loop import async_attempts, sync_attempts

T = TypeVar("T")

_DEFAULT_CONFIG = RetryConfiguration(circuit_breaker=None)


async def retry_call(
    func: Callable[..., Awaitable[T]],
    *args,
    config: Optional[RetryConfiguration] = None,
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    **kwargs,
) -> T:
    """
    Await ``func(*args, **kwargs)`` until it succeeds or attempts run out.

    Any exception counts as retryable; the last one is re-raised.
    """
    config = config or _DEFAULT_CONFIG
    name = getattr(func, "__name__", "call")
    async for attempt in async_attempts(config, sleep=sleep, name=name):
        with attempt:
            result = await func(*args, **kwargs)
    return result


def with_retry(
    operation: Optional[Callable[..., Any]] = None,
    *,
    config: Optional[RetryConfiguration] = None,
    sleep: Optional[Callable[[float], Any]] = None,
    **overrides: Any,
):
    """
    Wrap an operation with retry and exponential backoff.

    Works with coroutine functions and plain callables. Keyword overrides
    are merged into ``config`` (or the defaults).

    Usage:
        fetch = with_retry(fetch_data, max_retries=5, base_delay=0.5)

        @with_retry(max_retries=2, jitter=False)
        async def sync_inventory():
            ...
    """
    effective = (config or _DEFAULT_CONFIG).merged(**overrides)

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        name = getattr(func, "__name__", "call")

        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                return await retry_call(func, *args, config=effective, sleep=sleep, **kwargs)
            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in sync_attempts(effective, sleep=sleep, name=name):
                with attempt:
                    result = func(*args, **kwargs)
            return result
        return wrapper

    if operation is not None:
        return decorator(operation)
    return decorator
