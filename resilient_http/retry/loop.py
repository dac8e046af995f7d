"""
Attempt Loop
============
Shared tenacity-based attempt loop used by the HTTP invoker and the
function retry adapter.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
)

from ..config import RetryConfiguration
from .backoff import BackoffPolicy, BackoffWait

logger = structlog.get_logger(__name__)

RetryPredicate = Callable[[BaseException], bool]
RetryHook = Callable[[RetryCallState], None]


def _retry_all(exc: BaseException) -> bool:
    return isinstance(exc, Exception)


def _retry_kwargs(
    config: RetryConfiguration,
    should_retry: Optional[RetryPredicate],
    policy: Optional[BackoffPolicy],
    on_retry: Optional[RetryHook],
    name: str,
) -> dict:
    policy = policy or BackoffPolicy.from_config(config)

    def before_sleep(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            "retry_scheduled",
            operation=name,
            attempt=retry_state.attempt_number,
            max_attempts=config.max_attempts,
            delay=delay,
            error=str(exc),
        )
        if on_retry is not None:
            on_retry(retry_state)

    return dict(
        stop=stop_after_attempt(config.max_attempts),
        wait=BackoffWait(policy),
        retry=retry_if_exception(should_retry or _retry_all),
        before_sleep=before_sleep,
        reraise=True,
    )


def async_attempts(
    config: RetryConfiguration,
    should_retry: Optional[RetryPredicate] = None,
    *,
    policy: Optional[BackoffPolicy] = None,
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    on_retry: Optional[RetryHook] = None,
    name: str = "request",
) -> AsyncRetrying:
    """
    Build an async attempt loop.

    Usage:
        async for attempt in async_attempts(config, is_retryable):
            with attempt:
                result = await do_call()
        return result

    The last exception is re-raised unchanged once attempts are exhausted
    or when ``should_retry`` rejects it.
    """
    return AsyncRetrying(
        sleep=sleep or asyncio.sleep,
        **_retry_kwargs(config, should_retry, policy, on_retry, name),
    )


def sync_attempts(
    config: RetryConfiguration,
    should_retry: Optional[RetryPredicate] = None,
    *,
    policy: Optional[BackoffPolicy] = None,
    sleep: Optional[Callable[[float], None]] = None,
    on_retry: Optional[RetryHook] = None,
    name: str = "call",
) -> Retrying:
    """Blocking counterpart of ``async_attempts``."""
    return Retrying(
        sleep=sleep or time.sleep,
        **_retry_kwargs(config, should_retry, policy, on_retry, name),
    )
