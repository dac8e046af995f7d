"""
Retry Logic with Exponential Backoff
=====================================
Backoff policy, shared attempt loop and the function retry adapter.
"""

from .backoff import BackoffPolicy, BackoffWait
from .loop import async_attempts, sync_attempts
from .adapter import retry_call, with_retry

__all__ = [
    # Backoff
    "BackoffPolicy",
    "BackoffWait",
    # Attempt loop
    "async_attempts",
    "sync_attempts",
    # Adapter
    "retry_call",
    "with_retry",
]
