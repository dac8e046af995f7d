"""
Retry Backoff
=============
Exponential backoff delay computation.
"""

import random
from typing import Callable, Optional

from tenacity import RetryCallState
from tenacity.wait import wait_base

from ..config import RetryConfiguration


class BackoffPolicy:
    """
    Computes the delay before retry number ``attempt_index``.

    ``delay(1)`` is the wait after the first failed attempt and equals
    ``base_delay``; each later delay grows by ``multiplier`` up to
    ``max_delay``. With jitter the delay is drawn from [0, computed].
    """

    def __init__(
        self,
        base_delay: float = 1.0,
        multiplier: float = 2.0,
        max_delay: float = 30.0,
        jitter: bool = True,
        rng: Optional[Callable[[float, float], float]] = None,
    ):
        self.base_delay = base_delay
        self.multiplier = multiplier
        self.max_delay = max_delay
        self.jitter = jitter
        self._uniform = rng or random.uniform

    @classmethod
    def from_config(cls, config: RetryConfiguration, **kwargs) -> "BackoffPolicy":
        return cls(
            base_delay=config.base_delay,
            multiplier=config.backoff_multiplier,
            max_delay=config.max_delay,
            jitter=config.jitter,
            **kwargs,
        )

    def raw_delay(self, attempt_index: int) -> float:
        if attempt_index < 1:
            raise ValueError("attempt_index must be >= 1")
        return min(self.base_delay * self.multiplier ** (attempt_index - 1), self.max_delay)

    def delay(self, attempt_index: int) -> float:
        raw = self.raw_delay(attempt_index)
        if self.jitter:
            return self._uniform(0, raw)
        return raw


class BackoffWait(wait_base):
    """Tenacity wait strategy driven by a BackoffPolicy."""

    def __init__(self, policy: BackoffPolicy):
        self.policy = policy

    def __call__(self, retry_state: RetryCallState) -> float:
        # attempt_number is the attempt that just failed
        return self.policy.delay(retry_state.attempt_number)
