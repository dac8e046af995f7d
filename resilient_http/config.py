"""
Client Configuration
====================
Retry, timeout and circuit breaker tuning for a resilient client.

A configuration is created once per client and never mutated. Per-call
overrides go through ``RetryConfiguration.merged`` which returns a copy.
"""

import os
from dataclasses import dataclass, field, replace, fields
from typing import Any, FrozenSet, Optional

DEFAULT_RETRYABLE_STATUS_CODES: FrozenSet[int] = frozenset({408, 429, 500, 502, 503, 504})
DEFAULT_RETRYABLE_ERRORS: FrozenSet[str] = frozenset({"network_error", "timeout"})


@dataclass(frozen=True)
class CircuitBreakerConfig:
    """Configuration for the per-endpoint circuit breakers."""
    failure_threshold: int = 5         # Consecutive failures before opening
    reset_timeout: float = 60.0        # Seconds to stay open before half-open
    monitoring_period: float = 60.0    # Failures older than this stop counting
    half_open_max_calls: int = 3       # Trial calls admitted while half-open

    def __post_init__(self):
        if self.failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        if self.reset_timeout <= 0:
            raise ValueError("reset_timeout must be positive")
        if self.monitoring_period <= 0:
            raise ValueError("monitoring_period must be positive")
        if self.half_open_max_calls < 1:
            raise ValueError("half_open_max_calls must be at least 1")


@dataclass(frozen=True)
class RetryConfiguration:
    """
    Immutable retry configuration.

    Attributes:
        max_retries: Retries after the first attempt (total = max_retries + 1)
        base_delay: Delay before the first retry, in seconds
        max_delay: Upper bound for any single backoff delay, in seconds
        backoff_multiplier: Growth factor between consecutive delays
        jitter: Draw each delay uniformly from [0, computed delay]
        timeout: Per-attempt wall-clock limit, in seconds
        retryable_status_codes: HTTP statuses that trigger a retry
        retryable_errors: Transport error kinds that trigger a retry
        circuit_breaker: Breaker tuning, or None to disable the breaker
    """
    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    backoff_multiplier: float = 2.0
    jitter: bool = True
    timeout: float = 10.0
    retryable_status_codes: FrozenSet[int] = DEFAULT_RETRYABLE_STATUS_CODES
    retryable_errors: FrozenSet[str] = DEFAULT_RETRYABLE_ERRORS
    circuit_breaker: Optional[CircuitBreakerConfig] = field(default_factory=CircuitBreakerConfig)

    def __post_init__(self):
        # Accept any iterable for the sets but store them frozen
        object.__setattr__(self, "retryable_status_codes", frozenset(self.retryable_status_codes))
        object.__setattr__(self, "retryable_errors", frozenset(self.retryable_errors))

        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if self.base_delay < 0:
            raise ValueError("base_delay must be non-negative")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be greater than or equal to base_delay")
        if self.backoff_multiplier <= 1:
            raise ValueError("backoff_multiplier must be greater than 1")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def merged(self, **overrides: Any) -> "RetryConfiguration":
        """Return a copy with the given fields replaced."""
        if not overrides:
            return self
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown retry configuration field(s): {', '.join(sorted(unknown))}")
        return replace(self, **overrides)

    @classmethod
    def from_env(cls, prefix: str = "RESILIENT_HTTP_") -> "RetryConfiguration":
        """Build a configuration from environment variables."""
        defaults = cls()
        breaker_defaults = CircuitBreakerConfig()

        def env(name: str, default: Any) -> Any:
            return os.environ.get(f"{prefix}{name}", default)

        circuit_breaker: Optional[CircuitBreakerConfig] = None
        if _parse_bool(env("CIRCUIT_BREAKER", "true")):
            circuit_breaker = CircuitBreakerConfig(
                failure_threshold=int(env("FAILURE_THRESHOLD", breaker_defaults.failure_threshold)),
                reset_timeout=float(env("RESET_TIMEOUT", breaker_defaults.reset_timeout)),
                monitoring_period=float(env("MONITORING_PERIOD", breaker_defaults.monitoring_period)),
                half_open_max_calls=int(env("HALF_OPEN_MAX_CALLS", breaker_defaults.half_open_max_calls)),
            )

        status_codes = env("RETRYABLE_STATUS_CODES", None)
        return cls(
            max_retries=int(env("MAX_RETRIES", defaults.max_retries)),
            base_delay=float(env("BASE_DELAY", defaults.base_delay)),
            max_delay=float(env("MAX_DELAY", defaults.max_delay)),
            backoff_multiplier=float(env("BACKOFF_MULTIPLIER", defaults.backoff_multiplier)),
            jitter=_parse_bool(env("JITTER", str(defaults.jitter))),
            timeout=float(env("TIMEOUT", defaults.timeout)),
            retryable_status_codes=(
                frozenset(int(code) for code in status_codes.split(",") if code.strip())
                if status_codes
                else defaults.retryable_status_codes
            ),
            circuit_breaker=circuit_breaker,
        )


def _parse_bool(value: str) -> bool:
    return str(value).strip().lower() in ("1", "true", "yes", "on")
