"""
Resilient HTTP
==============
Outbound HTTP client with retries, exponential backoff, per-endpoint
circuit breakers, per-attempt timeouts and request metrics.
"""

__version__ = "0.1.0"

# Configuration
from resilient_http.config import (
    CircuitBreakerConfig,
    RetryConfiguration,
    DEFAULT_RETRYABLE_STATUS_CODES,
)

# Exceptions
from resilient_http.exceptions import (
    ResilientHttpError,
    HttpError,
    RequestTimeoutError,
    NetworkError,
    CircuitBreakerOpenError,
)

# Retry
from resilient_http.retry import (
    BackoffPolicy,
    retry_call,
    with_retry,
)

# Circuit Breaker
from resilient_http.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerRegistry,
    CircuitState,
)

# Timeout
from resilient_http.timeout import TimeoutController

# Metrics
from resilient_http.metrics import (
    MetricsCollector,
    MetricsSnapshot,
    RequestOutcome,
    get_metrics_text,
)

# Client
from resilient_http.http import (
    ResilientClient,
    Invoker,
    create_client,
)
from resilient_http.defaults import (
    get_default_client,
    set_default_client,
    reset_default_client,
)

__all__ = [
    # Configuration
    "CircuitBreakerConfig",
    "RetryConfiguration",
    "DEFAULT_RETRYABLE_STATUS_CODES",
    # Exceptions
    "ResilientHttpError",
    "HttpError",
    "RequestTimeoutError",
    "NetworkError",
    "CircuitBreakerOpenError",
    # Retry
    "BackoffPolicy",
    "retry_call",
    "with_retry",
    # Circuit Breaker
    "CircuitBreaker",
    "CircuitBreakerRegistry",
    "CircuitState",
    # Timeout
    "TimeoutController",
    # Metrics
    "MetricsCollector",
    "MetricsSnapshot",
    "RequestOutcome",
    "get_metrics_text",
    # Client
    "ResilientClient",
    "Invoker",
    "create_client",
    "get_default_client",
    "set_default_client",
    "reset_default_client",
]
