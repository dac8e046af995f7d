"""
Circuit Breaker
===============
Per-endpoint circuit breakers for the resilient client.

States:

1. CLOSED: Normal operation, requests flow through
2. OPEN: Endpoint is failing, requests are rejected without a network call
3. HALF_OPEN: A limited number of trial calls test recovery

Usage:
    registry = CircuitBreakerRegistry()
    admission = await registry.admit("api.example.com/v1/users", CircuitBreakerConfig())
"""

from .models import Admission, CircuitBreakerState, CircuitState
from .breaker import CircuitBreaker
from .registry import CircuitBreakerRegistry

__all__ = [
    # Models
    "Admission",
    "CircuitBreakerState",
    "CircuitState",
    # Breaker
    "CircuitBreaker",
    # Registry
    "CircuitBreakerRegistry",
]
