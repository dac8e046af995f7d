"""
Circuit Breaker Models
======================
State enum, runtime state and admission tokens for the breaker.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CircuitState(str, Enum):
    """Circuit breaker states."""
    CLOSED = "closed"        # Normal operation
    OPEN = "open"            # Failing, reject requests
    HALF_OPEN = "half_open"  # Testing recovery


@dataclass
class CircuitBreakerState:
    """Runtime state of one endpoint's breaker."""
    status: CircuitState = CircuitState.CLOSED
    consecutive_failures: int = 0
    opened_at: Optional[float] = None
    last_failure_time: Optional[float] = None
    half_open_calls_in_flight: int = 0
    half_open_successes: int = 0
    generation: int = 0

    # Metrics
    total_calls: int = 0
    total_failures: int = 0
    total_successes: int = 0
    total_rejections: int = 0


@dataclass
class Admission:
    """
    Token handed out by ``CircuitBreaker.admit``.

    ``generation`` pins the report to the breaker epoch it was admitted in.
    """
    key: str
    generation: int
    half_open: bool = False
    released: bool = False
