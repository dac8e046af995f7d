"""
Metrics Models
==============
Outcome records and aggregate snapshots.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class AttemptRecord:
    """One network attempt inside a logical request."""
    attempt: int
    timestamp: float
    delay: float = 0.0                 # Backoff slept after this attempt
    error_kind: Optional[str] = None
    http_status: Optional[int] = None


@dataclass(frozen=True)
class RequestOutcome:
    """Result of one logical request, success or terminal failure."""
    timestamp: float
    duration_ms: float
    attempts_used: int
    succeeded: bool
    http_status: Optional[int] = None
    error_kind: Optional[str] = None
    url: Optional[str] = None
    method: Optional[str] = None
    breaker_key: Optional[str] = None
    breaker_state: Optional[str] = None
    attempts: Tuple[AttemptRecord, ...] = ()


@dataclass(frozen=True)
class MetricsSnapshot:
    """Aggregate statistics derived from the outcome log."""
    total_requests: int = 0
    success_rate: float = 0.0
    average_attempts: float = 0.0
    average_duration: float = 0.0
    recent_failures: Tuple[RequestOutcome, ...] = ()
    circuit_breaker_states: Dict[str, str] = field(default_factory=dict)
