"""
Metrics Collector
=================
In-memory log of request outcomes with on-demand aggregation.
"""

import asyncio
from collections import deque
from typing import Callable, Deque, Dict, Optional

import structlog

from .models import MetricsSnapshot, RequestOutcome

logger = structlog.get_logger(__name__)

OutcomeExporter = Callable[[RequestOutcome], None]


class MetricsCollector:
    """
    Append-only outcome log bounded to ``max_outcomes`` entries.

    ``snapshot()`` aggregates over the retained outcomes; ``recent_failures``
    lists failed outcomes most recent first, capped at ``max_recent_failures``.
    """

    def __init__(
        self,
        max_outcomes: int = 1000,
        max_recent_failures: int = 50,
        exporter: Optional[OutcomeExporter] = None,
    ):
        self.max_outcomes = max_outcomes
        self.max_recent_failures = max_recent_failures
        self._outcomes: Deque[RequestOutcome] = deque(maxlen=max_outcomes)
        self._exporter = exporter
        self._lock = asyncio.Lock()

    async def record(self, outcome: RequestOutcome) -> None:
        async with self._lock:
            self._outcomes.append(outcome)

        if self._exporter is not None:
            try:
                self._exporter(outcome)
            except Exception:
                logger.exception("metrics_export_failed", url=outcome.url)

    def snapshot(self, circuit_breaker_states: Optional[Dict[str, str]] = None) -> MetricsSnapshot:
        """Get aggregated statistics."""
        outcomes = tuple(self._outcomes)
        total = len(outcomes)
        states = dict(circuit_breaker_states or {})

        if not total:
            return MetricsSnapshot(circuit_breaker_states=states)

        successes = sum(1 for o in outcomes if o.succeeded)
        failures = [o for o in reversed(outcomes) if not o.succeeded]

        return MetricsSnapshot(
            total_requests=total,
            success_rate=successes / total * 100,
            average_attempts=sum(o.attempts_used for o in outcomes) / total,
            average_duration=sum(o.duration_ms for o in outcomes) / total,
            recent_failures=tuple(failures[: self.max_recent_failures]),
            circuit_breaker_states=states,
        )

    def clear(self) -> None:
        self._outcomes.clear()
        logger.info("metrics_cleared")

    def __len__(self) -> int:
        return len(self._outcomes)
