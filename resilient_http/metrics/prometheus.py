"""
Prometheus Export
=================
Prometheus metrics for resilient client outcomes and breaker state.

Usage:
    from resilient_http.metrics.prometheus import get_metrics_text

    body = get_metrics_text()   # serve from a /metrics endpoint
"""

import re
from typing import Optional
from urllib.parse import urlsplit

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from ..circuit_breaker.models import CircuitState
from .models import RequestOutcome

# Custom registry so embedding applications keep their default one clean
RESILIENT_HTTP_REGISTRY = CollectorRegistry()

REQUEST_DURATION = Histogram(
    name="resilient_http_request_duration_seconds",
    documentation="Wall-clock time of logical requests including retries",
    labelnames=["client", "method", "endpoint", "outcome"],
    buckets=[
        0.005, 0.01, 0.025, 0.05, 0.1,
        0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0,
    ],
    registry=RESILIENT_HTTP_REGISTRY,
)

REQUEST_TOTAL = Counter(
    name="resilient_http_requests_total",
    documentation="Total number of logical requests",
    labelnames=["client", "method", "endpoint", "outcome"],
    registry=RESILIENT_HTTP_REGISTRY,
)

REQUEST_ATTEMPTS = Histogram(
    name="resilient_http_request_attempts",
    documentation="Network attempts used per logical request",
    labelnames=["client", "method"],
    buckets=[0, 1, 2, 3, 4, 5, 8, 13],
    registry=RESILIENT_HTTP_REGISTRY,
)

CIRCUIT_BREAKER_STATE = Gauge(
    name="resilient_http_circuit_breaker_state",
    documentation="Circuit breaker state (0=closed, 1=half-open, 2=open)",
    labelnames=["client", "key"],
    registry=RESILIENT_HTTP_REGISTRY,
)

_STATE_VALUES = {
    CircuitState.CLOSED: 0,
    CircuitState.HALF_OPEN: 1,
    CircuitState.OPEN: 2,
}


class PrometheusExporter:
    """Pushes outcomes and breaker transitions of one client into Prometheus."""

    def __init__(self, client_name: str = "default"):
        self.client_name = client_name

    def __call__(self, outcome: RequestOutcome) -> None:
        record_outcome(outcome, client=self.client_name)

    def circuit_state(self, key: str, state: CircuitState) -> None:
        record_circuit_state(key, state, client=self.client_name)


def record_outcome(outcome: RequestOutcome, client: str = "default") -> None:
    """Record one logical request outcome."""
    method = outcome.method or "CALL"
    labels = {
        "client": client,
        "method": method,
        "endpoint": normalize_endpoint(outcome.url),
        "outcome": "success" if outcome.succeeded else (outcome.error_kind or "error"),
    }
    REQUEST_DURATION.labels(**labels).observe(outcome.duration_ms / 1000)
    REQUEST_TOTAL.labels(**labels).inc()
    REQUEST_ATTEMPTS.labels(client=client, method=method).observe(outcome.attempts_used)


def record_circuit_state(key: str, state: CircuitState, client: str = "default") -> None:
    """Record a circuit breaker state change."""
    CIRCUIT_BREAKER_STATE.labels(client=client, key=key).set(_STATE_VALUES.get(state, -1))


def get_metrics_text() -> str:
    """Get metrics in Prometheus text format."""
    return generate_latest(RESILIENT_HTTP_REGISTRY).decode("utf-8")


def normalize_endpoint(url: Optional[str]) -> str:
    """
    Reduce a URL to a low-cardinality endpoint label.

    Keeps the path only and replaces UUIDs and numeric IDs with placeholders.
    """
    if not url:
        return "unknown"
    path = urlsplit(url).path or "/"

    path = re.sub(
        r'[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}',
        '{uuid}',
        path,
        flags=re.IGNORECASE,
    )
    path = re.sub(r'/\d+(?=/|$)', '/{id}', path)

    return path
