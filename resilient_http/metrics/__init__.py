"""
Request Metrics
===============
Outcome log, aggregate snapshots and Prometheus export.
"""

from .models import AttemptRecord, MetricsSnapshot, RequestOutcome
from .collector import MetricsCollector
from .prometheus import (
    RESILIENT_HTTP_REGISTRY,
    PrometheusExporter,
    get_metrics_text,
    normalize_endpoint,
    record_circuit_state,
    record_outcome,
)

__all__ = [
    # Models
    "AttemptRecord",
    "MetricsSnapshot",
    "RequestOutcome",
    # Collector
    "MetricsCollector",
    # Prometheus
    "RESILIENT_HTTP_REGISTRY",
    "PrometheusExporter",
    "get_metrics_text",
    "normalize_endpoint",
    "record_circuit_state",
    "record_outcome",
]
