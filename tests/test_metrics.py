"""
Tests for outcome metrics and Prometheus export.
"""

import pytest

from resilient_http.metrics import (
    MetricsCollector,
    PrometheusExporter,
    RequestOutcome,
    get_metrics_text,
    normalize_endpoint,
)


def outcome(succeeded: bool, attempts: int = 1, duration_ms: float = 10.0, **kwargs) -> RequestOutcome:
    return RequestOutcome(
        timestamp=0.0,
        duration_ms=duration_ms,
        attempts_used=attempts,
        succeeded=succeeded,
        **kwargs,
    )


class TestMetricsCollector:

    def test_empty_snapshot(self):
        """No requests yields zeros, never NaN."""
        snapshot = MetricsCollector().snapshot()

        assert snapshot.total_requests == 0
        assert snapshot.success_rate == 0
        assert snapshot.average_attempts == 0
        assert snapshot.average_duration == 0
        assert snapshot.recent_failures == ()
        assert snapshot.circuit_breaker_states == {}

    @pytest.mark.asyncio
    async def test_single_failure_rate_is_zero(self):
        collector = MetricsCollector()
        await collector.record(outcome(False, error_kind="http_error"))

        snapshot = collector.snapshot()
        assert snapshot.total_requests == 1
        assert snapshot.success_rate == 0

    @pytest.mark.asyncio
    async def test_single_success_rate_is_hundred(self):
        collector = MetricsCollector()
        await collector.record(outcome(True))

        assert collector.snapshot().success_rate == 100

    @pytest.mark.asyncio
    async def test_averages(self):
        collector = MetricsCollector()
        await collector.record(outcome(True, attempts=1, duration_ms=10))
        await collector.record(outcome(True, attempts=3, duration_ms=30))
        await collector.record(outcome(False, attempts=2, duration_ms=50))
        await collector.record(outcome(False, attempts=0, duration_ms=10))

        snapshot = collector.snapshot()
        assert snapshot.success_rate == 50
        assert snapshot.average_attempts == 1.5
        assert snapshot.average_duration == 25

    @pytest.mark.asyncio
    async def test_recent_failures_most_recent_first_and_capped(self):
        collector = MetricsCollector(max_recent_failures=3)
        for i in range(5):
            await collector.record(outcome(False, url=f"https://x/{i}"))
            await collector.record(outcome(True))

        failures = collector.snapshot().recent_failures
        assert [f.url for f in failures] == ["https://x/4", "https://x/3", "https://x/2"]
        assert all(not f.succeeded for f in failures)

    @pytest.mark.asyncio
    async def test_retention_bound(self):
        collector = MetricsCollector(max_outcomes=3)
        for _ in range(5):
            await collector.record(outcome(True))

        assert len(collector) == 3
        assert collector.snapshot().total_requests == 3

    @pytest.mark.asyncio
    async def test_clear(self):
        collector = MetricsCollector()
        await collector.record(outcome(True))

        collector.clear()

        assert collector.snapshot().total_requests == 0

    @pytest.mark.asyncio
    async def test_exporter_failure_is_suppressed(self):
        """A broken exporter never loses the record or raises."""
        def exporter(_):
            raise RuntimeError("pushgateway down")

        collector = MetricsCollector(exporter=exporter)
        await collector.record(outcome(True))

        assert collector.snapshot().total_requests == 1


class TestPrometheusExport:

    def test_normalize_endpoint(self):
        assert normalize_endpoint("https://api.example.com/users/42/orders") == "/users/{id}/orders"
        assert (
            normalize_endpoint("https://api.example.com/o/0b8c3f0e-6a4b-4f1d-9a49-2d1f9b1f6c11")
            == "/o/{uuid}"
        )
        assert normalize_endpoint(None) == "unknown"

    def test_exporter_writes_text_format(self):
        exporter = PrometheusExporter("metrics-test")
        exporter(outcome(True, url="https://api.example.com/items/7", method="GET"))

        text = get_metrics_text()

        assert "resilient_http_requests_total" in text
        assert 'client="metrics-test"' in text
        assert 'endpoint="/items/{id}"' in text
