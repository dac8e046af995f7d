"""
Tests for retrying arbitrary operations.
"""

import inspect

import pytest

from resilient_http import RetryConfiguration, retry_call, with_retry

FAST = RetryConfiguration(
    max_retries=2,
    base_delay=0.01,
    max_delay=0.1,
    jitter=False,
    circuit_breaker=None,
)


class Flaky:
    """Callable that fails a fixed number of times before succeeding."""

    def __init__(self, failures: int, error: Exception = None):
        self.failures = failures
        self.error = error or ConnectionError("flaky")
        self.calls = 0

    def __call__(self, value="done"):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return value


class TestWithRetryAsync:

    @pytest.mark.asyncio
    async def test_retries_until_success(self, sleeper):
        """An async operation is retried with exponential delays."""
        flaky = Flaky(2)

        async def fetch_data(value):
            return flaky(value)

        wrapped = with_retry(fetch_data, config=FAST, sleep=sleeper)

        assert await wrapped("payload") == "payload"
        assert flaky.calls == 3
        assert sleeper.delays == pytest.approx([0.01, 0.02])

    @pytest.mark.asyncio
    async def test_reraises_last_error(self, sleeper):
        """Exhausted retries surface the operation's own exception."""
        flaky = Flaky(10, ValueError("still broken"))

        async def operation():
            return flaky()

        with pytest.raises(ValueError, match="still broken"):
            await with_retry(operation, config=FAST, sleep=sleeper)()

        assert flaky.calls == 3

    @pytest.mark.asyncio
    async def test_decorator_with_overrides(self, sleeper):
        flaky = Flaky(10)

        @with_retry(config=FAST, sleep=sleeper, max_retries=0)
        async def sync_inventory():
            return flaky()

        with pytest.raises(ConnectionError):
            await sync_inventory()

        assert flaky.calls == 1
        assert sleeper.delays == []
        assert sync_inventory.__name__ == "sync_inventory"
        assert inspect.iscoroutinefunction(sync_inventory)

    @pytest.mark.asyncio
    async def test_retry_call(self, sleeper):
        flaky = Flaky(1)

        async def operation(value):
            return flaky(value)

        assert await retry_call(operation, "x", config=FAST, sleep=sleeper) == "x"
        assert flaky.calls == 2


class TestWithRetrySync:

    def test_plain_callable(self):
        """Plain callables get a blocking wrapper."""
        delays = []
        flaky = Flaky(1)

        wrapped = with_retry(flaky, config=FAST, sleep=delays.append)

        assert wrapped("ok") == "ok"
        assert flaky.calls == 2
        assert delays == pytest.approx([0.01])
        assert not inspect.iscoroutinefunction(wrapped)

    def test_exhausted(self):
        delays = []

        @with_retry(config=FAST, sleep=delays.append)
        def always_fails():
            raise KeyError("missing")

        with pytest.raises(KeyError):
            always_fails()

        assert len(delays) == 2
        assert always_fails.__name__ == "always_fails"
