"""
Shared fixtures for resilient_http tests.
"""

from typing import Callable, List

import httpx
import pytest

from resilient_http import CircuitBreakerConfig, ResilientClient, RetryConfiguration


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class SleepRecorder:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class SequenceHandler:
    """
    MockTransport handler that replays a scripted sequence.

    Items are httpx.Response objects or exceptions to raise.
    The last item repeats once the script is exhausted.
    """

    def __init__(self, *script):
        self.script = list(script)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests) - 1, len(self.script) - 1)
        item = self.script[index]
        if isinstance(item, Exception):
            raise item
        return item

    @property
    def calls(self) -> int:
        return len(self.requests)


TEST_CONFIG = RetryConfiguration(
    max_retries=2,
    base_delay=0.01,
    max_delay=0.1,
    backoff_multiplier=2,
    jitter=False,
    timeout=1.0,
    circuit_breaker=None,
)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def make_client(clock, sleeper) -> Callable[..., ResilientClient]:
    """Build a client around a handler with fake time."""

    def factory(handler, config: RetryConfiguration = TEST_CONFIG, **overrides) -> ResilientClient:
        return ResilientClient(
            config.merged(**overrides),
            transport=httpx.MockTransport(handler),
            clock=clock,
            sleep=sleeper,
            export_prometheus=False,
        )

    return factory


@pytest.fixture
def breaker_config() -> CircuitBreakerConfig:
    return CircuitBreakerConfig(
        failure_threshold=3,
        reset_timeout=30.0,
        monitoring_period=60.0,
        half_open_max_calls=2,
    )
