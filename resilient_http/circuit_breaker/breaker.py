"""
Circuit Breaker Core
====================
Per-endpoint circuit breaker state machine.
"""

import asyncio
import time
from typing import Any, Callable, Dict, Optional

import structlog

from ..config import CircuitBreakerConfig
from ..exceptions import CircuitBreakerOpenError
from .models import Admission, CircuitBreakerState, CircuitState

logger = structlog.get_logger(__name__)

StateChangeHook = Callable[[str, CircuitState], None]


class CircuitBreaker:
    """
    Async-compatible circuit breaker for one endpoint key.

    Callers take an ``Admission`` before doing work and report its outcome:

        admission = await breaker.admit()      # may raise CircuitBreakerOpenError
        try:
            ...
            await breaker.record_success(admission)
        except TransientError:
            await breaker.record_failure(admission)
        finally:
            await breaker.release(admission)
    """

    def __init__(
        self,
        key: str,
        config: Optional[CircuitBreakerConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        on_state_change: Optional[StateChangeHook] = None,
    ):
        self.key = key
        self.config = config or CircuitBreakerConfig()
        self._clock = clock
        self._on_state_change = on_state_change
        self._state = CircuitBreakerState()
        self._lock = asyncio.Lock()

    @property
    def state(self) -> CircuitState:
        """Current circuit state."""
        return self._state.status

    @property
    def metrics(self) -> Dict[str, Any]:
        """Get circuit breaker metrics."""
        return {
            "key": self.key,
            "state": self._state.status.value,
            "consecutive_failures": self._state.consecutive_failures,
            "opened_at": self._state.opened_at,
            "half_open_calls_in_flight": self._state.half_open_calls_in_flight,
            "total_calls": self._state.total_calls,
            "total_failures": self._state.total_failures,
            "total_successes": self._state.total_successes,
            "total_rejections": self._state.total_rejections,
            "last_failure": self._state.last_failure_time,
        }

    def retry_after(self) -> float:
        """Seconds until an open breaker may admit a trial call."""
        if self._state.status != CircuitState.OPEN or self._state.opened_at is None:
            return 0.0
        elapsed = self._clock() - self._state.opened_at
        return max(0.0, self.config.reset_timeout - elapsed)

    def _transition(self, status: CircuitState, now: float) -> None:
        state = self._state
        state.status = status
        state.generation += 1
        if status == CircuitState.OPEN:
            state.opened_at = now
            state.half_open_calls_in_flight = 0
            state.half_open_successes = 0
        elif status == CircuitState.HALF_OPEN:
            state.half_open_calls_in_flight = 0
            state.half_open_successes = 0
        else:
            state.opened_at = None
            state.consecutive_failures = 0
            state.half_open_calls_in_flight = 0
            state.half_open_successes = 0

        if self._on_state_change is not None:
            try:
                self._on_state_change(self.key, status)
            except Exception:
                logger.exception("circuit_state_hook_failed", key=self.key)

    def _reject(self) -> CircuitBreakerOpenError:
        self._state.total_rejections += 1
        logger.warning(
            "circuit_rejected",
            key=self.key,
            state=self._state.status.value,
        )
        return CircuitBreakerOpenError(
            self.key,
            self._state.status.value,
            self.retry_after(),
        )

    async def admit(self) -> Admission:
        """Admit a call or raise CircuitBreakerOpenError."""
        async with self._lock:
            state = self._state
            now = self._clock()

            if state.status == CircuitState.OPEN:
                if now - state.opened_at >= self.config.reset_timeout:
                    self._transition(CircuitState.HALF_OPEN, now)
                    logger.info("circuit_half_open", key=self.key)
                else:
                    raise self._reject()

            if state.status == CircuitState.HALF_OPEN:
                if state.half_open_calls_in_flight >= self.config.half_open_max_calls:
                    raise self._reject()
                state.half_open_calls_in_flight += 1
                return Admission(self.key, state.generation, half_open=True)

            return Admission(self.key, state.generation)

    async def record_success(self, admission: Admission) -> None:
        """Record a successful attempt."""
        async with self._lock:
            state = self._state
            state.total_calls += 1
            state.total_successes += 1

            if admission.generation != state.generation:
                admission.released = True
                return

            if state.status == CircuitState.CLOSED:
                state.consecutive_failures = 0

            elif state.status == CircuitState.HALF_OPEN:
                if admission.half_open and not admission.released:
                    state.half_open_calls_in_flight -= 1
                    admission.released = True
                state.half_open_successes += 1
                if state.half_open_successes >= self.config.half_open_max_calls:
                    self._transition(CircuitState.CLOSED, self._clock())
                    logger.info("circuit_closed", key=self.key)

    async def record_failure(self, admission: Admission) -> None:
        """Record a failed attempt."""
        async with self._lock:
            state = self._state
            now = self._clock()
            state.total_calls += 1
            state.total_failures += 1

            if admission.generation != state.generation:
                admission.released = True
                return

            if state.status == CircuitState.CLOSED:
                if (
                    state.last_failure_time is not None
                    and now - state.last_failure_time > self.config.monitoring_period
                ):
                    state.consecutive_failures = 0
                state.consecutive_failures += 1
                state.last_failure_time = now
                if state.consecutive_failures >= self.config.failure_threshold:
                    self._transition(CircuitState.OPEN, now)
                    logger.warning(
                        "circuit_opened",
                        key=self.key,
                        failures=state.consecutive_failures,
                    )

            elif state.status == CircuitState.HALF_OPEN:
                state.consecutive_failures += 1
                state.last_failure_time = now
                admission.released = True
                self._transition(CircuitState.OPEN, now)
                logger.warning("circuit_reopened", key=self.key)

    async def release(self, admission: Admission) -> None:
        """Free a half-open slot that was neither a success nor a failure."""
        if admission.released:
            return
        admission.released = True
        if not admission.half_open:
            return
        async with self._lock:
            state = self._state
            if (
                admission.generation == state.generation
                and state.status == CircuitState.HALF_OPEN
                and state.half_open_calls_in_flight > 0
            ):
                state.half_open_calls_in_flight -= 1
