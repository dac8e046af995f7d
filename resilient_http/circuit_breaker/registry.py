"""
Circuit Breaker Registry
========================
Keyed collection of circuit breakers owned by one client instance.
"""

import asyncio
import time
from typing import Any, Callable, Dict, Optional

import structlog

from ..config import CircuitBreakerConfig
from .breaker import CircuitBreaker, StateChangeHook
from .models import Admission

logger = structlog.get_logger(__name__)


class CircuitBreakerRegistry:
    """
    Lazily creates one breaker per endpoint key.

    Two registries never share state; each client owns its own.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        on_state_change: Optional[StateChangeHook] = None,
    ):
        self._breakers: Dict[str, CircuitBreaker] = {}
        self._lock = asyncio.Lock()
        self._clock = clock
        self._on_state_change = on_state_change

    async def get(
        self,
        key: str,
        config: Optional[CircuitBreakerConfig] = None,
    ) -> CircuitBreaker:
        """
        Get or create the breaker for a key.

        The first call for a key fixes its config until ``reset()``; a later,
        different config is ignored with a warning.

        Args:
            key: Endpoint key (host + path, or a caller label)
            config: Only used when the breaker is created
        """
        breaker = self._breakers.get(key)
        if breaker is None:
            async with self._lock:
                if key not in self._breakers:
                    self._breakers[key] = CircuitBreaker(
                        key,
                        config=config,
                        clock=self._clock,
                        on_state_change=self._on_state_change,
                    )
                return self._breakers[key]

        if config is not None and config != breaker.config:
            logger.warning(
                "circuit_config_ignored",
                key=key,
                active=breaker.config,
                requested=config,
            )
        return breaker

    async def admit(
        self,
        key: str,
        config: Optional[CircuitBreakerConfig] = None,
    ) -> Admission:
        """Admit a call for ``key`` or raise CircuitBreakerOpenError."""
        breaker = await self.get(key, config)
        return await breaker.admit()

    def states(self) -> Dict[str, str]:
        """Map of breaker key to state value."""
        return {key: breaker.state.value for key, breaker in list(self._breakers.items())}

    def all_metrics(self) -> Dict[str, Dict[str, Any]]:
        """Get metrics for all registered circuit breakers."""
        return {key: breaker.metrics for key, breaker in list(self._breakers.items())}

    def reset(self) -> None:
        """Drop every breaker; keys start CLOSED again on next use."""
        count = len(self._breakers)
        self._breakers.clear()
        logger.info("circuit_breakers_reset", count=count)

    def __contains__(self, key: str) -> bool:
        return key in self._breakers

    def __len__(self) -> int:
        return len(self._breakers)
