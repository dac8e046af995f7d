"""
Default Client
==============
Process-wide client for consumers that do not need custom tuning.

Composition roots should create their own client with ``create_client`` and
pass it down; ``set_default_client`` lets them install it here instead.

Usage:
    from resilient_http.defaults import get_default_client

    data = await get_default_client().get("https://api.example.com/items")
"""

from typing import Optional

from .config import CircuitBreakerConfig, RetryConfiguration
from .http import ResilientClient

DEFAULT_CLIENT_CONFIG = RetryConfiguration(
    max_retries=3,
    base_delay=1.0,
    max_delay=30.0,
    backoff_multiplier=2.0,
    jitter=True,
    timeout=15.0,
    circuit_breaker=CircuitBreakerConfig(
        failure_threshold=5,
        reset_timeout=60.0,
        monitoring_period=60.0,
        half_open_max_calls=3,
    ),
)

# Singleton instance
_default_client: Optional[ResilientClient] = None


def get_default_client() -> ResilientClient:
    """Get or create the default client instance."""
    global _default_client
    if _default_client is None:
        _default_client = ResilientClient(DEFAULT_CLIENT_CONFIG, name="default")
    return _default_client


def set_default_client(client: ResilientClient) -> None:
    """Install an explicitly constructed client as the default."""
    global _default_client
    _default_client = client


async def reset_default_client() -> None:
    """Close and forget the default client."""
    global _default_client
    if _default_client is not None:
        await _default_client.aclose()
        _default_client = None
