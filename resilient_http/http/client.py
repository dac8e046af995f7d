import json
import time
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Type

import httpx
import structlog
from pydantic import BaseModel

from ..circuit_breaker import CircuitBreakerRegistry
from ..config import RetryConfiguration
from ..metrics import MetricsCollector, MetricsSnapshot, PrometheusExporter
from .invoker import Invoker

logger = structlog.get_logger(__name__)


class ResilientClient:
    """
    Resilient Async HTTP Client.

    Features:
    - Retries on network errors, timeouts and retryable statuses with
      exponential backoff and jitter.
    - Per-endpoint circuit breakers.
    - Per-attempt timeouts.
    - Outcome metrics (in-memory snapshot and Prometheus).
    - JSON request bodies and decoded responses, optionally validated
      into Pydantic models.
    """

    def __init__(
        self,
        config: Optional[RetryConfiguration] = None,
        *,
        base_url: str = "",
        headers: Optional[Mapping[str, str]] = None,
        name: str = "default",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        rng: Optional[Callable[[float, float], float]] = None,
        export_prometheus: bool = True,
        max_outcomes: int = 1000,
        max_recent_failures: int = 50,
    ):
        self.config = config or RetryConfiguration()
        self.name = name

        exporter = PrometheusExporter(name) if export_prometheus else None
        self.breakers = CircuitBreakerRegistry(
            clock=clock,
            on_state_change=exporter.circuit_state if exporter else None,
        )
        self.metrics = MetricsCollector(
            max_outcomes=max_outcomes,
            max_recent_failures=max_recent_failures,
            exporter=exporter,
        )

        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=base_url,
            headers={"Accept": "application/json", **dict(headers or {})},
            timeout=self.config.timeout,
            transport=transport,
        )
        self._invoker = Invoker(
            self._http,
            self.breakers,
            self.metrics,
            sleep=sleep,
            rng=rng,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()

    async def request(
        self,
        method: str,
        url: str,
        *,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, Any]] = None,
        timeout: Optional[float] = None,
        breaker_key: Optional[str] = None,
        response_model: Optional[Type[BaseModel]] = None,
        retry: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """
        Execute a logical request with retries, breaker and timeout.

        Args:
            method: HTTP method
            url: Absolute URL or path relative to ``base_url``
            body: JSON-serializable value or Pydantic model
            headers: Extra request headers
            params: Query parameters
            timeout: Per-attempt timeout override, in seconds
            breaker_key: Label to track breaker state under instead of host + path
            response_model: Pydantic model to validate the decoded body into
            retry: Per-call RetryConfiguration field overrides. A
                ``circuit_breaker`` override only takes effect for a key
                whose breaker does not exist yet (or after
                ``reset_circuit_breakers()``); an existing breaker keeps
                the config it was created with.

        Returns:
            Decoded JSON, text, None for empty bodies, or a model instance

        Raises:
            HttpError, RequestTimeoutError, NetworkError, CircuitBreakerOpenError
        """
        overrides: Dict[str, Any] = dict(retry or {})
        if timeout is not None:
            overrides["timeout"] = timeout
        config = self.config.merged(**overrides)

        request_headers = httpx.Headers(headers or {})
        content = None
        if body is not None:
            content = _dump_body(body)
            if "content-type" not in request_headers:
                request_headers["Content-Type"] = "application/json"

        return await self._invoker.invoke(
            method,
            url,
            config,
            breaker_key=breaker_key,
            response_model=response_model,
            headers=request_headers,
            params=params,
            content=content,
        )

    async def get(self, url: str, **options) -> Any:
        return await self.request("GET", url, **options)

    async def post(self, url: str, body: Any = None, **options) -> Any:
        return await self.request("POST", url, body=body, **options)

    async def put(self, url: str, body: Any = None, **options) -> Any:
        return await self.request("PUT", url, body=body, **options)

    async def patch(self, url: str, body: Any = None, **options) -> Any:
        return await self.request("PATCH", url, body=body, **options)

    async def delete(self, url: str, **options) -> Any:
        return await self.request("DELETE", url, **options)

    def get_metrics(self) -> MetricsSnapshot:
        """Aggregate request metrics plus the current breaker states."""
        return self.metrics.snapshot(circuit_breaker_states=self.breakers.states())

    def reset_circuit_breakers(self) -> None:
        self.breakers.reset()

    def clear_metrics(self) -> None:
        self.metrics.clear()


def _dump_body(body: Any) -> str:
    if isinstance(body, BaseModel):
        return body.model_dump_json()
    return json.dumps(body)


def create_client(config: Optional[RetryConfiguration] = None, **options) -> ResilientClient:
    """Create a client with its own breakers and metrics."""
    return ResilientClient(config, **options)
