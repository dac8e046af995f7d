"""
Request Invoker
===============
Orchestrates one logical request: breaker admission, timed attempts,
backoff between attempts and outcome recording.
"""

import time
from dataclasses import replace
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Tuple, Type

import httpx
import structlog
from pydantic import BaseModel

from ..circuit_breaker import Admission, CircuitBreaker, CircuitBreakerRegistry
from ..config import RetryConfiguration
from ..exceptions import (
    CircuitBreakerOpenError,
    HttpError,
    NetworkError,
    RequestTimeoutError,
    ResilientHttpError,
    error_kind_of,
)
from ..metrics import AttemptRecord, MetricsCollector, RequestOutcome
from ..retry import BackoffPolicy, async_attempts
from ..timeout import TimeoutController

logger = structlog.get_logger(__name__)


class AttemptVerdict(str, Enum):
    """How a received status code drives the attempt loop."""
    SUCCESS = "success"
    RETRYABLE = "retryable"
    TERMINAL = "terminal"


def classify_status(status_code: int, config: RetryConfiguration) -> AttemptVerdict:
    if status_code in config.retryable_status_codes:
        return AttemptVerdict.RETRYABLE
    if 200 <= status_code < 300:
        return AttemptVerdict.SUCCESS
    return AttemptVerdict.TERMINAL


def parse_body(response: httpx.Response) -> Any:
    """Decode JSON, falling back to text. Empty bodies decode to None."""
    if response.status_code == 204 or not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


# Raised before anything reaches the server
CALLER_ERRORS = (httpx.InvalidURL, httpx.UnsupportedProtocol)


def map_transport_error(exc: Exception, timeout: float) -> Exception:
    """
    Translate an exception raised while sending into the client taxonomy.

    Transport failures stay retryable; URL/protocol mistakes and other
    request errors (bad encodings, redirect loops) do not. Anything that is
    not an httpx request error is returned unchanged.
    """
    if isinstance(exc, RequestTimeoutError):
        return exc
    if isinstance(exc, httpx.TimeoutException):
        return RequestTimeoutError(timeout)
    if isinstance(exc, CALLER_ERRORS):
        return NetworkError(exc, retryable=False)
    if isinstance(exc, httpx.TransportError):
        return NetworkError(exc)
    if isinstance(exc, httpx.RequestError):
        return NetworkError(exc, retryable=False)
    return exc


def counts_against_breaker(exc: Exception) -> bool:
    if isinstance(exc, RequestTimeoutError):
        return True
    if isinstance(exc, NetworkError):
        return not isinstance(exc.cause, CALLER_ERRORS)
    return False


def retry_predicate(config: RetryConfiguration) -> Callable[[BaseException], bool]:
    def should_retry(exc: BaseException) -> bool:
        if isinstance(exc, HttpError):
            return exc.retryable
        if isinstance(exc, NetworkError):
            return exc.retryable and exc.error_kind in config.retryable_errors
        if isinstance(exc, RequestTimeoutError):
            return exc.error_kind in config.retryable_errors
        return False
    return should_retry


class Invoker:
    """
    Runs logical requests for a client.

    Breaker state and the outcome log are shared by every request the
    invoker handles; each request gets its own attempt loop.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        breakers: CircuitBreakerRegistry,
        metrics: MetricsCollector,
        timeouts: Optional[TimeoutController] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        rng: Optional[Callable[[float, float], float]] = None,
    ):
        self.http = http
        self.breakers = breakers
        self.metrics = metrics
        self.timeouts = timeouts or TimeoutController()
        self._sleep = sleep
        self._rng = rng

    def breaker_key(self, url: str) -> str:
        """Endpoint key: host plus path of the resolved URL."""
        try:
            target = httpx.URL(url)
            if target.is_relative_url:
                target = self.http.base_url.join(url)
        except httpx.InvalidURL:
            # The attempt itself reports the bad URL
            return url
        return f"{target.host}{target.path}"

    async def invoke(
        self,
        method: str,
        url: str,
        config: RetryConfiguration,
        breaker_key: Optional[str] = None,
        response_model: Optional[Type[BaseModel]] = None,
        **request_kwargs: Any,
    ) -> Any:
        method = method.upper()
        key = breaker_key or self.breaker_key(url)
        timestamp = time.time()
        started = time.perf_counter()
        records: List[AttemptRecord] = []

        breaker: Optional[CircuitBreaker] = None
        admission: Optional[Admission] = None

        async def finish(succeeded: bool, http_status: Optional[int] = None, error_kind: Optional[str] = None):
            await self._record(
                RequestOutcome(
                    timestamp=timestamp,
                    duration_ms=(time.perf_counter() - started) * 1000,
                    attempts_used=len(records),
                    succeeded=succeeded,
                    http_status=http_status,
                    error_kind=error_kind,
                    url=url,
                    method=method,
                    breaker_key=key if config.circuit_breaker is not None else None,
                    breaker_state=breaker.state.value if breaker is not None else None,
                    attempts=tuple(records),
                )
            )

        if config.circuit_breaker is not None:
            breaker = await self.breakers.get(key, config.circuit_breaker)
            try:
                admission = await breaker.admit()
            except CircuitBreakerOpenError as exc:
                exc.url, exc.method = url, method
                await finish(False, error_kind=exc.error_kind)
                raise

        def on_retry(retry_state) -> None:
            if records and retry_state.next_action is not None:
                records[-1] = replace(records[-1], delay=retry_state.next_action.sleep)

        try:
            async for attempt in async_attempts(
                config,
                retry_predicate(config),
                policy=BackoffPolicy.from_config(config, rng=self._rng),
                sleep=self._sleep,
                on_retry=on_retry,
                name=f"{method} {url}",
            ):
                with attempt:
                    if records and breaker is not None:
                        admission = await self._readmit(breaker, admission)
                    status, body = await self._attempt(
                        method, url, config, records, breaker, admission, request_kwargs
                    )
        except Exception as exc:
            if isinstance(exc, ResilientHttpError):
                exc.url, exc.method, exc.attempts = url, method, len(records)
            logger.error(
                "request_failed",
                method=method,
                url=url,
                attempts=len(records),
                error=str(exc),
            )
            await finish(
                False,
                http_status=getattr(exc, "status_code", None),
                error_kind=error_kind_of(exc),
            )
            raise
        finally:
            if admission is not None:
                await self._report(breaker.release(admission))

        if response_model is not None:
            try:
                body = response_model.model_validate(body)
            except Exception as exc:
                await finish(False, http_status=status, error_kind=error_kind_of(exc))
                raise

        logger.debug("request_succeeded", method=method, url=url, attempts=len(records))
        await finish(True, http_status=status)
        return body

    async def _attempt(
        self,
        method: str,
        url: str,
        config: RetryConfiguration,
        records: List[AttemptRecord],
        breaker: Optional[CircuitBreaker],
        admission: Optional[Admission],
        request_kwargs: dict,
    ) -> Tuple[int, Any]:
        number = len(records) + 1
        timestamp = time.time()

        async def send() -> httpx.Response:
            return await self.http.request(method, url, timeout=config.timeout, **request_kwargs)

        try:
            response = await self.timeouts.run(send, config.timeout)
        except Exception as exc:
            error = map_transport_error(exc, config.timeout)
            records.append(AttemptRecord(number, timestamp, error_kind=error_kind_of(error)))
            if admission is not None and counts_against_breaker(error):
                await self._report(breaker.record_failure(admission))
            if error is exc:
                raise
            raise error from exc

        status = response.status_code
        verdict = classify_status(status, config)

        if verdict is AttemptVerdict.SUCCESS:
            records.append(AttemptRecord(number, timestamp, http_status=status))
            if admission is not None:
                await self._report(breaker.record_success(admission))
            return status, parse_body(response)

        records.append(AttemptRecord(number, timestamp, error_kind=HttpError.error_kind, http_status=status))
        if verdict is AttemptVerdict.RETRYABLE and admission is not None:
            await self._report(breaker.record_failure(admission))
        raise HttpError(
            status,
            response.reason_phrase,
            body=parse_body(response),
            retryable=verdict is AttemptVerdict.RETRYABLE,
        )

    async def _readmit(self, breaker: CircuitBreaker, previous: Admission) -> Admission:
        """
        Pass a retry back through the breaker.

        A breaker that opened during earlier attempts rejects the retry with
        CircuitBreakerOpenError, which ends the request without a network call.
        """
        await self._report(breaker.release(previous))
        return await breaker.admit()

    async def _report(self, report: Awaitable[None]) -> None:
        try:
            await report
        except Exception:
            logger.exception("circuit_report_failed")

    async def _record(self, outcome: RequestOutcome) -> None:
        try:
            await self.metrics.record(outcome)
        except Exception:
            logger.exception("metrics_record_failed", url=outcome.url)
