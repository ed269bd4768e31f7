"""Bounded-retry HTTP prober.

Runs up to ``max_retries`` sequential GET attempts against a monitor's URL
and folds the terminal attempt into the monitor's status fields and history
ledger. Any HTTP response is a result (4xx/5xx included); only
transport-level errors are failures.

Pattern: stateless apart from config; the per-monitor lock is taken only
while applying the result, never across the network call.
"""

import asyncio
import logging
import time
from dataclasses import dataclass

import httpx

from pulsewatch.monitors.config import MonitorConfig
from pulsewatch.monitors.history import (
    TRANSPORT_FAILURE_STATUS,
    HistoryPoint,
    is_up,
)
from pulsewatch.monitors.schemas import Monitor, now_ms
from pulsewatch.observability.metrics import MetricsCollector, get_metrics
from pulsewatch.observability.tracing import get_tracer, traced

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)


@dataclass(frozen=True)
class AttemptOutcome:
    """Outcome of a single HTTP attempt within a probe."""

    attempt: int
    status: int
    latency_ms: int
    error: str | None = None

    @property
    def up(self) -> bool:
        return is_up(self.status)

    @property
    def transport_failure(self) -> bool:
        return self.status == TRANSPORT_FAILURE_STATUS


def describe_transport_error(exc: Exception, timeout: float) -> str:
    """Short human-readable text for a transport failure."""
    if isinstance(exc, httpx.TimeoutException):
        return f"Timeout after {timeout:g}s"
    text = str(exc).strip()
    return text or exc.__class__.__name__


class Prober:
    """Executes one retrying check per call.

    Args:
        config: Engine configuration (retry budget, delays, timeouts).
        client: Optional shared ``httpx.AsyncClient``. When None, a
            short-lived client is created per probe.
        metrics: Optional metrics collector (global one if None).
    """

    def __init__(
        self,
        config: MonitorConfig | None = None,
        client: httpx.AsyncClient | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._config = config or MonitorConfig()
        self._client = client
        self._metrics = metrics or get_metrics()

    @property
    def config(self) -> MonitorConfig:
        return self._config

    async def probe(self, monitor: Monitor, forced: bool = False) -> HistoryPoint:
        """Check a monitor and record the terminal result on it.

        Args:
            monitor: Monitor to check. Its status fields and history are
                updated in place.
            forced: Whether this check runs outside the regular interval.

        Returns:
            The HistoryPoint appended to the monitor's ledger.
        """
        url = monitor.url
        timeout = self._config.timeout_for(monitor.interval_ms)

        with traced(
            tracer,
            "monitor.probe",
            {"monitor.id": monitor.id, "http.url": url, "probe.forced": forced},
        ) as span:
            attempts = await self.run_attempts(url, timeout)
            terminal = attempts[-1]
            span.set_attribute("http.status_code", terminal.status)
            span.set_attribute("probe.attempts", len(attempts))

        for outcome in attempts[:-1]:
            logger.debug(
                "Intermediate attempt for %s: attempt=%d status=%d error=%s",
                monitor.id, outcome.attempt, outcome.status, outcome.error,
            )
            self._metrics.record_retry(
                "transport_error" if outcome.transport_failure else "down"
            )

        async with monitor.lock:
            point = self._apply(monitor, terminal, forced)

        if terminal.transport_failure:
            result = "transport_error"
        else:
            result = "up" if terminal.up else "down"
        self._metrics.record_check(result, forced, terminal.latency_ms / 1000)
        return point

    async def run_attempts(self, url: str, timeout: float) -> list[AttemptOutcome]:
        """Run the retry loop and return every attempt, terminal last.

        Stops on the first up response. A down response or a transport
        failure is retried after ``retry_delay_ms`` while attempts remain.
        """
        if self._client is not None:
            return await self._attempt_loop(self._client, url, timeout)

        async with httpx.AsyncClient(
            follow_redirects=True,
            headers={"User-Agent": self._config.user_agent},
        ) as client:
            return await self._attempt_loop(client, url, timeout)

    async def _attempt_loop(
        self,
        client: httpx.AsyncClient,
        url: str,
        timeout: float,
    ) -> list[AttemptOutcome]:
        max_attempts = self._config.max_retries
        delay = self._config.retry_delay_ms / 1000
        attempts: list[AttemptOutcome] = []

        for attempt in range(1, max_attempts + 1):
            outcome = await self._attempt(client, url, timeout, attempt)
            attempts.append(outcome)

            if outcome.up or attempt == max_attempts:
                break

            # Wait before retry (down response or transport failure)
            if delay > 0:
                await asyncio.sleep(delay)

        return attempts

    async def _attempt(
        self,
        client: httpx.AsyncClient,
        url: str,
        timeout: float,
        attempt: int,
    ) -> AttemptOutcome:
        started = time.perf_counter()
        try:
            # Whole attempt is bounded; the body is never read
            async with asyncio.timeout(timeout):
                async with client.stream("GET", url, timeout=timeout) as response:
                    status = response.status_code
                    reason = response.reason_phrase
        except TimeoutError:
            return AttemptOutcome(
                attempt=attempt,
                status=TRANSPORT_FAILURE_STATUS,
                latency_ms=int((time.perf_counter() - started) * 1000),
                error=f"Timeout after {timeout:g}s",
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            latency_ms = int((time.perf_counter() - started) * 1000)
            return AttemptOutcome(
                attempt=attempt,
                status=TRANSPORT_FAILURE_STATUS,
                latency_ms=latency_ms,
                error=describe_transport_error(e, timeout),
            )

        latency_ms = int((time.perf_counter() - started) * 1000)
        error = None
        if not is_up(status):
            error = f"HTTP {status} {reason}".strip()
        return AttemptOutcome(
            attempt=attempt,
            status=status,
            latency_ms=latency_ms,
            error=error,
        )

    def _apply(
        self,
        monitor: Monitor,
        terminal: AttemptOutcome,
        forced: bool,
    ) -> HistoryPoint:
        """Fold the terminal attempt into the monitor. Caller holds the lock."""
        point = HistoryPoint(
            t=now_ms(),
            up=terminal.up,
            status=terminal.status,
            ms=terminal.latency_ms,
            attempt=terminal.attempt,
            forced=forced,
            error=terminal.error,
        )

        monitor.last_status = point.status
        monitor.last_latency = point.ms
        monitor.last_checked = point.t
        monitor.last_error = point.error

        if point.up:
            monitor.consecutive_failures = 0
        else:
            monitor.consecutive_failures += 1

        if terminal.transport_failure:
            monitor.retry_count += 1

        monitor.history.append(point)
        return point
