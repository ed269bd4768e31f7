"""Alert sinks for monitor transition events.

Every sink implements ``AlertSink.send(event) -> bool``. The log sink is
always registered. Callback sinks adapt in-process callables, and the HTTP
sinks (generic webhook and Slack) share one POST routine. ``CircuitBreaker``
wraps any sink and stops calling it after repeated failures until a cool-down
has passed.
"""

import enum
import inspect
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from pulsewatch.monitors.schemas import AlertEvent

logger = logging.getLogger(__name__)


class AlertSink(ABC):
    """Destination for AlertEvents."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier used in logs and metrics labels."""

    @abstractmethod
    async def send(self, event: AlertEvent) -> bool:
        """Deliver one event.

        Returns:
            Whether the destination accepted the event. Sinks may also
            raise; the dispatcher treats that as a failed delivery.
        """


class LogSink(AlertSink):
    """Writes transitions to the application log (warning for down, info for up)."""

    @property
    def name(self) -> str:
        return "log"

    async def send(self, event: AlertEvent) -> bool:
        level = logging.INFO if event.now_up else logging.WARNING
        logger.log(
            level,
            "%s [%s] status=%d latency=%dms%s",
            event.title,
            event.monitor_id,
            event.status,
            event.latency_ms,
            f" error={event.error}" if event.error else "",
        )
        return True


class CallbackSink(AlertSink):
    """Calls a sync or async function with each event.

    The return value is ignored and an exception propagates to the caller.
    """

    def __init__(
        self,
        callback: Callable[[AlertEvent], Awaitable[Any] | Any],
        name: str = "callback",
    ) -> None:
        self._callback = callback
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    async def send(self, event: AlertEvent) -> bool:
        outcome = self._callback(event)
        if inspect.isawaitable(outcome):
            await outcome
        return True


class HttpSink(AlertSink):
    """Base for sinks that POST a JSON body per event.

    A short-lived ``httpx.AsyncClient`` is opened per send. Non-2xx
    responses and httpx errors are logged and reported as failures.
    """

    def __init__(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._url = url
        self._headers = dict(headers or {})
        self._timeout = timeout

    @abstractmethod
    def build_body(self, event: AlertEvent) -> dict[str, Any]:
        """JSON body for one event."""

    async def send(self, event: AlertEvent) -> bool:
        body = self.build_body(event)
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(self._url, json=body, headers=self._headers)
        except httpx.TimeoutException:
            logger.warning("%s sink timed out after %ss (monitor %s)", self.name, self._timeout, event.monitor_id)
            return False
        except httpx.HTTPError as e:
            logger.warning("%s sink request failed (monitor %s): %s", self.name, event.monitor_id, e)
            return False

        if not resp.is_success:
            logger.warning(
                "%s sink got HTTP %d (monitor %s)", self.name, resp.status_code, event.monitor_id,
            )
        return resp.is_success


class WebhookSink(HttpSink):
    """Generic JSON webhook; the body is the event plus a title and message."""

    @property
    def name(self) -> str:
        return "webhook"

    def build_body(self, event: AlertEvent) -> dict[str, Any]:
        body = event.to_dict()
        body["event"] = event.kind
        body["title"] = event.title
        body["message"] = event.message
        return body


class SlackSink(HttpSink):
    """Slack incoming webhook using Block Kit (header, message, context line)."""

    def __init__(
        self,
        webhook_url: str,
        channel: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        super().__init__(webhook_url, timeout=timeout)
        self._channel = channel

    @property
    def name(self) -> str:
        return "slack"

    def build_body(self, event: AlertEvent) -> dict[str, Any]:
        icon = ":large_green_circle:" if event.now_up else ":red_circle:"
        details = [f"*Status:* {event.status}", f"*Latency:* {event.latency_ms} ms"]
        if event.forced:
            details.append("forced check")

        body: dict[str, Any] = {
            "blocks": [
                {"type": "header", "text": {"type": "plain_text", "text": f"{icon} {event.title}"}},
                {"type": "section", "text": {"type": "mrkdwn", "text": event.message}},
                {"type": "context", "elements": [{"type": "mrkdwn", "text": " | ".join(details)}]},
            ]
        }
        if self._channel:
            body["channel"] = self._channel
        return body


class CircuitState(enum.Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker(AlertSink):
    """Stops calling a failing sink for a while.

    ``failure_threshold`` failures in a row (False or an exception) open
    the circuit and events are dropped without touching the sink. Once
    ``recovery_timeout`` seconds have passed the next event is let through
    as a trial: success closes the circuit, failure opens it again for
    another full timeout.
    """

    def __init__(
        self,
        sink: AlertSink,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0,
    ) -> None:
        self._sink = sink
        self._threshold = failure_threshold
        self._recovery_timeout = recovery_timeout
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._opened_at = 0.0

    @property
    def name(self) -> str:
        return self._sink.name

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failures

    def _admit(self) -> bool:
        if self._state is not CircuitState.OPEN:
            return True
        if time.monotonic() - self._opened_at < self._recovery_timeout:
            return False
        self._state = CircuitState.HALF_OPEN
        logger.info("Circuit for %s half-open, sending trial event", self.name)
        return True

    async def send(self, event: AlertEvent) -> bool:
        if not self._admit():
            logger.debug("Circuit for %s open, dropping event for %s", self.name, event.monitor_id)
            return False

        try:
            delivered = await self._sink.send(event)
        except Exception:
            self._on_failure()
            raise

        if delivered:
            self._on_success()
        else:
            self._on_failure()
        return delivered

    def _on_success(self) -> None:
        if self._state is CircuitState.HALF_OPEN:
            logger.info("Circuit for %s closed after successful trial", self.name)
        self._state = CircuitState.CLOSED
        self._failures = 0

    def _on_failure(self) -> None:
        self._failures += 1
        if self._state is CircuitState.HALF_OPEN or self._failures >= self._threshold:
            if self._state is not CircuitState.OPEN:
                logger.warning("Circuit for %s opened after %d failures", self.name, self._failures)
            self._state = CircuitState.OPEN
            self._opened_at = time.monotonic()
