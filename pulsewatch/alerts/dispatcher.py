"""Alert dispatcher fanning transition events out to registered sinks.

Sinks are awaited one after another in registration order. A sink that
raises or reports failure is logged and counted, and the remaining sinks
still run; dispatch itself never raises, so a broken sink cannot fail the
check that produced the event.
"""

import logging

from pulsewatch.alerts.config import NotificationConfig
from pulsewatch.alerts.sinks import (
    AlertSink,
    CircuitBreaker,
    LogSink,
    SlackSink,
    WebhookSink,
)
from pulsewatch.monitors.schemas import AlertEvent
from pulsewatch.observability.metrics import MetricsCollector, get_metrics

logger = logging.getLogger(__name__)


class AlertDispatcher:
    """Ordered fan-out of AlertEvents to sinks."""

    def __init__(
        self,
        sinks: list[AlertSink] | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._sinks: list[AlertSink] = list(sinks or [])
        self._metrics = metrics or get_metrics()

    @property
    def sinks(self) -> list[AlertSink]:
        """Registered sinks in dispatch order (for inspection/testing)."""
        return list(self._sinks)

    def register(self, sink: AlertSink) -> None:
        """Append a sink; it runs after every sink registered before it."""
        self._sinks.append(sink)

    async def dispatch(self, event: AlertEvent) -> list[tuple[str, bool]]:
        """Send an event to every sink.

        Args:
            event: Transition to deliver.

        Returns:
            List of (sink_name, success) tuples in dispatch order.
        """
        results: list[tuple[str, bool]] = []

        for sink in self._sinks:
            try:
                success = bool(await sink.send(event))
            except Exception as e:
                logger.error(
                    "Alert sink %s raised for monitor %s: %s",
                    sink.name, event.monitor_id, e,
                )
                success = False

            results.append((sink.name, success))
            self._metrics.record_alert(sink.name, success)

        self._record_delivery(event, results)
        return results

    def _record_delivery(
        self,
        event: AlertEvent,
        results: list[tuple[str, bool]],
    ) -> None:
        failures = [name for name, ok in results if not ok]

        if failures and len(failures) == len(results):
            logger.error(
                "Alert for monitor %s (%s) failed ALL sinks: %s",
                event.monitor_id, event.kind, failures,
            )
        elif failures:
            logger.warning(
                "Alert for monitor %s partial delivery: failed=%s",
                event.monitor_id, failures,
            )
        else:
            logger.debug(
                "Alert for monitor %s delivered to %d sinks",
                event.monitor_id, len(results),
            )


def build_dispatcher(
    config: NotificationConfig | None = None,
    metrics: MetricsCollector | None = None,
) -> AlertDispatcher:
    """Create a dispatcher with the log sink plus any configured network sinks.

    Network sinks are wrapped in a CircuitBreaker.
    """
    config = config or NotificationConfig()
    dispatcher = AlertDispatcher([LogSink()], metrics=metrics)

    network_sinks: list[AlertSink] = []
    if config.webhook_url:
        network_sinks.append(
            WebhookSink(
                url=config.webhook_url,
                headers=config.webhook_headers,
                timeout=config.timeout_seconds,
            )
        )
    if config.slack_webhook_url:
        network_sinks.append(
            SlackSink(
                webhook_url=config.slack_webhook_url,
                channel=config.slack_channel,
                timeout=config.timeout_seconds,
            )
        )

    for sink in network_sinks:
        dispatcher.register(
            CircuitBreaker(
                sink,
                failure_threshold=config.circuit_breaker_threshold,
                recovery_timeout=config.circuit_breaker_recovery_seconds,
            )
        )
        logger.info("Alert sink enabled: %s", sink.name)

    return dispatcher
