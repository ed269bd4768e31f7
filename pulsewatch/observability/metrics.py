"""
Prometheus metrics for the monitoring engine.

Defines and exposes metrics for:
- Check outcomes and latency
- Intermediate retry attempts
- Ticks dropped by the single-flight guard
- Alert delivery per sink
- Persistence writes
- Registry size

Metrics are exposed via HTTP endpoint for Prometheus scraping.
"""

import logging

from prometheus_client import (
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

from pulsewatch.config.settings import get_settings

logger = logging.getLogger(__name__)

# Buckets for latency histograms (in seconds)
LATENCY_BUCKETS = (0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0)


class MetricsCollector:
    """
    Prometheus metrics collector for pulsewatch.

    Usage:
        metrics = get_metrics()
        metrics.start_server()

        metrics.record_check(result="up", forced=False, latency=0.12)
    """

    def __init__(self):
        """Initialize Prometheus metrics."""

        # Checks
        self.checks_total = Counter(
            "pulsewatch_checks_total",
            "Total completed checks by terminal result",
            ["result", "forced"],  # result: up, down, transport_error
        )

        self.check_latency = Histogram(
            "pulsewatch_check_latency_seconds",
            "Latency of the terminal attempt of a check",
            buckets=LATENCY_BUCKETS,
        )

        self.retry_attempts = Counter(
            "pulsewatch_retry_attempts_total",
            "Non-terminal attempts that were followed by a retry",
            ["reason"],  # down, transport_error
        )

        self.check_errors = Counter(
            "pulsewatch_check_errors_total",
            "Checks that raised unexpectedly",
        )

        # Scheduling
        self.ticks_skipped = Counter(
            "pulsewatch_ticks_skipped_total",
            "Triggers dropped because a check was already in flight",
            ["source"],  # timer, sweep, manual
        )

        self.sweep_checks = Counter(
            "pulsewatch_sweep_checks_total",
            "Forced checks started by the recovery sweeper",
        )

        # Alerts
        self.alerts_total = Counter(
            "pulsewatch_alerts_total",
            "Alert deliveries per sink",
            ["sink", "outcome"],  # outcome: delivered, failed
        )

        # Persistence
        self.store_writes = Counter(
            "pulsewatch_store_writes_total",
            "Persistence writes by outcome",
            ["outcome"],  # ok, failed
        )

        # Registry
        self.monitors = Gauge(
            "pulsewatch_monitors",
            "Registered monitors",
            ["state"],  # enabled, disabled
        )

        logger.info("Prometheus metrics initialized")

    def start_server(self, port: int | None = None) -> None:
        """
        Start Prometheus metrics HTTP server.

        Args:
            port: Port to expose metrics on (default from settings)
        """
        settings = get_settings()
        port = port or settings.metrics_port

        start_http_server(port, registry=REGISTRY)
        logger.info(f"Prometheus metrics server started on port {port}")

    # Convenience methods

    def record_check(self, result: str, forced: bool, latency: float | None = None) -> None:
        """
        Record a completed check.

        Args:
            result: Terminal result (up, down, transport_error)
            forced: Whether the check ran outside the regular interval
            latency: Terminal attempt latency in seconds
        """
        self.checks_total.labels(result=result, forced=str(forced).lower()).inc()
        if latency is not None:
            self.check_latency.observe(latency)

    def record_retry(self, reason: str) -> None:
        self.retry_attempts.labels(reason=reason).inc()

    def record_check_error(self) -> None:
        self.check_errors.inc()

    def record_skipped_tick(self, source: str) -> None:
        self.ticks_skipped.labels(source=source).inc()

    def record_sweep(self, count: int) -> None:
        if count > 0:
            self.sweep_checks.inc(count)

    def record_alert(self, sink: str, delivered: bool) -> None:
        outcome = "delivered" if delivered else "failed"
        self.alerts_total.labels(sink=sink, outcome=outcome).inc()

    def record_store_write(self, ok: bool) -> None:
        self.store_writes.labels(outcome="ok" if ok else "failed").inc()

    def set_monitor_counts(self, enabled: int, disabled: int) -> None:
        self.monitors.labels(state="enabled").set(enabled)
        self.monitors.labels(state="disabled").set(disabled)


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
