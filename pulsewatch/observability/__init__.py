"""Observability layer - logging, metrics, and tracing."""

from pulsewatch.observability.logging import setup_logging
from pulsewatch.observability.metrics import MetricsCollector, get_metrics
from pulsewatch.observability.tracing import get_tracer, setup_tracing, shutdown_tracing

__all__ = [
    "setup_logging",
    "MetricsCollector",
    "get_metrics",
    "setup_tracing",
    "shutdown_tracing",
    "get_tracer",
]
