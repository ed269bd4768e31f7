"""
OpenTelemetry spans for probes and API requests.

Tracing is off until ``setup_tracing()`` runs; before that every tracer is
a no-op and ``traced()`` costs next to nothing. Probes open a
``monitor.probe`` span tagged with the monitor id, the terminal status and
the attempt count. The API middleware opens one span per request.

Usage:
    provider = setup_tracing("pulsewatch", "http://localhost:4317")
    tracer = get_tracer("pulsewatch.monitors")

    with traced(tracer, "monitor.probe", {"monitor.id": monitor.id}) as span:
        span.set_attribute("http.status_code", 200)

    shutdown_tracing()
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SimpleSpanProcessor,
    SpanExporter,
)
from opentelemetry.trace import Span, StatusCode, Tracer
from opentelemetry.trace.propagation import get_current_span

logger = logging.getLogger(__name__)

_provider: TracerProvider | None = None


def setup_tracing(
    service_name: str,
    otlp_endpoint: str | None = None,
    *,
    environment: str | None = None,
    exporter: SpanExporter | None = None,
) -> TracerProvider:
    """
    Install a global TracerProvider.

    Spans go to an OTLP gRPC collector in batches. A custom exporter (for
    example ``InMemorySpanExporter`` in tests) is flushed synchronously
    instead.

    Args:
        service_name: ``service.name`` resource attribute.
        otlp_endpoint: Collector address, ``http://localhost:4317`` if None.
        environment: Optional ``deployment.environment`` resource attribute.
        exporter: Exporter overriding the OTLP one.

    Returns:
        The installed provider.
    """
    global _provider

    attributes: dict[str, str] = {"service.name": service_name}
    if environment:
        attributes["deployment.environment"] = environment
    provider = TracerProvider(resource=Resource.create(attributes))

    if exporter is not None:
        provider.add_span_processor(SimpleSpanProcessor(exporter))
    else:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
            OTLPSpanExporter,
        )

        endpoint = otlp_endpoint or "http://localhost:4317"
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=True))
        )

    trace.set_tracer_provider(provider)
    _provider = provider
    logger.info(
        "Tracing enabled: service=%s exporter=%s",
        service_name,
        type(exporter).__name__ if exporter is not None else otlp_endpoint or "otlp",
    )
    return provider


def shutdown_tracing() -> None:
    """Flush pending spans and stop exporting."""
    global _provider

    if _provider is None:
        return
    _provider.shutdown()
    _provider = None
    logger.info("Tracing shut down")


def get_tracer(name: str) -> Tracer:
    """Named tracer from the global provider (no-op until tracing is set up)."""
    return trace.get_tracer(name)


def is_tracing_enabled() -> bool:
    return _provider is not None


@contextmanager
def traced(
    tracer: Tracer,
    name: str,
    attributes: dict[str, Any] | None = None,
) -> Iterator[Span]:
    """
    Run a block inside a span, marking the span as failed if the block raises.

    Attributes whose value is None are skipped.
    """
    with tracer.start_as_current_span(name) as span:
        for key, value in (attributes or {}).items():
            if value is not None:
                span.set_attribute(key, value)
        try:
            yield span
        except Exception as exc:
            span.record_exception(exc)
            span.set_status(StatusCode.ERROR, str(exc))
            raise


def add_trace_context(
    logger_: Any, method: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """structlog processor adding ``trace_id`` and ``span_id`` inside a span."""
    ctx = get_current_span().get_span_context()
    if ctx.is_valid:
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict
