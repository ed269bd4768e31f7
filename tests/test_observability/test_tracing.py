"""
Tests for OpenTelemetry tracing module.

Verifies:
- TracerProvider setup with InMemorySpanExporter
- Structlog processor adds trace_id/span_id to log entries
- traced() context manager creates spans and records exceptions
- Probes run inside a monitor.probe span
"""

import httpx
import pytest
import respx
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode

from pulsewatch.monitors.prober import Prober
from pulsewatch.observability.tracing import (
    add_trace_context,
    get_tracer,
    is_tracing_enabled,
    setup_tracing,
    traced,
)

# Module-level exporter shared across all tests. OTel's global TracerProvider
# can only be set once per process, so we initialize it once and clear the
# exporter between tests.
_exporter = InMemorySpanExporter()
_provider = setup_tracing("test-service", exporter=_exporter)


@pytest.fixture(autouse=True)
def _clear_spans():
    """Clear exported spans before each test."""
    _exporter.clear()
    yield
    _exporter.clear()


class TestSetupTracing:
    def test_setup_enables_tracing(self):
        assert is_tracing_enabled()


class TestTraced:
    """Tests for the traced() convenience context manager."""

    def test_traced_creates_span(self):
        tracer = get_tracer("test")

        with traced(tracer, "my_operation", {"key": "value", "skipped": None}):
            pass

        spans = _exporter.get_finished_spans()
        assert len(spans) == 1
        assert spans[0].name == "my_operation"
        assert spans[0].attributes["key"] == "value"
        assert "skipped" not in spans[0].attributes

    def test_traced_records_exception(self):
        tracer = get_tracer("test")

        with pytest.raises(ValueError, match="boom"):
            with traced(tracer, "failing_op"):
                raise ValueError("boom")

        spans = _exporter.get_finished_spans()
        assert len(spans) == 1
        assert spans[0].status.status_code == StatusCode.ERROR
        assert any(e.name == "exception" for e in spans[0].events)


class TestAddTraceContext:
    """Tests for the add_trace_context structlog processor."""

    def test_adds_trace_id_with_active_span(self):
        tracer = get_tracer("test")

        with tracer.start_as_current_span("logging_test"):
            result = add_trace_context(None, "info", {"event": "test"})

        assert len(result["trace_id"]) == 32
        assert len(result["span_id"]) == 16

    def test_no_trace_id_without_span(self):
        result = add_trace_context(None, "info", {"event": "test"})

        assert "trace_id" not in result
        assert "span_id" not in result

    def test_preserves_existing_fields(self):
        tracer = get_tracer("test")

        with tracer.start_as_current_span("preserve_test"):
            result = add_trace_context(None, "info", {"event": "test", "monitor_id": "abc"})

        assert result["monitor_id"] == "abc"


class TestProbeSpan:
    @respx.mock
    @pytest.mark.asyncio
    async def test_probe_runs_in_span(self, monitor_config, mock_metrics, make_monitor):
        respx.get("https://traced.test/").mock(
            side_effect=[httpx.Response(503), httpx.Response(200)]
        )
        monitor = make_monitor(url="https://traced.test/")

        await Prober(monitor_config, metrics=mock_metrics).probe(monitor, forced=True)

        spans = [s for s in _exporter.get_finished_spans() if s.name == "monitor.probe"]
        assert len(spans) == 1
        attrs = spans[0].attributes
        assert attrs["monitor.id"] == monitor.id
        assert attrs["probe.forced"] is True
        assert attrs["http.status_code"] == 200
        assert attrs["probe.attempts"] == 2
