"""Tests for the alert dispatcher and its factory."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from pulsewatch.alerts.config import NotificationConfig
from pulsewatch.alerts.dispatcher import AlertDispatcher, build_dispatcher
from pulsewatch.alerts.sinks import CircuitBreaker, LogSink
from pulsewatch.monitors.schemas import AlertEvent


@pytest.fixture
def event():
    return AlertEvent(
        monitor_id="abc12345",
        monitor_name="API",
        url="https://api.test",
        timestamp=1,
        previous_up=True,
        now_up=False,
        status=503,
        latency_ms=10,
        error="HTTP 503 Service Unavailable",
    )


def _sink(name: str, result=True, side_effect=None) -> MagicMock:
    sink = MagicMock()
    sink.name = name
    sink.send = AsyncMock(return_value=result, side_effect=side_effect)
    return sink


class TestDispatch:
    @pytest.mark.asyncio
    async def test_sinks_run_in_registration_order(self, event, mock_metrics):
        order = []
        first = _sink("first", side_effect=lambda e: order.append("first") or True)
        second = _sink("second", side_effect=lambda e: order.append("second") or True)
        dispatcher = AlertDispatcher([first], metrics=mock_metrics)
        dispatcher.register(second)

        results = await dispatcher.dispatch(event)

        assert order == ["first", "second"]
        assert results == [("first", True), ("second", True)]

    @pytest.mark.asyncio
    async def test_failing_sink_is_isolated(self, event, mock_metrics):
        broken = _sink("broken", side_effect=RuntimeError("boom"))
        refused = _sink("refused", result=False)
        healthy = _sink("healthy")
        dispatcher = AlertDispatcher([broken, refused, healthy], metrics=mock_metrics)

        results = await dispatcher.dispatch(event)

        assert results == [("broken", False), ("refused", False), ("healthy", True)]
        healthy.send.assert_awaited_once_with(event)
        mock_metrics.record_alert.assert_any_call("broken", False)
        mock_metrics.record_alert.assert_any_call("healthy", True)

    @pytest.mark.asyncio
    async def test_no_sinks(self, event, mock_metrics):
        assert await AlertDispatcher(metrics=mock_metrics).dispatch(event) == []


class TestBuildDispatcher:
    def test_log_only_by_default(self, mock_metrics):
        dispatcher = build_dispatcher(NotificationConfig(), metrics=mock_metrics)

        assert len(dispatcher.sinks) == 1
        assert isinstance(dispatcher.sinks[0], LogSink)

    def test_network_sinks_wrapped(self, mock_metrics):
        config = NotificationConfig(
            webhook_url="https://hooks.test/alerts",
            slack_webhook_url="https://hooks.slack.test/x",
            circuit_breaker_threshold=3,
        )

        dispatcher = build_dispatcher(config, metrics=mock_metrics)

        names = [s.name for s in dispatcher.sinks]
        assert names == ["log", "webhook", "slack"]
        assert all(isinstance(s, CircuitBreaker) for s in dispatcher.sinks[1:])
