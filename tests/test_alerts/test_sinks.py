"""Tests for alert sinks and the circuit breaker."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from pulsewatch.alerts.sinks import (
    AlertSink,
    CallbackSink,
    CircuitBreaker,
    CircuitState,
    LogSink,
    SlackSink,
    WebhookSink,
)
from pulsewatch.monitors.schemas import AlertEvent


# ── Fixtures ────────────────────────────────────────────


@pytest.fixture
def down_event():
    return AlertEvent(
        monitor_id="abc12345",
        monitor_name="Checkout API",
        url="https://shop.test/health",
        timestamp=1_700_000_000_000,
        previous_up=True,
        now_up=False,
        status=0,
        latency_ms=2001,
        error="Timeout after 2s",
    )


@pytest.fixture
def up_event():
    return AlertEvent(
        monitor_id="abc12345",
        monitor_name=None,
        url="https://shop.test/health",
        timestamp=1_700_000_060_000,
        previous_up=False,
        now_up=True,
        status=200,
        latency_ms=35,
        forced=True,
    )


def _mock_response(status_code: int = 200) -> httpx.Response:
    """Create a mock httpx.Response."""
    return httpx.Response(status_code=status_code, request=httpx.Request("POST", "http://test"))


def _patch_client(target: str, response=None, side_effect=None):
    """Patch httpx.AsyncClient in a module; returns (patcher, client)."""
    patcher = patch(target)
    mock_client_cls = patcher.start()
    mock_client = AsyncMock()
    if side_effect is not None:
        mock_client.post.side_effect = side_effect
    else:
        mock_client.post.return_value = response
    mock_client_cls.return_value.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client_cls.return_value.__aexit__ = AsyncMock(return_value=False)
    return patcher, mock_client


# ── AlertEvent ──────────────────────────────────────────


class TestAlertEvent:
    def test_down_text(self, down_event):
        assert down_event.kind == "down"
        assert down_event.title == "Checkout API is DOWN"
        assert "could not be reached" in down_event.message
        assert "Timeout after 2s" in down_event.message

    def test_up_text_falls_back_to_url(self, up_event):
        assert up_event.kind == "recovered"
        assert up_event.title == "https://shop.test/health is back UP"
        assert "200" in up_event.message


# ── LogSink / CallbackSink ──────────────────────────────


class TestLogSink:
    @pytest.mark.asyncio
    async def test_always_succeeds(self, down_event, up_event):
        sink = LogSink()
        assert sink.name == "log"
        assert await sink.send(down_event) is True
        assert await sink.send(up_event) is True


class TestCallbackSink:
    @pytest.mark.asyncio
    async def test_sync_callback(self, down_event):
        received = []
        sink = CallbackSink(received.append, name="collector")

        assert await sink.send(down_event) is True
        assert received == [down_event]
        assert sink.name == "collector"

    @pytest.mark.asyncio
    async def test_async_callback(self, down_event):
        callback = AsyncMock()
        sink = CallbackSink(callback)

        assert await sink.send(down_event) is True
        callback.assert_awaited_once_with(down_event)

    @pytest.mark.asyncio
    async def test_exception_propagates(self, down_event):
        sink = CallbackSink(MagicMock(side_effect=RuntimeError("nope")))
        with pytest.raises(RuntimeError):
            await sink.send(down_event)


# ── WebhookSink ─────────────────────────────────────────


class TestWebhookSink:
    @pytest.mark.asyncio
    async def test_successful_send(self, down_event):
        sink = WebhookSink(url="https://hooks.test/alerts", headers={"X-Token": "t"})
        patcher, client = _patch_client("pulsewatch.alerts.sinks.httpx.AsyncClient", _mock_response(200))
        try:
            result = await sink.send(down_event)
        finally:
            patcher.stop()

        assert result is True
        client.post.assert_called_once()
        kwargs = client.post.call_args.kwargs
        assert kwargs["headers"] == {"X-Token": "t"}
        assert kwargs["json"]["event"] == "down"
        assert kwargs["json"]["monitor_id"] == "abc12345"

    @pytest.mark.asyncio
    async def test_failure_on_500(self, down_event):
        sink = WebhookSink(url="https://hooks.test/alerts")
        patcher, _ = _patch_client("pulsewatch.alerts.sinks.httpx.AsyncClient", _mock_response(500))
        try:
            assert await sink.send(down_event) is False
        finally:
            patcher.stop()

    @pytest.mark.asyncio
    async def test_timeout_handling(self, down_event):
        sink = WebhookSink(url="https://hooks.test/alerts", timeout=1.0)
        patcher, _ = _patch_client(
            "pulsewatch.alerts.sinks.httpx.AsyncClient",
            side_effect=httpx.TimeoutException("timed out"),
        )
        try:
            assert await sink.send(down_event) is False
        finally:
            patcher.stop()

    def test_payload_shape(self, down_event):
        payload = WebhookSink(url="https://hooks.test").build_body(down_event)

        assert {"event", "title", "message", "monitor_id", "url", "status", "timestamp"} <= set(payload)
        assert payload["previous_up"] is True
        assert payload["now_up"] is False


# ── SlackSink ───────────────────────────────────────────


class TestSlackSink:
    def test_format_message(self, down_event):
        payload = SlackSink(webhook_url="https://hooks.slack.test", channel="#ops").build_body(down_event)

        assert payload["channel"] == "#ops"
        header = payload["blocks"][0]["text"]["text"]
        assert ":red_circle:" in header
        assert "Checkout API is DOWN" in header

    def test_forced_marker(self, up_event):
        payload = SlackSink(webhook_url="https://hooks.slack.test").build_body(up_event)

        assert "channel" not in payload
        context = payload["blocks"][2]["elements"][0]["text"]
        assert "forced check" in context

    @pytest.mark.asyncio
    async def test_http_error(self, down_event):
        sink = SlackSink(webhook_url="https://hooks.slack.test")
        patcher, _ = _patch_client(
            "pulsewatch.alerts.sinks.httpx.AsyncClient",
            side_effect=httpx.ConnectError("refused"),
        )
        try:
            assert await sink.send(down_event) is False
        finally:
            patcher.stop()


# ── CircuitBreaker ──────────────────────────────────────


class _FlakySink(AlertSink):
    def __init__(self, results):
        self.results = list(results)
        self.calls = 0

    @property
    def name(self) -> str:
        return "flaky"

    async def send(self, event: AlertEvent) -> bool:
        self.calls += 1
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class TestCircuitBreaker:
    @pytest.mark.asyncio
    async def test_opens_after_threshold(self, down_event):
        inner = _FlakySink([False, False, False])
        breaker = CircuitBreaker(inner, failure_threshold=2, recovery_timeout=60)

        await breaker.send(down_event)
        assert breaker.state == CircuitState.CLOSED
        await breaker.send(down_event)
        assert breaker.state == CircuitState.OPEN

        # Dropped without reaching the inner sink
        assert await breaker.send(down_event) is False
        assert inner.calls == 2
        assert breaker.name == "flaky"

    @pytest.mark.asyncio
    async def test_exceptions_count_as_failures(self, down_event):
        breaker = CircuitBreaker(_FlakySink([RuntimeError("x")]), failure_threshold=1)

        with pytest.raises(RuntimeError):
            await breaker.send(down_event)
        assert breaker.state == CircuitState.OPEN

    @pytest.mark.asyncio
    async def test_half_open_trial_success_closes(self, down_event):
        inner = _FlakySink([False, True])
        breaker = CircuitBreaker(inner, failure_threshold=1, recovery_timeout=60)
        await breaker.send(down_event)
        assert breaker.state == CircuitState.OPEN

        breaker._opened_at -= 120
        assert await breaker.send(down_event) is True

        assert breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_half_open_trial_failure_reopens(self, down_event):
        inner = _FlakySink([False, False])
        breaker = CircuitBreaker(inner, failure_threshold=1, recovery_timeout=60)
        await breaker.send(down_event)

        breaker._opened_at -= 120
        assert await breaker.send(down_event) is False

        assert breaker.state == CircuitState.OPEN
        assert inner.calls == 2
