"""Pytest fixtures for pulsewatch tests."""

from unittest.mock import MagicMock

import pytest

from pulsewatch.config.settings import Settings
from pulsewatch.monitors.config import MonitorConfig
from pulsewatch.monitors.history import HistoryLedger, HistoryPoint, is_up
from pulsewatch.monitors.schemas import Monitor


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings configured for testing."""
    return Settings(
        environment="development",
        log_level="DEBUG",
        store_backend="file",
        data_file=str(tmp_path / "monitors.json"),
        redis_url="redis://localhost:6379/1",  # Use DB 1 for tests
        metrics_enabled=False,
    )


@pytest.fixture
def monitor_config() -> MonitorConfig:
    """Engine config with short intervals and no retry delay."""
    return MonitorConfig(
        min_interval_ms=20,
        default_interval_ms=50,
        retry_delay_ms=0,
        min_timeout_ms=200,
        sweep_interval_seconds=0.05,
        shutdown_grace_seconds=1.0,
    )


@pytest.fixture
def mock_metrics() -> MagicMock:
    """Stand-in for the Prometheus collector (avoids duplicate registration)."""
    return MagicMock()


@pytest.fixture
def make_point():
    """Factory for HistoryPoint with sensible defaults."""

    def _make(
        status: int = 200,
        t: int = 1_700_000_000_000,
        ms: int = 42,
        attempt: int = 1,
        forced: bool = False,
        error: str | None = None,
    ) -> HistoryPoint:
        return HistoryPoint(
            t=t,
            up=is_up(status),
            status=status,
            ms=ms,
            attempt=attempt,
            forced=forced,
            error=error,
        )

    return _make


@pytest.fixture
def make_monitor():
    """Factory for Monitor with sensible defaults."""

    def _make(
        monitor_id: str = "abc12345",
        url: str = "https://example.com",
        name: str | None = None,
        interval_ms: int = 5000,
        enabled: bool = True,
        last_status: int | None = None,
        consecutive_failures: int = 0,
        history: list[HistoryPoint] | None = None,
        **kwargs,
    ) -> Monitor:
        return Monitor(
            id=monitor_id,
            url=url,
            name=name,
            interval_ms=interval_ms,
            enabled=enabled,
            last_status=last_status,
            last_checked=kwargs.pop(
                "last_checked", 1_700_000_000_000 if last_status is not None else None
            ),
            consecutive_failures=consecutive_failures,
            history=HistoryLedger(history or []),
            **kwargs,
        )

    return _make
