"""Shared fixtures for API tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from pulsewatch.api.app import create_app


def _make_summary(monitor_id: str = "abc12345", **overrides) -> dict:
    """Helper to create a monitor summary dict with sensible defaults."""
    summary = {
        "id": monitor_id,
        "name": "API",
        "url": "https://api.test/health",
        "interval_ms": 5000,
        "enabled": True,
        "last_status": 200,
        "last_latency": 42,
        "last_checked": 1_700_000_000_000,
        "last_error": None,
        "consecutive_failures": 0,
        "retry_count": 0,
        "uptime_pct": 100.0,
        "health": "healthy",
    }
    summary.update(overrides)
    return summary


@pytest.fixture
def mock_service():
    """MonitorService stand-in with async commands and sync queries."""
    service = MagicMock()
    service.start = AsyncMock()
    service.stop = AsyncMock()
    service.running = True

    service.list_summaries = MagicMock(return_value=[])
    service.get_detail = MagicMock(return_value={**_make_summary(), "history": []})
    service.stats = MagicMock(return_value={
        "total": 0, "up": 0, "down": 0, "enabled": 0,
        "disabled": 0, "critical": 0, "overall_uptime": 0.0,
    })
    service.recent_events = MagicMock(return_value=[])

    service.create = AsyncMock(return_value=_make_summary())
    service.bulk_create = AsyncMock(return_value=[])
    service.update = AsyncMock(return_value=_make_summary())
    service.delete = AsyncMock(return_value=None)
    service.reset_stats = AsyncMock(return_value=_make_summary(health="unknown"))
    service.force_check = AsyncMock()
    service.force_check_down = AsyncMock(return_value=[])
    service.sync = AsyncMock(return_value=True)

    service.registry.__len__.return_value = 0
    service.scheduler.scheduled_ids = []
    service.scheduler.in_flight_ids = []
    service.store.name = "file"
    return service


@pytest.fixture
def client(mock_service):
    """TestClient running the app lifespan around the mocked service."""
    app = create_app(service=mock_service)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def summary_factory():
    return _make_summary
