"""Tests for stats, events, sync, health and request middleware."""

import re

from fastapi.testclient import TestClient

from pulsewatch.api.app import create_app

# UUID v4 regex pattern
UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$")


class TestStats:
    def test_stats(self, client, mock_service):
        mock_service.stats.return_value = {
            "total": 3, "up": 2, "down": 1, "enabled": 3,
            "disabled": 0, "critical": 1, "overall_uptime": 87.5,
        }

        data = client.get("/api/stats").json()

        assert data["total"] == 3
        assert data["overall_uptime"] == 87.5

    def test_events_default_limit(self, client, mock_service):
        mock_service.recent_events.return_value = [{
            "monitor_id": "abc12345", "monitor_name": None, "url": "https://a.test",
            "t": 5, "up": False, "status": 0, "ms": 2000, "attempt": 3,
            "forced": False, "error": "Timeout",
        }]

        resp = client.get("/api/events")

        assert resp.status_code == 200
        assert resp.json()[0]["monitor_id"] == "abc12345"
        mock_service.recent_events.assert_called_once_with(50)

    def test_events_limit_bounds(self, client):
        assert client.get("/api/events?limit=0").status_code == 422
        assert client.get("/api/events?limit=1001").status_code == 422


class TestSync:
    def test_sync_ok(self, client):
        resp = client.post("/api/sync")

        assert resp.status_code == 200
        assert resp.json() == {"ok": True, "message": "Synced to file"}

    def test_sync_failure(self, client, mock_service):
        mock_service.sync.return_value = False

        resp = client.post("/api/sync")

        assert resp.status_code == 502


class TestHealth:
    def test_health(self, client, mock_service):
        mock_service.registry.__len__.return_value = 4
        mock_service.scheduler.scheduled_ids = ["a", "b", "c"]
        mock_service.scheduler.in_flight_ids = ["a"]

        data = client.get("/health").json()

        assert data == {
            "ok": True,
            "status": "running",
            "monitors": 4,
            "scheduled": 3,
            "in_flight": 1,
            "store": "file",
        }

    def test_service_not_running_is_503(self):
        # Lifespan never runs without the context manager
        client = TestClient(create_app())
        assert client.get("/health").status_code == 503


class TestLifespan:
    def test_starts_and_stops_service(self, mock_service):
        app = create_app(service=mock_service)

        with TestClient(app):
            mock_service.start.assert_awaited_once()
            mock_service.stop.assert_not_awaited()

        mock_service.stop.assert_awaited_once()


class TestRequestIdMiddleware:
    def test_generates_uuid_when_no_header(self, client):
        request_id = client.get("/health").headers.get("X-Request-ID")
        assert request_id is not None
        assert UUID_RE.match(request_id), f"Expected UUID v4, got: {request_id}"

    def test_echoes_custom_request_id(self, client):
        resp = client.get("/health", headers={"X-Request-ID": "custom-id-123"})
        assert resp.headers.get("X-Request-ID") == "custom-id-123"

    def test_echoes_correlation_id(self, client):
        resp = client.get("/health", headers={"X-Correlation-ID": "corr-456"})
        assert resp.headers.get("X-Request-ID") == "corr-456"
