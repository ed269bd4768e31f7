"""Tests for /api/monitors endpoints."""

import pytest
from fastapi.testclient import TestClient

from pulsewatch.api.app import create_app
from pulsewatch.monitors.errors import (
    CheckInFlightError,
    MonitorError,
    MonitorNotFoundError,
    MonitorValidationError,
)
from pulsewatch.monitors.history import HistoryPoint


class TestListAndCreate:
    def test_list_empty(self, client):
        resp = client.get("/api/monitors")
        assert resp.status_code == 200
        assert resp.json() == []

    def test_list_returns_summaries(self, client, mock_service, summary_factory):
        mock_service.list_summaries.return_value = [
            summary_factory("a0000001"),
            summary_factory("b0000002", health="critical", last_status=0),
        ]

        data = client.get("/api/monitors").json()

        assert [m["id"] for m in data] == ["a0000001", "b0000002"]
        assert data[1]["health"] == "critical"

    def test_create(self, client, mock_service):
        resp = client.post(
            "/api/monitors",
            json={"url": "api.test/health", "name": "API", "interval_ms": 10000},
        )

        assert resp.status_code == 201
        assert resp.json()["id"] == "abc12345"
        mock_service.create.assert_awaited_once_with(
            "api.test/health", name="API", interval_ms=10000,
        )

    def test_create_missing_url_is_400(self, client, mock_service):
        mock_service.create.side_effect = MonitorValidationError("url is required")

        resp = client.post("/api/monitors", json={})

        assert resp.status_code == 400
        assert resp.json()["detail"] == "url is required"

    @pytest.mark.parametrize("interval_ms", [0, -500])
    def test_create_accepts_nonpositive_interval(self, client, mock_service, interval_ms):
        resp = client.post(
            "/api/monitors", json={"url": "https://a.test", "interval_ms": interval_ms},
        )

        assert resp.status_code == 201
        mock_service.create.assert_awaited_once_with(
            "https://a.test", name=None, interval_ms=interval_ms,
        )

    def test_bulk_create_accepts_zero_interval(self, client, mock_service, summary_factory):
        mock_service.bulk_create.return_value = [summary_factory("a0000001")]

        resp = client.post("/api/monitors/bulk", json={"urls": ["https://a.test"], "interval_ms": 0})

        assert resp.status_code == 201

    def test_bulk_create(self, client, mock_service, summary_factory):
        mock_service.bulk_create.return_value = [summary_factory("a0000001")]

        resp = client.post(
            "/api/monitors/bulk",
            json={"urls": ["https://a.test", "", 42], "interval_ms": 60000},
        )

        assert resp.status_code == 201
        assert len(resp.json()) == 1
        mock_service.bulk_create.assert_awaited_once_with(
            ["https://a.test", "", 42], names=None, interval_ms=60000,
        )

    def test_bulk_create_requires_urls(self, client, mock_service):
        resp = client.post("/api/monitors/bulk", json={"urls": []})

        assert resp.status_code == 400
        mock_service.bulk_create.assert_not_awaited()


class TestSingleMonitor:
    def test_get_detail(self, client, mock_service):
        resp = client.get("/api/monitors/abc12345?limit=10")

        assert resp.status_code == 200
        assert resp.json()["history"] == []
        mock_service.get_detail.assert_called_once_with("abc12345", limit=10)

    def test_get_unknown(self, client, mock_service):
        mock_service.get_detail.side_effect = MonitorNotFoundError("nope")

        resp = client.get("/api/monitors/nope")

        assert resp.status_code == 404
        assert "nope" in resp.json()["detail"]

    def test_get_limit_bounds(self, client):
        assert client.get("/api/monitors/abc12345?limit=0").status_code == 422
        assert client.get("/api/monitors/abc12345?limit=201").status_code == 422

    def test_patch_only_sends_provided_fields(self, client, mock_service):
        resp = client.patch("/api/monitors/abc12345", json={"enabled": False})

        assert resp.status_code == 200
        monitor_id, patch = mock_service.update.call_args.args
        assert monitor_id == "abc12345"
        assert patch.model_fields_set == {"enabled"}
        assert patch.enabled is False

    def test_patch_zero_interval_passes_through(self, client, mock_service):
        resp = client.patch("/api/monitors/abc12345", json={"interval_ms": 0})

        assert resp.status_code == 200
        _, patch = mock_service.update.call_args.args
        assert patch.interval_ms == 0

    def test_patch_unknown_field(self, client):
        resp = client.patch("/api/monitors/abc12345", json={"colour": "red"})
        assert resp.status_code == 422

    def test_patch_invalid_url(self, client, mock_service):
        mock_service.update.side_effect = MonitorValidationError("url must not be empty")

        resp = client.patch("/api/monitors/abc12345", json={"url": "  "})

        assert resp.status_code == 400

    def test_patch_unknown_monitor(self, client, mock_service):
        mock_service.update.side_effect = MonitorNotFoundError("nope")
        assert client.patch("/api/monitors/nope", json={"name": "x"}).status_code == 404

    def test_delete(self, client, mock_service):
        resp = client.delete("/api/monitors/abc12345")

        assert resp.status_code == 200
        assert resp.json()["ok"] is True
        mock_service.delete.assert_awaited_once_with("abc12345")

    def test_delete_unknown(self, client, mock_service):
        mock_service.delete.side_effect = MonitorNotFoundError("nope")
        assert client.delete("/api/monitors/nope").status_code == 404

    def test_reset(self, client, mock_service):
        resp = client.post("/api/monitors/abc12345/reset")

        assert resp.status_code == 200
        assert resp.json()["health"] == "unknown"


class TestForcedChecks:
    def test_force_check_returns_point(self, client, mock_service):
        mock_service.force_check.return_value = HistoryPoint(
            t=1_700_000_000_000, up=False, status=503, ms=120, attempt=3,
            forced=True, error="HTTP 503",
        )

        resp = client.post("/api/monitors/abc12345/check")

        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == 503
        assert data["attempt"] == 3
        assert data["forced"] is True

    def test_force_check_in_flight(self, client, mock_service):
        mock_service.force_check.side_effect = CheckInFlightError("abc12345")

        resp = client.post("/api/monitors/abc12345/check")

        assert resp.status_code == 409
        assert "in flight" in resp.json()["detail"]

    def test_force_check_unknown(self, client, mock_service):
        mock_service.force_check.side_effect = MonitorNotFoundError("nope")
        assert client.post("/api/monitors/nope/check").status_code == 404

    def test_force_check_unexpected_failure(self, mock_service):
        mock_service.force_check.side_effect = MonitorError("boom")
        app = create_app(service=mock_service)

        with TestClient(app, raise_server_exceptions=False) as client:
            resp = client.post("/api/monitors/abc12345/check")

        assert resp.status_code == 500
        assert resp.json()["error_type"] == "internal"

    def test_check_down(self, client, mock_service):
        mock_service.force_check_down.return_value = ["a0000001", "b0000002"]

        resp = client.post("/api/monitors/check-down")

        assert resp.status_code == 200
        assert resp.json() == {"checked": ["a0000001", "b0000002"], "count": 2}
