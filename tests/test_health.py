"""
tests/test_health.py -- Integration tests for GET /api/v1/health and the error envelope.

Covers:
  - 200 response with status, version, and components fields
  - database component degrades when a store cannot be reached
  - no authentication required
  - unknown routes still answer with the structured error envelope
"""

from __future__ import annotations

from sqlalchemy.exc import OperationalError

from api.main import API_VERSION


def test_health_returns_200_with_components(api_client):
    """Health endpoint returns 200 with status, version, and components."""
    client, _, _ = api_client
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["version"] == API_VERSION
    assert data["components"] == {"app": "ok", "database": "ok"}


def test_health_reports_degraded_database(api_client, monkeypatch):
    """A failing store ping flips the database component without failing the request."""
    client, _, _ = api_client

    def broken_ping():
        raise OperationalError("SELECT 1", {}, Exception("disk I/O error"))

    monkeypatch.setattr(client.app.state.spaces, "ping", broken_ping)
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "degraded"
    assert resp.json()["components"]["database"] == "error"


def test_health_no_auth_required(api_client):
    """Health endpoint is accessible without any authentication headers."""
    client, _, _ = api_client
    resp = client.get("/api/v1/health", headers={})
    assert resp.status_code == 200


def test_unknown_route_uses_error_envelope(api_client):
    client, _, _ = api_client
    resp = client.get("/api/v1/does-not-exist")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "http_404"
