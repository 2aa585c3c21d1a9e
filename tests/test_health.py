"""
tests/test_health.py -- Integration tests for GET /api/health.

Covers:
  - 200 response with status, version, timestamp and components
  - components.database reports 'ok' against the live test database
  - No authentication required
"""

from __future__ import annotations

from fastapi.testclient import TestClient


def test_health_returns_200_with_components(client: TestClient) -> None:
    resp = client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert "version" in data
    assert data["timestamp"]
    assert data["components"] == {"app": "ok", "database": "ok"}


def test_health_no_auth_required(client: TestClient) -> None:
    resp = client.get("/api/health", headers={})
    assert resp.status_code == 200
