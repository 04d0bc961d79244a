"""Health endpoint tests."""

import pytest


@pytest.mark.asyncio
async def test_health_returns_ok(anon_client):
    """Health endpoint should report the server and database as ok."""
    resp = await anon_client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["server"] == "ok"
    assert data["database"] == "ok"
    assert "version" in data
