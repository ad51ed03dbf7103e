"""Health check endpoint tests."""

import pytest


@pytest.mark.asyncio
async def test_health_check(client):
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "sowflow-api"
    assert data["version"] == "1.0.0"


@pytest.mark.asyncio
async def test_liveness(client):
    response = await client.get("/api/v1/health/live")
    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


@pytest.mark.asyncio
async def test_readiness_checks_database(client):
    response = await client.get("/api/v1/health/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["checks"]["database"] == "ok"


@pytest.mark.asyncio
async def test_trace_id_is_echoed(client):
    response = await client.get("/api/v1/health", headers={"X-Trace-Id": "trc_test123"})
    assert response.headers["X-Trace-Id"] == "trc_test123"


@pytest.mark.asyncio
async def test_trace_id_is_generated(client):
    response = await client.get("/api/v1/health")
    assert response.headers["X-Trace-Id"].startswith("trc_")
