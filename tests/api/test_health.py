"""Tests for health endpoints."""

from httpx import ASGITransport, AsyncClient

from stockledger.api.main import app


async def test_root_health_check():
    """Root health endpoint answers without touching the database."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data


async def test_api_health_check():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_db_health_reports_schema(ledger_db):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/api/health/db")

    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"]["available"] is True
    assert data["database"]["schema_version"] == "001"


async def test_request_id_echoed():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/health", headers={"X-Request-ID": "abc123"})

    assert response.headers["X-Request-ID"] == "abc123"
    assert response.headers["X-Response-Time"].endswith("ms")
