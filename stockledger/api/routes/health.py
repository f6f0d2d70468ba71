"""
Health check endpoints.
"""

import time

from fastapi import APIRouter

from stockledger.application.dto.responses import HealthResponse
from stockledger.config import get_settings

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check."""
    return HealthResponse(status="healthy", version=get_settings().app_version)


@router.get("/db", response_model=HealthResponse)
async def db_health() -> HealthResponse:
    """
    Database health check.

    Tests SQLite connectivity, response time and schema version.
    """
    from stockledger.infrastructure.storage.sqlite import get_pool
    from stockledger.infrastructure.storage.sqlite.migrations import get_current_version

    database: dict = {"name": "sqlite", "available": False}

    try:
        pool = await get_pool()
        start = time.time()
        async with pool.acquire() as conn:
            await conn.execute("SELECT 1")
            database["schema_version"] = await get_current_version(conn)
        database["available"] = True
        database["latency_ms"] = round((time.time() - start) * 1000, 2)

    except Exception as e:
        database["error"] = str(e)

    return HealthResponse(
        status="healthy" if database["available"] else "unhealthy",
        version=get_settings().app_version,
        database=database,
    )
