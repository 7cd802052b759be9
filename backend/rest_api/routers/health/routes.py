"""
Health check endpoints. No authentication required.
"""

import asyncio

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from shared.config.settings import settings
from shared.infrastructure.db import SessionLocal
from shared.infrastructure.events import get_event_circuit_breaker, get_redis_pool


router = APIRouter(prefix="/api", tags=["health"])

CHECK_TIMEOUT = 3.0


@router.get("/health")
def health_check():
    """Service status without touching dependencies."""
    return {
        "status": "healthy",
        "service": "pos-api",
        "environment": settings.environment,
    }


def _check_database() -> None:
    with SessionLocal() as db:
        db.execute(text("SELECT 1"))


async def _check_redis() -> None:
    redis = await get_redis_pool()
    await redis.ping()


async def _run_check(name: str, check) -> tuple[str, dict]:
    try:
        await asyncio.wait_for(check(), timeout=CHECK_TIMEOUT)
    except Exception as e:
        return name, {"status": "unhealthy", "error": str(e) or type(e).__name__}
    return name, {"status": "healthy"}


@router.get("/health/detailed")
async def detailed_health_check():
    """
    PostgreSQL and Redis connectivity, plus the event publisher's circuit
    breaker. Returns 503 when a dependency is down.
    """
    results = dict(
        await asyncio.gather(
            _run_check("database", lambda: asyncio.to_thread(_check_database)),
            _run_check("redis", _check_redis),
        )
    )
    healthy = all(r["status"] == "healthy" for r in results.values())

    body = {
        "service": "pos-api",
        "environment": settings.environment,
        "status": "healthy" if healthy else "degraded",
        "dependencies": results,
        "event_publisher": get_event_circuit_breaker().get_stats(),
    }
    if not healthy:
        return JSONResponse(content=body, status_code=503)
    return body
