"""
QR Menu Order Service - Health endpoint

PostgreSQL is required; Redis backs checkout idempotency, so it is required
too. The stock cache section is informational.
"""
import asyncio
import time
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from qrmenu.core.config import get_settings
from qrmenu.core.redis_client import ping_redis
from qrmenu.db.database import engine
from qrmenu.services.stock import count_cached_stock

settings = get_settings()
router = APIRouter(tags=["health"])


async def _ping_database() -> None:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def _timed(check) -> dict:
    started = time.perf_counter()
    try:
        await asyncio.wait_for(check(), timeout=settings.HEALTH_CHECK_TIMEOUT)
    except Exception as exc:
        return {"ok": False, "error": str(exc)[:100]}
    return {"ok": True, "latency_ms": round((time.perf_counter() - started) * 1000, 1)}


@router.get("/health")
async def health_check():
    database = await _timed(_ping_database)
    redis = await _timed(ping_redis)

    stock_cache = {"ttl_seconds": settings.STOCK_CACHE_TTL_SECONDS, "entries": None}
    if redis["ok"]:
        stock_cache["entries"] = await count_cached_stock()

    healthy = database["ok"] and redis["ok"]
    return JSONResponse(
        content={
            "status": "ok" if healthy else "degraded",
            "service": settings.SERVICE_NAME,
            "version": settings.SERVICE_VERSION,
            "database": database,
            "redis": redis,
            "stock_cache": stock_cache,
        },
        status_code=200 if healthy else 503,
    )
