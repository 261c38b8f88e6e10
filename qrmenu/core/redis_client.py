"""
QR Menu Order Service - Redis connection

One client per process, created on first use. It holds the stock cache
(stock:<product_id>) and the checkout idempotency keys (idempotent:<key>).
"""
import redis.asyncio as aioredis

from qrmenu.core.config import get_settings

settings = get_settings()

_client: aioredis.Redis | None = None


def get_redis() -> aioredis.Redis:
    global _client
    if _client is None:
        _client = aioredis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=settings.HEALTH_CHECK_TIMEOUT,
        )
    return _client


async def ping_redis() -> None:
    if not await get_redis().ping():
        raise ConnectionError("Redis did not answer PING")


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
