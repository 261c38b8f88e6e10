"""
QR Menu Order Service - Checkout idempotency

A customer double-tapping "place order" sends the same Idempotency-Key twice.
The key is claimed in Redis with SET NX before checkout runs, so only one of
the requests reaches the handler:
  - key free          -> claim it, run checkout, store the response
  - key still claimed -> 409, the first request is still being processed
  - response stored   -> replay it (X-Idempotency-Replay: true)
A 5xx or a crash frees the key so the customer can retry.
"""
import json
import logging
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from qrmenu.core.config import get_settings
from qrmenu.core.redis_client import get_redis

settings = get_settings()
logger = logging.getLogger(__name__)

IDEMPOTENCY_PREFIX = "idempotent:"
IN_FLIGHT = json.dumps({"state": "in_flight"})
CHECKOUT_PATHS = {"/orders", "/orders/"}


def idempotency_key(key: str) -> str:
    return f"{IDEMPOTENCY_PREFIX}{key}"


class IdempotencyMiddleware(BaseHTTPMiddleware):
    """Guards POST /orders; every other route passes straight through."""

    async def dispatch(self, request: Request, call_next) -> Response:
        key = request.headers.get("Idempotency-Key")
        if request.method != "POST" or request.url.path not in CHECKOUT_PATHS or not key:
            return await call_next(request)

        redis = get_redis()
        cache_key = idempotency_key(key)

        claimed = await redis.set(cache_key, IN_FLIGHT, nx=True, ex=settings.IDEMPOTENCY_KEY_TTL_SECONDS)
        if not claimed:
            return await self._answer_from_cache(cache_key, key)

        try:
            response = await call_next(request)
            body = b"".join([chunk async for chunk in response.body_iterator])
        except Exception:
            await redis.delete(cache_key)
            raise

        if response.status_code >= 500:
            logger.warning("Checkout failed with %d, releasing idempotency key %s", response.status_code, key)
            await redis.delete(cache_key)
        else:
            try:
                content = json.loads(body)
            except ValueError:
                content = body.decode("utf-8", errors="replace")
            await redis.set(
                cache_key,
                json.dumps({"state": "done", "status_code": response.status_code, "body": content}),
                ex=settings.IDEMPOTENCY_KEY_TTL_SECONDS,
            )

        return Response(
            content=body,
            status_code=response.status_code,
            media_type=response.media_type,
            headers=dict(response.headers),
        )

    async def _answer_from_cache(self, cache_key: str, key: str) -> Response:
        stored = await get_redis().get(cache_key)
        entry = json.loads(stored) if stored else {"state": "in_flight"}
        if entry.get("state") == "done":
            return JSONResponse(
                content=entry["body"],
                status_code=entry["status_code"],
                headers={"X-Idempotency-Replay": "true"},
            )
        logger.info("Checkout with idempotency key %s is already in progress", key)
        return JSONResponse(
            status_code=409,
            content={"detail": "An order with this Idempotency-Key is already being placed."},
        )
