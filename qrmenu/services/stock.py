"""
QR Menu Order Service - Stock reads, restocking and the Redis stock cache

The cache (stock:<product_id>) is a read-side convenience only. It is
written after a transaction commits and every reservation decision is made
against the database row.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.core.config import get_settings
from qrmenu.core.errors import ProductNotFound
from qrmenu.core.redis_client import get_redis
from qrmenu.db import stock_ledger
from qrmenu.db.database import unit_of_work
from qrmenu.models.catalog import Product

settings = get_settings()
logger = logging.getLogger(__name__)

STOCK_CACHE_KEY = "stock:{product_id}"
UNLIMITED = "unlimited"


async def get_product(db: AsyncSession, product_id: str, restaurant_id: str | None = None) -> Product:
    query = select(Product).where(Product.id == product_id).execution_options(populate_existing=True)
    if restaurant_id is not None:
        query = query.where(Product.restaurant_id == restaurant_id)
    product = (await db.execute(query)).scalar_one_or_none()
    if product is None:
        raise ProductNotFound(product_id)
    return product


async def restock(db: AsyncSession, restaurant_id: str, product_id: str, quantity: int) -> Product:
    """Admin adds units back to a finite stock. Unlimited products are unchanged."""
    async with unit_of_work(db):
        await get_product(db, product_id, restaurant_id)
        await stock_ledger.release(db, product_id, quantity)
    product = await get_product(db, product_id, restaurant_id)
    logger.info("Product %s restocked by %d, now %s", product.name, quantity, product.stock)
    return product


async def cache_stock(product: Product) -> None:
    redis = get_redis()
    value = UNLIMITED if product.stock is None else product.stock
    await redis.setex(
        STOCK_CACHE_KEY.format(product_id=product.id), settings.STOCK_CACHE_TTL_SECONDS, value
    )


async def count_cached_stock() -> int:
    count = 0
    async for _ in get_redis().scan_iter(match=STOCK_CACHE_KEY.format(product_id="*"), count=500):
        count += 1
    return count


async def refresh_stock_cache(db: AsyncSession, product_ids: list[str]) -> None:
    """Best effort: a Redis outage must not fail a request whose transaction already committed."""
    if not product_ids:
        return
    result = await db.execute(
        select(Product).where(Product.id.in_(product_ids)).execution_options(populate_existing=True)
    )
    for product in result.scalars():
        try:
            await cache_stock(product)
        except Exception as exc:
            logger.warning("Stock cache refresh failed for %s: %s", product.id, exc)
