"""
QR Menu Order Service - Stock read API
"""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.api.deps import http_error
from qrmenu.core.errors import DomainError
from qrmenu.db.database import get_db
from qrmenu.schemas.stock import StockItem
from qrmenu.services import stock as stock_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/stock", tags=["stock"])


@router.get("/{product_id}", response_model=StockItem)
async def get_stock(product_id: str, db: AsyncSession = Depends(get_db)):
    """Get current stock for a product. Also warms Redis cache."""
    try:
        product = await stock_service.get_product(db, product_id)
    except DomainError as e:
        raise http_error(e)

    try:
        await stock_service.cache_stock(product)
    except Exception as exc:
        logger.warning("Stock cache warm failed for %s: %s", product_id, exc)

    return StockItem(
        product_id=product.id, name=product.name, stock=product.stock, is_available=product.is_available
    )
