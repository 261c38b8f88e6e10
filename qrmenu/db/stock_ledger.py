"""
QR Menu Order Service - Stock ledger

The only code allowed to change products.stock. Both operations run inside
the caller's transaction; a failed reservation leaves the row untouched and
the caller's rollback undoes any earlier reservations of the same attempt.
"""
import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from qrmenu.core.errors import InsufficientStock, ProductNotFound, ProductUnavailable
from qrmenu.models.catalog import Product, utcnow

logger = logging.getLogger(__name__)


async def try_reserve(db: AsyncSession, product_id: str, quantity: int) -> None:
    """
    Take `quantity` units of a product out of stock.

    Check and decrement are one conditional UPDATE:
      UPDATE products SET stock = stock - :q
      WHERE id = :id AND is_available AND stock IS NOT NULL AND stock >= :q
    so two concurrent reservations can never both pass on a stale read.
    When no row matched, the product is re-read only to explain why.
    Unlimited (NULL) stock is never written.
    """
    if quantity < 1:
        raise ValueError(f"quantity must be >= 1, got {quantity}")

    result = await db.execute(
        update(Product)
        .where(
            Product.id == product_id,
            Product.is_available.is_(True),
            Product.stock.is_not(None),
            Product.stock >= quantity,
        )
        .values(stock=Product.stock - quantity, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 1:
        return

    row = (await db.execute(
        select(Product.name, Product.stock, Product.is_available).where(Product.id == product_id)
    )).one_or_none()
    if row is None:
        raise ProductNotFound(product_id)

    name, stock, is_available = row
    if not is_available:
        raise ProductUnavailable(name)
    if stock is None:
        return
    raise InsufficientStock(name, requested=quantity, available=stock)


async def release(db: AsyncSession, product_id: str, quantity: int) -> None:
    """Return `quantity` units to stock. No-op for unlimited stock; ignores availability."""
    result = await db.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock.is_not(None))
        .values(stock=Product.stock + quantity, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        logger.debug("release(%s, %d) left stock untouched (unlimited or missing)", product_id, quantity)
