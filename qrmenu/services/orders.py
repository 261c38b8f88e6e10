"""
QR Menu Order Service - Order lifecycle

Checkout creates a `pending` order without touching stock. Admin status
changes go through request_transition(), which in a single transaction:
  1. re-reads the order and its items
  2. reserves stock (entering confirmed/preparing/ready/completed) or
     releases it (returning to pending/cancelled)
  3. writes the new status guarded by version_id
A failed reservation or a lost version race rolls everything back; the
latter is retried from a fresh read by @with_optimistic_retry.
"""
import logging
import secrets
import time
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from datetime import datetime

from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from qrmenu.core.config import get_settings
from qrmenu.core.errors import (
    CheckoutRejected,
    InsufficientStock,
    InvalidTransition,
    OrderNotFound,
    ProductNotFound,
    ProductUnavailable,
    RestaurantNotFound,
)
from qrmenu.core.optimistic_lock import StaleDataError, with_optimistic_retry
from qrmenu.db.database import unit_of_work
from qrmenu.db import stock_ledger
from qrmenu.models.catalog import Product, ProductVariant, Restaurant, utcnow
from qrmenu.models.order import Order, OrderItem, OrderStatus, OrderType, PaymentStatus
from qrmenu.services.coupons import CENT, redeem_coupon, validate_coupon
from qrmenu.services.order_status import (
    ACTIVE_STATUSES,
    StockMovement,
    is_known_status,
    is_stock_deducted,
    stock_movement,
)

settings = get_settings()
logger = logging.getLogger(__name__)

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


@dataclass
class CartLine:
    product_id: str
    quantity: int
    notes: str | None = None
    variant_ids: list[str] = field(default_factory=list)


@dataclass
class ContactUpdate:
    """Optional contact edits sent with a status change. None/empty keeps the stored value."""
    table_number: str | None = None
    customer_name: str | None = None
    customer_phone: str | None = None

    def changes(self) -> dict[str, str]:
        return {
            key: value
            for key, value in (
                ("table_number", self.table_number),
                ("customer_name", self.customer_name),
                ("customer_phone", self.customer_phone),
            )
            if value
        }


@dataclass
class QueueEstimate:
    ahead: int
    eta_min_minutes: int
    eta_max_minutes: int


def _to_base36(number: int) -> str:
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits)) or "0"


def generate_order_number() -> str:
    """ORD-<base36 epoch millis>-<4 random base36 chars>"""
    timestamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(secrets.choice(_BASE36) for _ in range(4))
    return f"ORD-{timestamp}-{suffix}"


# ── Checkout ──────────────────────────────────────────────────────────────────
async def checkout(
    db: AsyncSession,
    restaurant_id: str,
    lines: list[CartLine],
    order_type: str = OrderType.DINE_IN.value,
    table_number: str | None = None,
    customer_name: str | None = None,
    customer_phone: str | None = None,
    coupon_code: str | None = None,
    now: datetime | None = None,
) -> Order:
    """
    Create a pending order. Availability and stock are checked here but not
    reserved; reservation happens when an admin confirms the order.
    Unit prices come from the catalog, not from the client.
    """
    if not lines:
        raise CheckoutRejected("Cart is empty.")
    try:
        order_type = OrderType(order_type).value
    except ValueError:
        raise CheckoutRejected(f"Unknown order type '{order_type}'.")

    async with unit_of_work(db):
        restaurant = await db.get(Restaurant, restaurant_id)
        if restaurant is None or not restaurant.is_active:
            raise RestaurantNotFound(restaurant_id)
        if order_type == OrderType.TAKEAWAY.value and not restaurant.enable_takeaway:
            raise CheckoutRejected("Takeaway ordering is currently disabled.")

        product_ids = {line.product_id for line in lines}
        products = {
            p.id: p
            for p in (await db.execute(
                select(Product)
                .where(Product.id.in_(product_ids), Product.restaurant_id == restaurant_id)
                .execution_options(populate_existing=True)
            )).scalars()
        }
        variant_ids = {vid for line in lines for vid in line.variant_ids}
        variants: dict[str, ProductVariant] = {}
        if variant_ids:
            variants = {
                v.id: v
                for v in (await db.execute(
                    select(ProductVariant).where(ProductVariant.id.in_(variant_ids))
                )).scalars()
            }

        items: list[OrderItem] = []
        subtotal = Decimal(0)
        requested: dict[str, int] = defaultdict(int)
        for position, line in enumerate(lines):
            if line.quantity < 1:
                raise CheckoutRejected("Quantity must be at least 1.")
            product = products.get(line.product_id)
            if product is None:
                raise ProductNotFound(line.product_id)
            if not product.is_available:
                raise ProductUnavailable(product.name)
            requested[product.id] += line.quantity
            if product.stock is not None and product.stock < requested[product.id]:
                raise InsufficientStock(product.name, requested=requested[product.id], available=product.stock)

            unit_price = Decimal(product.price)
            selected = []
            for vid in line.variant_ids:
                variant = variants.get(vid)
                if variant is None or variant.product_id != product.id:
                    raise CheckoutRejected(f"Variant '{vid}' is not an option of '{product.name}'.")
                unit_price += Decimal(variant.price)
                selected.append({"id": variant.id, "name": variant.name, "price": str(variant.price)})

            subtotal += unit_price * line.quantity
            items.append(OrderItem(
                position=position,
                product_id=product.id,
                product_name=product.name,
                quantity=line.quantity,
                unit_price=unit_price,
                notes=line.notes or None,
                variants=selected,
            ))

        subtotal = subtotal.quantize(CENT)
        discount = Decimal("0.00")
        applied_code = None
        if coupon_code and coupon_code.strip():
            quote = await validate_coupon(db, restaurant_id, coupon_code, subtotal, now)
            await redeem_coupon(db, quote.campaign.id)
            discount = quote.discount
            applied_code = quote.code

        order = Order(
            order_number=generate_order_number(),
            restaurant_id=restaurant_id,
            status=OrderStatus.PENDING.value,
            order_type=order_type,
            table_number=None if order_type == OrderType.TAKEAWAY.value else (table_number or None),
            customer_name=customer_name or None,
            customer_phone=customer_phone or None,
            subtotal=subtotal,
            discount=discount,
            total=subtotal - discount,
            coupon_code=applied_code,
            payment_status=PaymentStatus.PENDING.value,
            items=items,
        )
        db.add(order)

    logger.info(
        "Order %s created for restaurant %s: total=%s discount=%s coupon=%s",
        order.order_number, restaurant_id, order.total, order.discount, applied_code,
    )
    return order


# ── Reads ─────────────────────────────────────────────────────────────────────
async def _load_order(db: AsyncSession, restaurant_id: str, order_id: str) -> Order | None:
    result = await db.execute(
        select(Order)
        .where(Order.id == order_id, Order.restaurant_id == restaurant_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_order(db: AsyncSession, restaurant_id: str, order_id: str) -> Order:
    order = await _load_order(db, restaurant_id, order_id)
    if order is None:
        raise OrderNotFound(order_id)
    return order


async def get_order_by_number(db: AsyncSession, order_number: str) -> Order:
    result = await db.execute(select(Order).where(Order.order_number == order_number))
    order = result.scalar_one_or_none()
    if order is None:
        raise OrderNotFound(order_number)
    return order


async def list_orders(db: AsyncSession, restaurant_id: str, status: str | None = None) -> list[Order]:
    query = select(Order).where(Order.restaurant_id == restaurant_id).order_by(Order.created_at.desc())
    if status:
        query = query.where(Order.status == status)
    result = await db.execute(query)
    return list(result.scalars().all())


async def estimate_queue(db: AsyncSession, order: Order) -> QueueEstimate:
    """Orders of the same restaurant placed earlier and not yet ready count as ahead."""
    ahead = (await db.execute(
        select(func.count(Order.id)).where(
            Order.restaurant_id == order.restaurant_id,
            Order.created_at < order.created_at,
            Order.status.in_(ACTIVE_STATUSES),
        )
    )).scalar_one()
    return QueueEstimate(
        ahead=ahead,
        eta_min_minutes=(ahead + 1) * settings.ORDER_PREP_MIN_MINUTES,
        eta_max_minutes=(ahead + 1) * settings.ORDER_PREP_MAX_MINUTES,
    )


# ── Status transitions ────────────────────────────────────────────────────────
@with_optimistic_retry()
async def request_transition(
    db: AsyncSession,
    restaurant_id: str,
    order_id: str,
    target_status: str,
    contact: ContactUpdate | None = None,
) -> Order:
    """
    Move an order to `target_status`, reserving or releasing stock as needed.

    Same-side moves (confirmed -> preparing, confirmed -> confirmed) leave
    stock alone, so replaying a request never deducts twice. An unknown
    status on either side skips stock entirely unless REJECT_UNKNOWN_STATUS
    is enabled, in which case an unknown target is refused.
    """
    target = target_status.value if isinstance(target_status, OrderStatus) else str(target_status)
    if settings.REJECT_UNKNOWN_STATUS and not is_known_status(target):
        raise InvalidTransition(target)

    async with unit_of_work(db):
        order = await _load_order(db, restaurant_id, order_id)
        if order is None:
            raise OrderNotFound(order_id)

        current = order.status
        movement = stock_movement(current, target)
        # Same product order in every transaction keeps row locks deadlock-free
        items = sorted(order.items, key=lambda i: i.product_id)
        if movement is StockMovement.RESERVE:
            for item in items:
                await stock_ledger.try_reserve(db, item.product_id, item.quantity)
        elif movement is StockMovement.RELEASE:
            for item in items:
                await stock_ledger.release(db, item.product_id, item.quantity)
        elif not (is_known_status(current) and is_known_status(target)):
            logger.warning(
                "Order %s: unknown status in %s -> %s, stock left untouched",
                order.order_number, current, target,
            )

        values = {"status": target, "version_id": order.version_id + 1, "updated_at": utcnow()}
        if contact is not None:
            values.update(contact.changes())

        result = await db.execute(
            update(Order)
            .where(Order.id == order.id, Order.version_id == order.version_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise StaleDataError(f"Order {order.id} changed concurrently.")

        for key, value in values.items():
            set_committed_value(order, key, value)

    logger.info(
        "Order %s: %s -> %s (stock %s)", order.order_number, current, target, movement.value,
    )
    return order


@with_optimistic_retry()
async def delete_order(db: AsyncSession, restaurant_id: str, order_id: str) -> str:
    """Remove an order and its items, first returning stock it still holds. Returns the order number."""
    async with unit_of_work(db):
        order = await _load_order(db, restaurant_id, order_id)
        if order is None:
            raise OrderNotFound(order_id)

        released = is_stock_deducted(order.status) is True
        if released:
            for item in sorted(order.items, key=lambda i: i.product_id):
                await stock_ledger.release(db, item.product_id, item.quantity)

        await db.execute(
            delete(OrderItem)
            .where(OrderItem.order_id == order.id)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(
            delete(Order)
            .where(Order.id == order.id, Order.version_id == order.version_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise StaleDataError(f"Order {order.id} changed concurrently.")
        order_number = order.order_number

    db.expunge_all()
    logger.info("Order %s deleted (stock released: %s)", order_number, released)
    return order_number


def stocked_product_ids(order: Order) -> list[str]:
    return sorted({item.product_id for item in order.items})

