"""
QR Menu Order Service - Payment results

Gateways (card/online providers) are external; they only tell us that a
payment record ended up paid or failed. Here that outcome is recorded and,
for order payments, mirrored into order.payment_status/payment_method.
Fulfillment status is never touched.
"""
import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.core.errors import CheckoutRejected, OrderNotFound, PaymentNotFound
from qrmenu.db.database import unit_of_work
from qrmenu.models.order import Order, PaymentMethod, PaymentStatus
from qrmenu.models.payment import Payment, PaymentRecordStatus, PaymentType

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = {PaymentRecordStatus.PAID.value, PaymentRecordStatus.FAILED.value}


async def _order_by_number(db: AsyncSession, order_number: str) -> Order:
    result = await db.execute(select(Order).where(Order.order_number == order_number))
    order = result.scalar_one_or_none()
    if order is None:
        raise OrderNotFound(order_number)
    return order


async def open_order_payment(db: AsyncSession, order_number: str, provider_reference: str | None = None) -> Payment:
    """Create the pending payment record a provider checkout will later report on."""
    async with unit_of_work(db):
        order = await _order_by_number(db, order_number)
        if order.payment_status == PaymentStatus.PAID.value:
            raise CheckoutRejected(f"Order {order_number} is already paid.")
        payment = Payment(
            type=PaymentType.ORDER.value,
            order_id=order.id,
            restaurant_id=order.restaurant_id,
            amount=Decimal(order.total),
            status=PaymentRecordStatus.PENDING.value,
            provider_reference=provider_reference,
        )
        db.add(payment)
    logger.info("Payment %s opened for order %s (%s)", payment.id, order_number, payment.amount)
    return payment


async def apply_payment_result(
    db: AsyncSession,
    payment_id: str,
    status: str,
    method: str = PaymentMethod.ONLINE.value,
) -> Payment:
    """
    Record a provider's terminal verdict. Callbacks are often delivered more
    than once; a payment that already reached paid/failed keeps its outcome.
    """
    status = PaymentRecordStatus(status).value
    if status not in TERMINAL_STATUSES:
        raise ValueError(f"Payment result must be paid or failed, got '{status}'.")
    method = PaymentMethod(method).value

    async with unit_of_work(db):
        payment = await db.get(Payment, payment_id, populate_existing=True)
        if payment is None:
            raise PaymentNotFound(payment_id)
        if payment.status in TERMINAL_STATUSES:
            logger.info("Payment %s already %s, ignoring '%s' callback", payment_id, payment.status, status)
            return payment

        payment.status = status
        payment.payment_method = method
        if payment.type == PaymentType.ORDER.value and payment.order_id:
            order = await db.get(Order, payment.order_id)
            if order is not None:
                order.payment_status = (
                    PaymentStatus.PAID.value if status == PaymentRecordStatus.PAID.value
                    else PaymentStatus.FAILED.value
                )
                order.payment_method = method

    logger.info("Payment %s marked %s via %s", payment_id, status, method)
    return payment


async def mark_cash_payment(db: AsyncSession, order_number: str) -> Order:
    """Customer pays at the counter."""
    async with unit_of_work(db):
        order = await _order_by_number(db, order_number)
        order.payment_status = PaymentStatus.PAID.value
        order.payment_method = PaymentMethod.CASH.value
    logger.info("Order %s paid in cash", order_number)
    return order
