"""
QR Menu Order Service - Customer orders API

Checkout places a pending order; nothing is reserved until an admin confirms.
Tracking is read-only polling by order number.
"""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.api.deps import http_error
from qrmenu.core.config import get_settings
from qrmenu.core.errors import DomainError
from qrmenu.db.database import get_db
from qrmenu.schemas.order import (
    CashPaymentResponse,
    CheckoutRequest,
    OpenPaymentRequest,
    OrderResponse,
    OrderTrackingResponse,
    PaymentResponse,
    QueueInfo,
)
from qrmenu.services import orders as order_service
from qrmenu.services import payments as payment_service

settings = get_settings()
logger = logging.getLogger(__name__)
router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(payload: CheckoutRequest, db: AsyncSession = Depends(get_db)):
    """
    Place an order from the QR menu.
    Duplicate submissions with the same Idempotency-Key are replayed by IdempotencyMiddleware.
    """
    lines = [
        order_service.CartLine(
            product_id=item.product_id,
            quantity=item.quantity,
            notes=item.notes,
            variant_ids=list(item.variant_ids),
        )
        for item in payload.items
    ]
    try:
        order = await order_service.checkout(
            db,
            restaurant_id=payload.restaurant_id,
            lines=lines,
            order_type=payload.order_type.value,
            table_number=payload.table_number,
            customer_name=payload.customer_name,
            customer_phone=payload.customer_phone,
            coupon_code=payload.coupon_code,
        )
    except DomainError as e:
        raise http_error(e)
    return order


@router.get("/{order_number}", response_model=OrderTrackingResponse)
async def track_order(order_number: str, db: AsyncSession = Depends(get_db)):
    """Order status plus a rough queue position / ETA for the tracking page."""
    try:
        order = await order_service.get_order_by_number(db, order_number)
    except DomainError as e:
        raise http_error(e)

    estimate = await order_service.estimate_queue(db, order)
    body = OrderResponse.model_validate(order).model_dump()
    return OrderTrackingResponse(
        **body,
        queue=QueueInfo(
            ahead=estimate.ahead,
            avg_prep_min_minutes=settings.ORDER_PREP_MIN_MINUTES,
            avg_prep_max_minutes=settings.ORDER_PREP_MAX_MINUTES,
            eta_min_minutes=estimate.eta_min_minutes,
            eta_max_minutes=estimate.eta_max_minutes,
        ),
    )


@router.post("/{order_number}/cash-payment", response_model=CashPaymentResponse)
async def cash_payment(order_number: str, db: AsyncSession = Depends(get_db)):
    """Customer chose to pay at the counter."""
    try:
        order = await payment_service.mark_cash_payment(db, order_number)
    except DomainError as e:
        raise http_error(e)
    return CashPaymentResponse(
        order_id=order.id,
        order_number=order.order_number,
        payment_status=order.payment_status,
        payment_method=order.payment_method,
    )


@router.post("/{order_number}/payments", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def open_payment(
    order_number: str,
    payload: OpenPaymentRequest | None = None,
    db: AsyncSession = Depends(get_db),
):
    """Open a pending payment record before handing the customer to a payment provider."""
    try:
        payment = await payment_service.open_order_payment(
            db, order_number, provider_reference=payload.provider_reference if payload else None
        )
    except DomainError as e:
        raise http_error(e)
    return payment
