"""
QR Menu Order Service - Restaurant admin API

Every route is scoped to the restaurant_id claim of the admin's JWT;
orders of other restaurants answer 404.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.api.deps import current_restaurant_id, http_error
from qrmenu.core.errors import DomainError
from qrmenu.db.database import get_db
from qrmenu.schemas.campaign import CampaignCreateRequest, CampaignResponse
from qrmenu.schemas.order import DeleteOrderResponse, OrderResponse, StatusUpdateRequest
from qrmenu.schemas.stock import RestockRequest, StockItem
from qrmenu.services import coupons as coupon_service
from qrmenu.services import orders as order_service
from qrmenu.services import stock as stock_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"])


# ── Orders ────────────────────────────────────────────────────────────────────
@router.get("/orders", response_model=list[OrderResponse])
async def list_orders(
    status_filter: str | None = Query(None, alias="status", description="Filter by order status"),
    restaurant_id: str = Depends(current_restaurant_id),
    db: AsyncSession = Depends(get_db),
):
    """All orders of the restaurant, newest first, with items."""
    return await order_service.list_orders(db, restaurant_id, status=status_filter)


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    restaurant_id: str = Depends(current_restaurant_id),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await order_service.get_order(db, restaurant_id, order_id)
    except DomainError as e:
        raise http_error(e)


@router.put("/orders/{order_id}", response_model=OrderResponse)
async def update_order(
    order_id: str,
    payload: StatusUpdateRequest,
    restaurant_id: str = Depends(current_restaurant_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Change order status (and optionally table / customer details).
    Confirming reserves stock for every item or fails as a whole with 409;
    cancelling a confirmed order gives the stock back.
    """
    contact = order_service.ContactUpdate(
        table_number=payload.table_number,
        customer_name=payload.customer_name,
        customer_phone=payload.customer_phone,
    )
    try:
        order = await order_service.request_transition(
            db, restaurant_id, order_id, payload.status, contact=contact
        )
    except DomainError as e:
        raise http_error(e)
    except Exception:
        logger.exception("Status change failed for order %s", order_id)
        raise HTTPException(status_code=500, detail="Order status could not be updated.")

    await stock_service.refresh_stock_cache(db, order_service.stocked_product_ids(order))
    return order


@router.delete("/orders/{order_id}", response_model=DeleteOrderResponse)
async def delete_order(
    order_id: str,
    restaurant_id: str = Depends(current_restaurant_id),
    db: AsyncSession = Depends(get_db),
):
    """Delete an order; stock held by a confirmed/preparing/ready/completed order is returned."""
    try:
        order = await order_service.get_order(db, restaurant_id, order_id)
        product_ids = order_service.stocked_product_ids(order)
        order_number = await order_service.delete_order(db, restaurant_id, order_id)
    except DomainError as e:
        raise http_error(e)

    await stock_service.refresh_stock_cache(db, product_ids)
    return DeleteOrderResponse(order_id=order_id, order_number=order_number)


# ── Campaigns ─────────────────────────────────────────────────────────────────
@router.get("/campaigns", response_model=list[CampaignResponse])
async def list_campaigns(
    restaurant_id: str = Depends(current_restaurant_id),
    db: AsyncSession = Depends(get_db),
):
    return await coupon_service.list_campaigns(db, restaurant_id)


@router.post("/campaigns", response_model=CampaignResponse, status_code=status.HTTP_201_CREATED)
async def create_campaign(
    payload: CampaignCreateRequest,
    restaurant_id: str = Depends(current_restaurant_id),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await coupon_service.create_campaign(
            db,
            restaurant_id,
            name=payload.name,
            code=payload.code,
            type=payload.type.value,
            value=payload.value,
            min_amount=payload.min_amount,
            max_discount=payload.max_discount,
            start_date=payload.start_date,
            end_date=payload.end_date,
            usage_limit=payload.usage_limit,
            is_active=payload.is_active,
        )
    except DomainError as e:
        raise http_error(e)


# ── Products ──────────────────────────────────────────────────────────────────
@router.post("/products/{product_id}/restock", response_model=StockItem)
async def restock_product(
    product_id: str,
    payload: RestockRequest,
    restaurant_id: str = Depends(current_restaurant_id),
    db: AsyncSession = Depends(get_db),
):
    """Add units to a product's stock (e.g. after a failed confirmation)."""
    try:
        product = await stock_service.restock(db, restaurant_id, product_id, payload.quantity)
    except DomainError as e:
        raise http_error(e)

    await stock_service.refresh_stock_cache(db, [product.id])
    return StockItem(
        product_id=product.id, name=product.name, stock=product.stock, is_available=product.is_available
    )
