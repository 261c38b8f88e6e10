"""
QR Menu Order Service - Coupon check for the cart page
"""
from decimal import Decimal
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.api.deps import http_error
from qrmenu.core.errors import InvalidCoupon
from qrmenu.db.database import get_db
from qrmenu.schemas.campaign import CouponCampaignInfo, CouponValidationResponse
from qrmenu.services import coupons as coupon_service

router = APIRouter(prefix="/campaigns", tags=["campaigns"])


@router.get("/validate", response_model=CouponValidationResponse)
async def validate_coupon(
    restaurant_id: str = Query(...),
    code: str = Query(..., min_length=1, max_length=64),
    amount: Decimal = Query(Decimal("0"), ge=0, description="Cart subtotal"),
    db: AsyncSession = Depends(get_db),
):
    """Preview the discount a coupon gives on the current cart. Does not count as a use."""
    try:
        quote = await coupon_service.validate_coupon(db, restaurant_id, code, amount)
    except InvalidCoupon as e:
        raise http_error(e)

    return CouponValidationResponse(
        code=quote.code,
        subtotal=quote.subtotal,
        discount=quote.discount,
        total=quote.total,
        campaign=CouponCampaignInfo(
            name=quote.campaign.name, type=quote.campaign.type, value=quote.campaign.value
        ),
    )
