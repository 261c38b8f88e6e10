"""
QR Menu Order Service - Coupon / campaign evaluation

evaluate_campaign() is the pure rule set. validate_coupon() adds the lookup
and never mutates anything; redeem_coupon() is the checkout-side usage
increment, guarded so a limited coupon cannot be over-redeemed.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import select, update, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.core.errors import InvalidCoupon, DuplicateCampaignCode
from qrmenu.db.database import unit_of_work
from qrmenu.models.campaign import Campaign, CampaignType

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


@dataclass(frozen=True)
class CouponQuote:
    campaign: Campaign
    code: str
    subtotal: Decimal
    discount: Decimal

    @property
    def total(self) -> Decimal:
        return self.subtotal - self.discount


def normalize_code(code: str) -> str:
    return code.strip().upper()


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC.
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def evaluate_campaign(campaign: Campaign, subtotal: Decimal, now: datetime | None = None) -> Decimal:
    """
    Return the discount `campaign` grants on `subtotal`, or raise InvalidCoupon.

    percentage: subtotal * value / 100, capped by max_discount when set.
    fixed:      value. max_discount does not apply.
    Either way the discount never exceeds the subtotal.
    """
    now = now or datetime.now(timezone.utc)

    if not campaign.is_active:
        raise InvalidCoupon("Coupon is not active.")
    if now < _as_utc(campaign.start_date) or now > _as_utc(campaign.end_date):
        raise InvalidCoupon("Coupon is not valid at this time.")
    if campaign.usage_limit is not None and campaign.used_count >= campaign.usage_limit:
        raise InvalidCoupon("Coupon usage limit has been reached.")
    if campaign.min_amount is not None and subtotal < campaign.min_amount:
        raise InvalidCoupon(
            f"Minimum order amount for this coupon is {campaign.min_amount}.",
            min_amount=campaign.min_amount,
        )

    value = Decimal(campaign.value)
    if campaign.type == CampaignType.PERCENTAGE.value:
        discount = subtotal * value / Decimal(100)
        if campaign.max_discount is not None:
            discount = min(discount, Decimal(campaign.max_discount))
    elif campaign.type == CampaignType.FIXED.value:
        discount = value
    else:
        raise InvalidCoupon(f"Unsupported coupon type '{campaign.type}'.")

    discount = max(Decimal(0), min(discount, subtotal))
    return discount.quantize(CENT, rounding=ROUND_HALF_UP)


async def get_campaign(db: AsyncSession, restaurant_id: str, code: str) -> Campaign | None:
    result = await db.execute(
        select(Campaign).where(
            Campaign.restaurant_id == restaurant_id,
            Campaign.code == normalize_code(code),
        )
    )
    return result.scalar_one_or_none()


async def validate_coupon(
    db: AsyncSession,
    restaurant_id: str,
    code: str,
    subtotal: Decimal,
    now: datetime | None = None,
) -> CouponQuote:
    campaign = await get_campaign(db, restaurant_id, code)
    if campaign is None:
        raise InvalidCoupon("Coupon code not found.")
    discount = evaluate_campaign(campaign, subtotal, now)
    return CouponQuote(campaign=campaign, code=campaign.code, subtotal=subtotal, discount=discount)


async def redeem_coupon(db: AsyncSession, campaign_id: str) -> None:
    """Count one use. Runs inside the checkout transaction."""
    result = await db.execute(
        update(Campaign)
        .where(
            Campaign.id == campaign_id,
            or_(Campaign.usage_limit.is_(None), Campaign.used_count < Campaign.usage_limit),
        )
        .values(used_count=Campaign.used_count + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise InvalidCoupon("Coupon usage limit has been reached.")


# ── Admin ─────────────────────────────────────────────────────────────────────
async def list_campaigns(db: AsyncSession, restaurant_id: str) -> list[Campaign]:
    result = await db.execute(
        select(Campaign)
        .where(Campaign.restaurant_id == restaurant_id)
        .order_by(Campaign.created_at.desc())
    )
    return list(result.scalars().all())


async def create_campaign(db: AsyncSession, restaurant_id: str, **fields) -> Campaign:
    campaign = Campaign(restaurant_id=restaurant_id, **fields)
    campaign.code = normalize_code(campaign.code)
    try:
        async with unit_of_work(db):
            db.add(campaign)
    except IntegrityError:
        raise DuplicateCampaignCode(campaign.code)
    logger.info("Campaign %s created for restaurant %s", campaign.code, restaurant_id)
    return campaign
