"""Coupon evaluation rules and the per-restaurant lookup."""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from qrmenu.core.errors import InvalidCoupon
from qrmenu.models.campaign import Campaign
from qrmenu.services.coupons import evaluate_campaign, redeem_coupon, validate_coupon

from factories import make_campaign

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


def _campaign(**overrides) -> Campaign:
    fields = dict(
        name="Test",
        code="TEST",
        type="percentage",
        value=Decimal("20"),
        min_amount=None,
        max_discount=None,
        start_date=NOW - timedelta(days=1),
        end_date=NOW + timedelta(days=1),
        usage_limit=None,
        used_count=0,
        is_active=True,
    )
    fields.update(overrides)
    return Campaign(**fields)


def test_percentage_discount_is_capped_by_max_discount():
    campaign = _campaign(value=Decimal("20"), max_discount=Decimal("50"))
    assert evaluate_campaign(campaign, Decimal("1000"), NOW) == Decimal("50.00")


def test_percentage_discount_below_cap():
    campaign = _campaign(value=Decimal("20"), max_discount=Decimal("50"))
    assert evaluate_campaign(campaign, Decimal("100"), NOW) == Decimal("20.00")


def test_fixed_discount_ignores_max_discount():
    campaign = _campaign(type="fixed", value=Decimal("80"), max_discount=Decimal("50"))
    assert evaluate_campaign(campaign, Decimal("200"), NOW) == Decimal("80.00")


def test_discount_never_exceeds_subtotal():
    campaign = _campaign(type="fixed", value=Decimal("40"))
    assert evaluate_campaign(campaign, Decimal("25"), NOW) == Decimal("25.00")


def test_minimum_amount_boundary():
    campaign = _campaign(type="fixed", value=Decimal("10"), min_amount=Decimal("100"))
    with pytest.raises(InvalidCoupon) as exc:
        evaluate_campaign(campaign, Decimal("99"), NOW)
    assert exc.value.min_amount == Decimal("100")
    assert evaluate_campaign(campaign, Decimal("100"), NOW) == Decimal("10.00")


def test_percentage_rounds_to_cents():
    campaign = _campaign(value=Decimal("15"))
    assert evaluate_campaign(campaign, Decimal("33.33"), NOW) == Decimal("5.00")


@pytest.mark.parametrize(
    "overrides",
    [
        {"is_active": False},
        {"start_date": NOW + timedelta(minutes=1)},
        {"end_date": NOW - timedelta(minutes=1)},
        {"usage_limit": 3, "used_count": 3},
    ],
)
def test_ineligible_campaigns_are_rejected(overrides):
    with pytest.raises(InvalidCoupon):
        evaluate_campaign(_campaign(**overrides), Decimal("100"), NOW)


def test_naive_dates_are_read_as_utc():
    campaign = _campaign(
        start_date=(NOW - timedelta(hours=1)).replace(tzinfo=None),
        end_date=(NOW + timedelta(hours=1)).replace(tzinfo=None),
    )
    assert evaluate_campaign(campaign, Decimal("100"), NOW) == Decimal("20.00")


@pytest.mark.asyncio
async def test_lookup_is_case_insensitive_and_trimmed(db, restaurant):
    await make_campaign(db, restaurant, "SAVE10", type="fixed", value=Decimal("10"))
    quote = await validate_coupon(db, restaurant.id, "  save10 ", Decimal("60"))
    assert quote.code == "SAVE10"
    assert quote.discount == Decimal("10.00")
    assert quote.total == Decimal("50.00")


@pytest.mark.asyncio
async def test_coupon_of_another_restaurant_is_not_found(db, restaurant, other_restaurant):
    await make_campaign(db, other_restaurant, "THEIRS")
    with pytest.raises(InvalidCoupon, match="not found"):
        await validate_coupon(db, restaurant.id, "THEIRS", Decimal("100"))


@pytest.mark.asyncio
async def test_validation_does_not_count_a_use(db, restaurant):
    campaign = await make_campaign(db, restaurant, "ONCE", usage_limit=1)
    await validate_coupon(db, restaurant.id, "ONCE", Decimal("100"))
    await validate_coupon(db, restaurant.id, "ONCE", Decimal("100"))
    await db.refresh(campaign)
    assert campaign.used_count == 0


@pytest.mark.asyncio
async def test_redeem_respects_usage_limit(db, restaurant):
    campaign = await make_campaign(db, restaurant, "TWICE", usage_limit=2)
    await redeem_coupon(db, campaign.id)
    await redeem_coupon(db, campaign.id)
    with pytest.raises(InvalidCoupon):
        await redeem_coupon(db, campaign.id)
    await db.refresh(campaign)
    assert campaign.used_count == 2
