"""
QR Menu Order Service - Campaign (coupon) model

[CONFIG DATA] edited by restaurant admins; used_count grows at checkout.
"""
import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum as PyEnum
from sqlalchemy import String, Integer, Boolean, DateTime, Numeric, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column
from qrmenu.db.database import Base
from qrmenu.models.catalog import utcnow


class CampaignType(str, PyEnum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class Campaign(Base):
    """
    code is stored trimmed and upper-cased; lookups normalise the same way,
    which makes codes case-insensitive. Codes are unique per restaurant.
    """
    __tablename__ = "campaigns"
    __table_args__ = (UniqueConstraint("restaurant_id", "code", name="uq_campaign_restaurant_code"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    restaurant_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("restaurants.id", ondelete="CASCADE"), index=True, nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    value: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    min_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    max_discount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)  # percentage only
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    usage_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    used_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
