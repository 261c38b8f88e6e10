"""
QR Menu Order Service - Campaign schemas
"""
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field, model_validator

from qrmenu.models.campaign import CampaignType


class CampaignCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    code: str = Field(..., min_length=2, max_length=64, examples=["SAVE10"])
    type: CampaignType
    value: Decimal = Field(..., gt=0)
    min_amount: Decimal | None = Field(None, ge=0)
    max_discount: Decimal | None = Field(None, gt=0)
    start_date: datetime
    end_date: datetime
    usage_limit: int | None = Field(None, ge=1)
    is_active: bool = True

    @model_validator(mode="after")
    def check_ranges(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        if self.type == CampaignType.PERCENTAGE and self.value > 100:
            raise ValueError("percentage value must be at most 100")
        return self


class CampaignResponse(BaseModel):
    id: str
    name: str
    code: str
    type: str
    value: Decimal
    min_amount: Decimal | None = None
    max_discount: Decimal | None = None
    start_date: datetime
    end_date: datetime
    usage_limit: int | None = None
    used_count: int
    is_active: bool

    model_config = {"from_attributes": True}


class CouponCampaignInfo(BaseModel):
    name: str
    type: str
    value: Decimal


class CouponValidationResponse(BaseModel):
    valid: bool = True
    code: str
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    campaign: CouponCampaignInfo
