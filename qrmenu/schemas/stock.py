"""
QR Menu Order Service - Stock schemas
"""
from pydantic import BaseModel, Field


class StockItem(BaseModel):
    product_id: str
    name: str
    stock: int | None  # None = unlimited
    is_available: bool


class RestockRequest(BaseModel):
    quantity: int = Field(..., ge=1, le=100000)
