"""
QR Menu Order Service - Order & payment schemas
"""
from datetime import datetime
from decimal import Decimal
from typing import Literal
from pydantic import BaseModel, Field

from qrmenu.models.order import OrderType, PaymentMethod


class CheckoutItemRequest(BaseModel):
    product_id: str = Field(..., examples=["a0c1..."])
    quantity: int = Field(..., ge=1, le=100)
    price: Decimal | None = Field(None, description="Price shown to the customer; the catalog price is charged.")
    notes: str | None = Field(None, max_length=500)
    variant_ids: list[str] = Field(default_factory=list, max_length=10)


class CheckoutRequest(BaseModel):
    restaurant_id: str
    order_type: OrderType = OrderType.DINE_IN
    table_number: str | None = Field(None, max_length=20)
    customer_name: str | None = Field(None, max_length=255)
    customer_phone: str | None = Field(None, max_length=32)
    coupon_code: str | None = Field(None, max_length=64)
    items: list[CheckoutItemRequest] = Field(..., min_length=1, max_length=50)


class OrderItemResponse(BaseModel):
    id: str
    product_id: str
    product_name: str
    quantity: int
    unit_price: Decimal
    notes: str | None = None
    variants: list[dict] = []

    model_config = {"from_attributes": True}


class OrderResponse(BaseModel):
    id: str
    order_number: str
    restaurant_id: str
    status: str
    order_type: str
    table_number: str | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    coupon_code: str | None = None
    payment_status: str
    payment_method: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    items: list[OrderItemResponse]

    model_config = {"from_attributes": True}


class QueueInfo(BaseModel):
    ahead: int
    avg_prep_min_minutes: int
    avg_prep_max_minutes: int
    eta_min_minutes: int
    eta_max_minutes: int


class OrderTrackingResponse(OrderResponse):
    queue: QueueInfo


class StatusUpdateRequest(BaseModel):
    # Plain string: statuses outside the known set are handled by the service.
    status: str = Field(..., min_length=1, max_length=20, examples=["confirmed"])
    table_number: str | None = Field(None, max_length=20)
    customer_name: str | None = Field(None, max_length=255)
    customer_phone: str | None = Field(None, max_length=32)


class DeleteOrderResponse(BaseModel):
    order_id: str
    order_number: str
    deleted: bool = True


class PaymentResponse(BaseModel):
    id: str
    type: str
    order_id: str | None = None
    amount: Decimal
    status: str
    payment_method: str | None = None

    model_config = {"from_attributes": True}


class OpenPaymentRequest(BaseModel):
    provider_reference: str | None = Field(None, max_length=255)


class PaymentCallbackRequest(BaseModel):
    payment_id: str
    status: Literal["paid", "failed"]
    method: PaymentMethod = PaymentMethod.ONLINE


class CashPaymentResponse(BaseModel):
    order_id: str
    order_number: str
    payment_status: str
    payment_method: str | None = None
