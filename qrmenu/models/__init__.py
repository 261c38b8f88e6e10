from qrmenu.models.catalog import Restaurant, Product, ProductVariant
from qrmenu.models.order import Order, OrderItem, OrderStatus, OrderType, PaymentStatus, PaymentMethod
from qrmenu.models.campaign import Campaign, CampaignType
from qrmenu.models.payment import Payment, PaymentType, PaymentRecordStatus

__all__ = [
    "Restaurant", "Product", "ProductVariant",
    "Order", "OrderItem", "OrderStatus", "OrderType", "PaymentStatus", "PaymentMethod",
    "Campaign", "CampaignType",
    "Payment", "PaymentType", "PaymentRecordStatus",
]
