"""
QR Menu Order Service - Domain errors

Raised by the ledger, the coupon evaluator and the order services.
Routers translate them into HTTP responses; nothing here is swallowed.
"""
from decimal import Decimal


class DomainError(Exception):
    """Base class. ``str(exc)`` is the user-facing message."""

    status_code: int = 400


# ── Not found ─────────────────────────────────────────────────────────────────
class NotFound(DomainError):
    status_code = 404


class OrderNotFound(NotFound):
    def __init__(self, ref: str):
        super().__init__(f"Order '{ref}' not found.")
        self.ref = ref


class ProductNotFound(NotFound):
    def __init__(self, product_id: str):
        super().__init__(f"Product '{product_id}' not found.")
        self.product_id = product_id


class RestaurantNotFound(NotFound):
    def __init__(self, restaurant_id: str):
        super().__init__(f"Restaurant '{restaurant_id}' not found.")
        self.restaurant_id = restaurant_id


class PaymentNotFound(NotFound):
    def __init__(self, payment_id: str):
        super().__init__(f"Payment '{payment_id}' not found.")
        self.payment_id = payment_id


# ── Stock ─────────────────────────────────────────────────────────────────────
class InsufficientStock(DomainError):
    status_code = 409

    def __init__(self, product_name: str, requested: int, available: int | None = None):
        msg = f"Insufficient stock for '{product_name}': requested={requested}"
        if available is not None:
            msg += f", available={available}"
        super().__init__(msg)
        self.product_name = product_name
        self.requested = requested
        self.available = available


class ProductUnavailable(DomainError):
    status_code = 409

    def __init__(self, product_name: str):
        super().__init__(f"'{product_name}' is currently unavailable.")
        self.product_name = product_name


# ── Orders / coupons ──────────────────────────────────────────────────────────
class InvalidTransition(DomainError):
    def __init__(self, status: str):
        super().__init__(f"Unknown order status '{status}'.")
        self.status = status


class InvalidCoupon(DomainError):
    def __init__(self, reason: str, min_amount: Decimal | None = None):
        super().__init__(reason)
        self.min_amount = min_amount


class CheckoutRejected(DomainError):
    pass


class DuplicateCampaignCode(DomainError):
    status_code = 409

    def __init__(self, code: str):
        super().__init__(f"Coupon code '{code}' is already in use.")
        self.code = code
