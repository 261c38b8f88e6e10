"""
QR Menu Order Service - Order status classification

While an order sits in a stock-deducted status its items hold reserved
stock. Moving across the boundary reserves or releases; moving within one
side of it does nothing to stock.
"""
from enum import Enum as PyEnum

from qrmenu.models.order import OrderStatus

STOCK_DEDUCTED: frozenset[str] = frozenset({
    OrderStatus.CONFIRMED.value,
    OrderStatus.PREPARING.value,
    OrderStatus.READY.value,
    OrderStatus.COMPLETED.value,
})
STOCK_NOT_DEDUCTED: frozenset[str] = frozenset({
    OrderStatus.PENDING.value,
    OrderStatus.CANCELLED.value,
})

# Statuses counted as "in the queue" for the tracking page ETA.
ACTIVE_STATUSES: tuple[str, ...] = (
    OrderStatus.PENDING.value,
    OrderStatus.CONFIRMED.value,
    OrderStatus.PREPARING.value,
)


class StockMovement(str, PyEnum):
    RESERVE = "reserve"
    RELEASE = "release"
    NONE = "none"


def is_stock_deducted(status: str) -> bool | None:
    """True/False for known statuses, None for anything else."""
    value = status.value if isinstance(status, OrderStatus) else status
    if value in STOCK_DEDUCTED:
        return True
    if value in STOCK_NOT_DEDUCTED:
        return False
    return None


def is_known_status(status: str) -> bool:
    return is_stock_deducted(status) is not None


def stock_movement(current: str, target: str) -> StockMovement:
    """What a current -> target change must do to stock. Unknown statuses never move stock."""
    was_deducted = is_stock_deducted(current)
    will_be_deducted = is_stock_deducted(target)
    if was_deducted is None or will_be_deducted is None:
        return StockMovement.NONE
    if not was_deducted and will_be_deducted:
        return StockMovement.RESERVE
    if was_deducted and not will_be_deducted:
        return StockMovement.RELEASE
    return StockMovement.NONE
