"""Data models for the order lifecycle service."""

from order_lifecycle.models.order import (
    Order,
    OrderFilters,
    OrderPage,
    OrderStatus,
    StatusHistoryEntry,
    parse_status,
)
from order_lifecycle.models.progress import (
    AvailableActions,
    OrderProgress,
    OrderView,
    ProgressException,
    ProgressStep,
    StatusOption,
)

__all__ = [
    # Order
    "Order",
    "OrderFilters",
    "OrderPage",
    "OrderStatus",
    "StatusHistoryEntry",
    "parse_status",
    # Progress
    "AvailableActions",
    "OrderProgress",
    "OrderView",
    "ProgressException",
    "ProgressStep",
    "StatusOption",
]
