"""Status vocabulary queries: terminality, tracker position and display."""

from order_lifecycle.models.order import OrderStatus

TERMINAL_STATUSES: frozenset[OrderStatus] = frozenset(
    {
        OrderStatus.DELIVERED,
        OrderStatus.COMPLETED,
        OrderStatus.CANCELLED,
        OrderStatus.FAILED,
        OrderStatus.RETURNED,
    }
)

# Statuses that leave the normal progression and replace the tracker with a banner
EXCEPTION_STATUSES: frozenset[OrderStatus] = frozenset(
    {OrderStatus.CANCELLED, OrderStatus.FAILED}
)

PROGRESS_STEPS: tuple[str, ...] = (
    "Pending",
    "Confirmed",
    "Picked Up",
    "In Transit",
    "Delivered",
)

STEP_ORDINALS: dict[OrderStatus, int] = {
    OrderStatus.CREATED: 0,
    OrderStatus.PENDING: 0,
    OrderStatus.APPROVED: 1,
    OrderStatus.ASSIGNED: 1,
    OrderStatus.PICKED_UP: 2,
    OrderStatus.IN_TRANSIT: 3,
    OrderStatus.DELIVERED: 4,
}

STATUS_COLORS: dict[OrderStatus, str] = {
    OrderStatus.CREATED: "info",
    OrderStatus.PENDING: "info",
    OrderStatus.APPROVED: "primary",
    OrderStatus.ASSIGNED: "secondary",
    OrderStatus.PICKED_UP: "secondary",
    OrderStatus.IN_TRANSIT: "info",
    OrderStatus.DELIVERED: "success",
    OrderStatus.COMPLETED: "success",
    OrderStatus.CANCELLED: "error",
    OrderStatus.FAILED: "error",
    OrderStatus.RETURNED: "warning",
}


def is_terminal(status: OrderStatus) -> bool:
    """True once no further status change should be offered."""
    return status in TERMINAL_STATUSES


def ordinal_of(status: OrderStatus) -> int | None:
    """
    Position of a status on the five-step tracker.

    Returns None for statuses outside the normal progression; callers render
    an exception view or a fully completed tracker instead of a step index.
    """
    return STEP_ORDINALS.get(status)


def status_label(status: OrderStatus) -> str:
    return status.value.replace("-", " ").replace("_", " ").upper()


def status_color(status: OrderStatus) -> str:
    return STATUS_COLORS.get(status, "info")
