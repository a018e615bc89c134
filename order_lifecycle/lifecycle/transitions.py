"""Client-side guards for status-changing actions.

The order-service is the authority on which transitions are legal for
business reasons. These guards only keep obviously meaningless actions
(reopening a delivered order, cancelling twice) from being sent at all.
"""

from order_lifecycle.errors import InvalidTransitionError
from order_lifecycle.lifecycle.status_model import is_terminal, status_color, status_label
from order_lifecycle.models.order import OrderStatus
from order_lifecycle.models.progress import AvailableActions, StatusOption

# Statuses that come before approval; a rider cannot be assigned yet
PRE_APPROVAL_STATUSES: frozenset[OrderStatus] = frozenset(
    {OrderStatus.CREATED, OrderStatus.PENDING}
)


class TransitionValidator:
    """Coarse terminal-state guard over status changes, cancels and assignments."""

    @classmethod
    def can_transition(cls, current: OrderStatus, requested: OrderStatus) -> bool:
        """Check whether a status change may be offered."""
        if is_terminal(current):
            return requested == current
        return True

    @classmethod
    def is_noop(cls, current: OrderStatus, requested: OrderStatus) -> bool:
        """A request for the status the order already has; nothing to send."""
        return current == requested

    @classmethod
    def validate_transition(cls, current: OrderStatus, requested: OrderStatus) -> None:
        """Raise InvalidTransitionError unless the change may be offered."""
        if not cls.can_transition(current, requested):
            raise InvalidTransitionError(current, requested)

    @classmethod
    def validate_cancel(cls, current: OrderStatus, reason: str | None) -> str:
        """
        Check a cancel request and return the cleaned reason.

        The reason is checked first, so a blank reason is rejected whatever
        the order's status.
        """
        cleaned = (reason or "").strip()
        if not cleaned:
            raise InvalidTransitionError(
                current,
                OrderStatus.CANCELLED,
                message="A cancellation reason is required",
            )
        if is_terminal(current):
            raise InvalidTransitionError(
                current,
                OrderStatus.CANCELLED,
                message=f"Order is already {current.value} and cannot be cancelled",
            )
        return cleaned

    @classmethod
    def validate_assignment(cls, current: OrderStatus) -> None:
        """Riders can only be assigned to approved, still active orders."""
        if current in PRE_APPROVAL_STATUSES:
            raise InvalidTransitionError(
                current,
                OrderStatus.ASSIGNED,
                message="Order must be approved before a rider can be assigned",
            )
        if is_terminal(current):
            raise InvalidTransitionError(
                current,
                OrderStatus.ASSIGNED,
                message=f"Cannot assign a rider to a {current.value} order",
            )

    @classmethod
    def can_assign(cls, current: OrderStatus) -> bool:
        return current not in PRE_APPROVAL_STATUSES and not is_terminal(current)

    @classmethod
    def status_options(cls, current: OrderStatus) -> list[StatusOption]:
        """The status-update menu, with unavailable targets disabled."""
        return [
            StatusOption(
                status=status,
                label=status_label(status),
                color=status_color(status),
                enabled=cls.can_transition(current, status),
            )
            for status in OrderStatus
        ]

    @classmethod
    def available_actions(cls, current: OrderStatus) -> AvailableActions:
        active = not is_terminal(current)
        return AvailableActions(
            update_status=active,
            cancel=active,
            assign_rider=cls.can_assign(current),
        )
