"""
Error taxonomy for order lifecycle actions.

Local guard failures (InvalidTransitionError, ActionInProgressError) are
raised before any request leaves the process. Order-service failures are
OrderServiceError subclasses. None of them are retried automatically.
"""

from typing import Any


class OrderLifecycleError(Exception):
    """Base class for all lifecycle errors."""

    code = "lifecycle_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidTransitionError(OrderLifecycleError):
    """A requested status change is not allowed from the current status."""

    code = "invalid_transition"

    def __init__(self, current: Any, requested: Any, message: str | None = None):
        self.current = current
        self.requested = requested
        current_value = getattr(current, "value", current)
        requested_value = getattr(requested, "value", requested)
        super().__init__(
            message or f"Cannot change order status from {current_value} to {requested_value}",
            details={"current": current_value, "requested": requested_value},
        )


class ActionInProgressError(OrderLifecycleError):
    """Another status-changing action on the same order has not finished."""

    code = "action_in_progress"

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(
            f"Another action on order {order_id} is still in progress",
            details={"order_id": order_id},
        )


class StaleStateError(OrderLifecycleError):
    """The order's status changed underneath the caller."""

    code = "stale_state"

    def __init__(self, order_id: str, expected: Any, actual: Any, view: Any = None):
        self.order_id = order_id
        self.expected = expected
        self.actual = actual
        # Authoritative state read back from the order-service, when available
        self.view = view
        expected_value = getattr(expected, "value", expected)
        actual_value = getattr(actual, "value", actual)
        super().__init__(
            f"Order {order_id} is now {actual_value}, expected {expected_value}",
            details={"order_id": order_id, "expected": expected_value, "actual": actual_value},
        )


class OrderServiceError(OrderLifecycleError):
    """Base class for failures talking to the order-service."""

    code = "order_service_error"


class NetworkError(OrderServiceError):
    """The order-service could not be reached."""

    code = "network_error"


class ServerError(OrderServiceError):
    """The order-service answered with an error."""

    code = "server_error"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, details={"status_code": status_code, **(details or {})})


class AuthenticationError(ServerError):
    """The order-service rejected the bearer token (401)."""

    code = "authentication_error"


class StatusConflictError(ServerError):
    """The order-service reported a conflicting concurrent change (409)."""

    code = "status_conflict"
