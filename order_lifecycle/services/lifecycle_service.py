"""Status-changing actions against orders, guarded and followed by a refetch."""

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from order_lifecycle.errors import (
    ActionInProgressError,
    AuthenticationError,
    InvalidTransitionError,
    ServerError,
    StaleStateError,
    StatusConflictError,
)
from order_lifecycle.lifecycle.progress import ProgressProjector
from order_lifecycle.lifecycle.transitions import TransitionValidator
from order_lifecycle.models.order import Order, OrderStatus, StatusHistoryEntry
from order_lifecycle.models.progress import OrderView
from order_lifecycle.services.order_client import OrderServiceClient, get_order_client
from order_lifecycle.utils.logging import OrderActionLogger


class OrderLifecycleService:
    """
    Applies status updates, cancellations and rider assignments.

    The order-service owns the authoritative status. Every action is checked
    locally first, sent as a single request, and followed by a fresh read of
    the order; nothing is merged or applied optimistically.

    Responsibilities:
    - Reject meaningless actions before any request is made
    - Allow one outstanding action per order
    - Detect that the order changed underneath the caller
    - Build the order view (order, history, tracker, offered actions)
    """

    def __init__(
        self,
        client: OrderServiceClient,
        projector: ProgressProjector | None = None,
    ):
        self.client = client
        self.projector = projector or ProgressProjector()
        self.validator = TransitionValidator
        self.logger = OrderActionLogger("lifecycle_service")
        self._in_flight: set[str] = set()

    def is_busy(self, order_id: str) -> bool:
        """Whether an action on this order is still waiting for the order-service."""
        return order_id in self._in_flight

    async def load(self, order_id: str) -> OrderView:
        """Fetch an order with its history and derive the tracker."""
        order = await self.client.get_order(order_id)
        history = await self._load_history(order)
        return self.build_view(order, history)

    def build_view(self, order: Order, history: list[StatusHistoryEntry]) -> OrderView:
        return OrderView(
            order=order,
            history=history,
            progress=self.projector.project(
                order.status, history, reason=order.status_reason
            ),
            actions=self.validator.available_actions(order.status),
        )

    async def update_status(
        self,
        order_id: str,
        requested: OrderStatus,
        notes: str | None = None,
        expected: OrderStatus | None = None,
    ) -> OrderView:
        """
        Change an order's status.

        Args:
            order_id: Order to update
            requested: Target status
            notes: Optional note stored with the history entry
            expected: Status the caller believes the order has

        Returns:
            The order view read back after the change
        """
        async with self._exclusive(order_id):
            order = await self._fetch_current(order_id, expected)

            if self.validator.is_noop(order.status, requested):
                return await self._view_for(order)

            try:
                self.validator.validate_transition(order.status, requested)
            except InvalidTransitionError as e:
                self.logger.log_rejection(order_id, "update_status", e.message)
                raise

            start = time.time()
            try:
                await self.client.update_status(order_id, requested, notes=notes)
            except StatusConflictError as e:
                raise await self._stale(order_id, order.status, e) from e

            view = await self.load(order_id)
            self.logger.log_transition(
                order_id,
                "update_status",
                current=order.status.value,
                requested=requested.value,
                duration_ms=(time.time() - start) * 1000,
            )
            self.logger.log_refetch(order_id, view.order.status.value)

            if view.order.status != requested:
                raise StaleStateError(order_id, requested, view.order.status, view=view)
            return view

    async def cancel_order(
        self,
        order_id: str,
        reason: str,
        expected: OrderStatus | None = None,
    ) -> OrderView:
        """Cancel an order. A non-blank reason is required."""
        # Checked before anything else so a blank reason never reaches the network
        if not (reason or "").strip():
            self.logger.log_rejection(order_id, "cancel", "missing reason")
            raise InvalidTransitionError(
                expected,
                OrderStatus.CANCELLED,
                message="A cancellation reason is required",
            )

        async with self._exclusive(order_id):
            order = await self._fetch_current(order_id, expected)

            try:
                cleaned = self.validator.validate_cancel(order.status, reason)
            except InvalidTransitionError as e:
                self.logger.log_rejection(order_id, "cancel", e.message)
                raise

            start = time.time()
            try:
                await self.client.cancel_order(order_id, cleaned)
            except StatusConflictError as e:
                raise await self._stale(order_id, order.status, e) from e

            view = await self.load(order_id)
            self.logger.log_transition(
                order_id,
                "cancel",
                current=order.status.value,
                requested=OrderStatus.CANCELLED.value,
                duration_ms=(time.time() - start) * 1000,
            )
            self.logger.log_refetch(order_id, view.order.status.value)

            if view.order.status != OrderStatus.CANCELLED:
                raise StaleStateError(
                    order_id, OrderStatus.CANCELLED, view.order.status, view=view
                )
            return view

    async def assign_rider(
        self,
        order_id: str,
        rider_id: str,
        vehicle_id: str | None = None,
        expected: OrderStatus | None = None,
    ) -> OrderView:
        """Assign or reassign a rider; the order's status is left to the order-service."""
        async with self._exclusive(order_id):
            order = await self._fetch_current(order_id, expected)

            try:
                self.validator.validate_assignment(order.status)
            except InvalidTransitionError as e:
                self.logger.log_rejection(order_id, "assign_rider", e.message)
                raise

            start = time.time()
            try:
                await self.client.assign_rider(order_id, rider_id, vehicle_id=vehicle_id)
            except StatusConflictError as e:
                raise await self._stale(order_id, order.status, e) from e

            view = await self.load(order_id)
            self.logger.log_transition(
                order_id,
                "assign_rider",
                current=order.status.value,
                requested=view.order.status.value,
                duration_ms=(time.time() - start) * 1000,
                rider_id=rider_id,
                vehicle_id=vehicle_id,
            )
            self.logger.log_refetch(order_id, view.order.status.value)
            return view

    # Internals

    @asynccontextmanager
    async def _exclusive(self, order_id: str) -> AsyncIterator[None]:
        if order_id in self._in_flight:
            self.logger.log_rejection(order_id, "action", "another action is in progress")
            raise ActionInProgressError(order_id)
        self._in_flight.add(order_id)
        try:
            yield
        finally:
            self._in_flight.discard(order_id)

    async def _fetch_current(self, order_id: str, expected: OrderStatus | None) -> Order:
        order = await self.client.get_order(order_id)
        if expected is not None and order.status != expected:
            view = await self._view_for(order)
            self.logger.log_rejection(
                order_id,
                "action",
                "stale status",
                expected=expected.value,
                actual=order.status.value,
            )
            raise StaleStateError(order_id, expected, order.status, view=view)
        return order

    async def _view_for(self, order: Order) -> OrderView:
        return self.build_view(order, await self._load_history(order))

    async def _load_history(self, order: Order) -> list[StatusHistoryEntry]:
        try:
            return await self.client.get_history(order.id)
        except AuthenticationError:
            raise
        except ServerError as e:
            # The embedded updates are enough to draw the tracker
            self.logger.log_error(e.message, order.id, fallback="embedded_history")
            return list(order.status_history)

    async def _stale(
        self,
        order_id: str,
        assumed: OrderStatus,
        error: StatusConflictError,
    ) -> StaleStateError:
        self.logger.log_error(error.message, order_id, status_code=error.status_code)
        view = await self.load(order_id)
        return StaleStateError(order_id, assumed, view.order.status, view=view)


# Global lifecycle service instance; in-flight tracking must be shared across requests
_lifecycle_service: OrderLifecycleService | None = None


async def get_lifecycle_service() -> OrderLifecycleService:
    """Get the global lifecycle service instance."""
    global _lifecycle_service
    if _lifecycle_service is None:
        _lifecycle_service = OrderLifecycleService(await get_order_client())
    return _lifecycle_service


def reset_lifecycle_service() -> None:
    global _lifecycle_service
    _lifecycle_service = None
