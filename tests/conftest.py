"""Pytest configuration and fixtures."""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncGenerator

import httpx
import pytest
import pytest_asyncio

from order_lifecycle.models.order import OrderStatus, StatusHistoryEntry
from order_lifecycle.services.lifecycle_service import OrderLifecycleService
from order_lifecycle.services.order_client import OrderServiceClient

BASE_URL = "http://order-service.test/api"
START_TIME = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


class FakeOrderBackend:
    """In-memory stand-in for the order-service, served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.orders: dict[str, dict[str, Any]] = {}
        self.history: dict[str, list[dict[str, Any]]] = {}
        self.requests: list[httpx.Request] = []
        self.clock = START_TIME

        # Knobs for failure scenarios
        self.conflict_on_mutation = False
        self.status_after_mutation: str | None = None
        self.history_status_code: int | None = None
        self.mutation_gate: asyncio.Event | None = None

    def add_order(
        self,
        order_id: str,
        status: str,
        path: list[str] | None = None,
        **fields: Any,
    ) -> dict[str, Any]:
        """Register an order, recording one history entry per status in ``path``."""
        self.orders[order_id] = {
            "id": order_id,
            "order_number": f"ORD-{order_id.upper()}",
            "status": status,
            "customer_name": "Asha Rao",
            "delivery_address": "12 MG Road, Bengaluru",
            **fields,
        }
        self.history[order_id] = []
        previous = None
        for step in path or [status]:
            self.record(order_id, previous, step, note=f"Status updated to {step}")
            previous = step
        return self.orders[order_id]

    @property
    def mutations(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method != "GET"]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.removeprefix("/api/").strip("/").split("/")

        if parts == ["orders"] and request.method == "GET":
            return self._list_orders(request)

        order_id = parts[1] if len(parts) > 1 else None
        if parts[0] != "orders" or order_id not in self.orders:
            return httpx.Response(404, json={"success": False, "error": "Order not found"})

        action = parts[2] if len(parts) > 2 else None

        if request.method == "GET" and action is None:
            order = dict(self.orders[order_id])
            order["order_status_updates"] = list(self.history[order_id])
            return httpx.Response(200, json={"success": True, "data": order})

        if request.method == "GET" and action == "history":
            if self.history_status_code is not None:
                return httpx.Response(
                    self.history_status_code,
                    json={"success": False, "error": "History unavailable"},
                )
            return httpx.Response(200, json={"success": True, "data": self.history[order_id]})

        if self.mutation_gate is not None:
            await self.mutation_gate.wait()

        if self.conflict_on_mutation:
            if self.status_after_mutation:
                self.orders[order_id]["status"] = self.status_after_mutation
            return httpx.Response(
                409, json={"success": False, "error": "Order status was changed by another user"}
            )

        body = json.loads(request.content) if request.content else {}
        order = self.orders[order_id]

        if request.method == "PATCH" and action == "status":
            self.record(order_id, order["status"], body["status"], note=body.get("notes"))
            order["status"] = body["status"]
        elif request.method == "POST" and action == "cancel":
            self.record(order_id, order["status"], "cancelled", note=body["reason"])
            order["status"] = "cancelled"
            order["status_reason"] = body["reason"]
        elif request.method == "POST" and action == "assign":
            order["rider_id"] = body["riderId"]
            order["vehicle_id"] = body.get("vehicleId")
        else:
            return httpx.Response(405, json={"success": False, "error": "Method not allowed"})

        if self.status_after_mutation:
            order["status"] = self.status_after_mutation

        return httpx.Response(
            200, json={"success": True, "message": "Order updated", "data": dict(order)}
        )

    def _list_orders(self, request: httpx.Request) -> httpx.Response:
        status = request.url.params.get("status")
        orders = [o for o in self.orders.values() if status is None or o["status"] == status]
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": orders,
                "pagination": {
                    "currentPage": int(request.url.params.get("page", 1)),
                    "totalPages": 1,
                    "totalItems": len(orders),
                    "itemsPerPage": int(request.url.params.get("limit", 20)),
                },
            },
        )

    def record(
        self,
        order_id: str,
        from_status: str | None,
        to_status: str,
        note: str | None = None,
    ) -> None:
        self.clock += timedelta(minutes=15)
        self.history[order_id].append(
            {
                "id": f"hist-{len(self.history[order_id]) + 1}",
                "order_id": order_id,
                "from_status": from_status,
                "to_status": to_status,
                "notes": note,
                "updated_by_name": "Dispatch Admin",
                "created_at": self.clock.isoformat().replace("+00:00", "Z"),
            }
        )


def make_entry(
    to_status: OrderStatus,
    minutes: int,
    from_status: OrderStatus | None = None,
    note: str | None = None,
) -> StatusHistoryEntry:
    """Build a history entry ``minutes`` after the fixed start time."""
    return StatusHistoryEntry(
        from_status=from_status,
        to_status=to_status,
        note=note,
        actor="Dispatch Admin",
        occurred_at=START_TIME + timedelta(minutes=minutes),
    )


@pytest.fixture
def backend() -> FakeOrderBackend:
    """Create an empty fake order-service."""
    return FakeOrderBackend()


@pytest_asyncio.fixture
async def order_client(backend: FakeOrderBackend) -> AsyncGenerator[OrderServiceClient, None]:
    """Create an order-service client wired to the fake backend."""
    client = OrderServiceClient(
        base_url=BASE_URL,
        token="test-token",
        timeout=5.0,
        transport=backend.transport(),
    )
    await client.connect()
    yield client
    await client.disconnect()


@pytest.fixture
def lifecycle_service(order_client: OrderServiceClient) -> OrderLifecycleService:
    """Create a lifecycle service over the fake backend."""
    return OrderLifecycleService(order_client)


@pytest.fixture
def full_delivery_history() -> list[StatusHistoryEntry]:
    """History of an order that went through every tracker step."""
    return [
        make_entry(OrderStatus.PENDING, 0),
        make_entry(OrderStatus.APPROVED, 10, OrderStatus.PENDING),
        make_entry(OrderStatus.PICKED_UP, 30, OrderStatus.APPROVED),
        make_entry(OrderStatus.IN_TRANSIT, 40, OrderStatus.PICKED_UP),
        make_entry(OrderStatus.DELIVERED, 70, OrderStatus.IN_TRANSIT),
    ]


@pytest.fixture
def entry_factory():
    """Factory for history entries at fixed offsets from the start time."""
    return make_entry
