"""HTTP client for the order-service REST API."""

import time
from typing import Any

import httpx
from pydantic import ValidationError

from order_lifecycle.config import get_settings
from order_lifecycle.errors import (
    AuthenticationError,
    NetworkError,
    ServerError,
    StatusConflictError,
)
from order_lifecycle.models.order import (
    Order,
    OrderFilters,
    OrderPage,
    OrderStatus,
    StatusHistoryEntry,
)
from order_lifecycle.utils.logging import get_logger

logger = get_logger(__name__)


class OrderServiceClient:
    """
    Thin async wrapper around the order-service endpoints.

    Responses come wrapped as ``{"success": ..., "data": ..., "error": ...}``
    on the admin gateway and bare on the service itself; both are accepted.
    Failures are raised as OrderServiceError subclasses, never returned.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.order_service_url).rstrip("/")
        self.token = token if token is not None else settings.order_service_token
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.transport = transport
        self.http_client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Open the underlying HTTP connection pool."""
        if self.http_client is None:
            headers = {"Content-Type": "application/json"}
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self.http_client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=self.timeout,
                transport=self.transport,
            )
            logger.info("order_service_connected", base_url=self.base_url)

    async def disconnect(self) -> None:
        """Close the HTTP connection pool."""
        if self.http_client:
            await self.http_client.aclose()
            self.http_client = None
            logger.info("order_service_disconnected")

    async def __aenter__(self) -> "OrderServiceClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.disconnect()

    # Orders

    async def get_order(self, order_id: str) -> Order:
        """Fetch one order, including any embedded status history."""
        payload = await self._request("GET", f"/orders/{order_id}")
        return self._parse_order(self._unwrap(payload))

    async def get_history(self, order_id: str) -> list[StatusHistoryEntry]:
        """Fetch the full status history of an order."""
        payload = await self._request("GET", f"/orders/{order_id}/history")
        data = self._unwrap(payload)

        if isinstance(data, dict):
            data = data.get("history") or data.get("statusUpdates") or []
        if not isinstance(data, list):
            raise ServerError("Unexpected history payload from order-service")

        try:
            return [StatusHistoryEntry.model_validate(item) for item in data]
        except ValidationError as e:
            raise ServerError(
                "Malformed history entry from order-service",
                details={"errors": [err["msg"] for err in e.errors()]},
            ) from e

    async def list_orders(self, filters: OrderFilters | None = None) -> OrderPage:
        """List orders with the admin portal's filters."""
        filters = filters or OrderFilters()
        payload = await self._request("GET", "/orders", params=filters.to_params())
        data = self._unwrap(payload)

        if isinstance(data, dict):
            data = data.get("orders") or []
        if not isinstance(data, list):
            raise ServerError("Unexpected order listing payload from order-service")

        orders = [self._parse_order(item) for item in data]
        pagination = payload.get("pagination", {}) if isinstance(payload, dict) else {}
        return OrderPage(
            orders=orders,
            current_page=pagination.get("currentPage", filters.page),
            total_pages=pagination.get("totalPages", 1),
            total_items=pagination.get("totalItems", len(orders)),
            items_per_page=pagination.get("itemsPerPage", filters.limit),
        )

    # Mutations

    async def update_status(
        self,
        order_id: str,
        status: OrderStatus,
        notes: str | None = None,
    ) -> Any:
        """Persist a status change; the order-service appends the history entry."""
        body: dict[str, Any] = {"status": status.value}
        if notes:
            body["notes"] = notes
        payload = await self._request("PATCH", f"/orders/{order_id}/status", json=body)
        return self._unwrap(payload)

    async def cancel_order(self, order_id: str, reason: str) -> Any:
        """Cancel an order with the given reason."""
        payload = await self._request(
            "POST", f"/orders/{order_id}/cancel", json={"reason": reason}
        )
        return self._unwrap(payload)

    async def assign_rider(
        self,
        order_id: str,
        rider_id: str,
        vehicle_id: str | None = None,
    ) -> Any:
        """Assign (or reassign) a rider and optionally a vehicle."""
        body: dict[str, Any] = {"riderId": rider_id}
        if vehicle_id:
            body["vehicleId"] = vehicle_id
        payload = await self._request("POST", f"/orders/{order_id}/assign", json=body)
        return self._unwrap(payload)

    # Internals

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        if not self.http_client:
            await self.connect()

        start = time.time()
        try:
            response = await self.http_client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.error("order_service_timeout", method=method, path=path)
            raise NetworkError(
                f"Order-service request timed out: {method} {path}",
                details={"method": method, "path": path},
            ) from e
        except httpx.TransportError as e:
            logger.error("order_service_unreachable", method=method, path=path, error=str(e))
            raise NetworkError(
                f"Order-service is unreachable: {e}",
                details={"method": method, "path": path},
            ) from e

        duration_ms = (time.time() - start) * 1000
        payload = self._decode(response)

        if response.status_code >= 400:
            message = self._error_message(payload) or response.reason_phrase
            logger.warning(
                "order_service_error",
                method=method,
                path=path,
                status_code=response.status_code,
                message=message,
                duration_ms=duration_ms,
            )
            if response.status_code == 401:
                raise AuthenticationError(
                    "Authentication failed for order service request", status_code=401
                )
            if response.status_code == 409:
                raise StatusConflictError(message, status_code=409)
            raise ServerError(message, status_code=response.status_code)

        if isinstance(payload, dict) and payload.get("success") is False:
            message = self._error_message(payload) or "Order-service reported a failure"
            logger.warning("order_service_rejected", method=method, path=path, message=message)
            raise ServerError(message, status_code=response.status_code)

        logger.debug(
            "order_service_request",
            method=method,
            path=path,
            status_code=response.status_code,
            duration_ms=duration_ms,
        )
        return payload

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            if response.status_code >= 400:
                return None
            raise ServerError(
                "Order-service returned a non-JSON response",
                status_code=response.status_code,
            )

    @staticmethod
    def _error_message(payload: Any) -> str | None:
        if not isinstance(payload, dict):
            return None
        for key in ("error", "message", "detail"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, dict) and isinstance(value.get("message"), str):
                return value["message"]
        return None

    @staticmethod
    def _unwrap(payload: Any) -> Any:
        if isinstance(payload, dict) and "success" in payload:
            return payload.get("data")
        return payload

    @staticmethod
    def _parse_order(data: Any) -> Order:
        if not isinstance(data, dict):
            raise ServerError("Order-service returned no order record")
        try:
            return Order.model_validate(data)
        except ValidationError as e:
            raise ServerError(
                "Malformed order record from order-service",
                details={"errors": [err["msg"] for err in e.errors()]},
            ) from e


# Global order-service client instance
_order_client: OrderServiceClient | None = None


async def get_order_client() -> OrderServiceClient:
    """Get the global order-service client instance."""
    global _order_client
    if _order_client is None:
        _order_client = OrderServiceClient()
        await _order_client.connect()
    return _order_client


async def close_order_client() -> None:
    """Close and forget the global client."""
    global _order_client
    if _order_client is not None:
        await _order_client.disconnect()
        _order_client = None
