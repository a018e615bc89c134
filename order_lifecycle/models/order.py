"""Order-related data models."""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator


class OrderStatus(str, Enum):
    """Order status vocabulary shared with the order-service."""

    CREATED = "created"
    PENDING = "pending"
    APPROVED = "approved"
    ASSIGNED = "assigned"
    PICKED_UP = "picked-up"
    IN_TRANSIT = "in-transit"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"
    RETURNED = "returned"

    @classmethod
    def _missing_(cls, value: object) -> "OrderStatus | None":
        if not isinstance(value, str):
            return None
        normalized = value.strip().lower().replace("_", "-")
        normalized = _STATUS_ALIASES.get(normalized, normalized)
        for member in cls:
            if member.value == normalized:
                return member
        return None


# The tracker view calls the approved step "confirmed"
_STATUS_ALIASES = {
    "confirmed": OrderStatus.APPROVED.value,
    "intransit": OrderStatus.IN_TRANSIT.value,
    "pickedup": OrderStatus.PICKED_UP.value,
    "canceled": OrderStatus.CANCELLED.value,
}


def parse_status(value: Any) -> Any:
    """Coerce a loosely formatted status string into an OrderStatus."""
    if isinstance(value, str):
        return OrderStatus(value)
    return value


def _optional_status(value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_status(value)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _first(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) not in (None, ""):
            return data[key]
    return None


Status = Annotated[OrderStatus, BeforeValidator(parse_status)]
OptionalStatus = Annotated[OrderStatus | None, BeforeValidator(_optional_status)]


class StatusHistoryEntry(BaseModel):
    """A past status transition recorded by the order-service."""

    model_config = ConfigDict(frozen=True)

    from_status: OptionalStatus = None
    to_status: Status
    note: str | None = None
    actor: str | None = None
    occurred_at: datetime

    @model_validator(mode="before")
    @classmethod
    def normalize_keys(cls, data: Any) -> Any:
        """Accept both the admin API and the raw order-service record shapes."""
        if not isinstance(data, dict):
            return data
        return {
            "from_status": _first(data, "from_status", "fromStatus", "previous_status"),
            "to_status": _first(data, "to_status", "toStatus", "status"),
            "note": _first(data, "note", "notes", "reason"),
            "actor": _first(
                data, "actor", "updated_by_name", "updatedByName", "updated_by", "updatedBy"
            ),
            "occurred_at": _first(
                data, "occurred_at", "occurredAt", "created_at", "createdAt", "timestamp"
            ),
        }

    @field_validator("occurred_at")
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        return _as_utc(v)


class Order(BaseModel):
    """The slice of an order record the lifecycle needs."""

    model_config = ConfigDict(extra="ignore")

    id: str
    order_number: str | None = None
    status: Status
    status_reason: str | None = None

    # Assignments
    rider_id: str | None = None
    rider_name: str | None = None
    vehicle_id: str | None = None

    # Delivery details
    customer_name: str | None = None
    delivery_address: str | None = None

    # Timing
    created_at: datetime | None = None
    updated_at: datetime | None = None

    status_history: list[StatusHistoryEntry] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def normalize_keys(cls, data: Any) -> Any:
        """Map the order-service's camel case fields onto the model."""
        if not isinstance(data, dict):
            return data
        normalized = dict(data)
        aliases = {
            "status": ("status", "orderStatus", "order_status"),
            "order_number": ("order_number", "orderNumber"),
            "status_reason": ("status_reason", "statusReason", "failure_reason", "cancellationReason"),
            "rider_id": ("rider_id", "riderId"),
            "rider_name": ("rider_name", "riderName"),
            "vehicle_id": ("vehicle_id", "vehicleId"),
            "customer_name": ("customer_name", "customerName"),
            "delivery_address": ("delivery_address", "deliveryAddress"),
            "created_at": ("created_at", "createdAt"),
            "updated_at": ("updated_at", "updatedAt"),
            "status_history": ("status_history", "order_status_updates", "statusUpdates"),
        }
        for field, keys in aliases.items():
            normalized[field] = _first(data, *keys)
        if normalized["status_history"] is None:
            normalized["status_history"] = []
        if normalized.get("id") is not None:
            normalized["id"] = str(normalized["id"])
        return normalized

    @field_validator("created_at", "updated_at")
    @classmethod
    def ensure_timezone(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)


class OrderPage(BaseModel):
    """One page of an order listing."""

    orders: list[Order] = Field(default_factory=list)
    current_page: int = 1
    total_pages: int = 1
    total_items: int = 0
    items_per_page: int = 0


class OrderFilters(BaseModel):
    """Listing filters, named the way the order-service expects them."""

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)
    search: str | None = None
    status: OptionalStatus = None
    client_id: str | None = None
    store_id: str | None = None
    rider_id: str | None = None
    start_date: str | None = Field(default=None, serialization_alias="startDate")
    end_date: str | None = Field(default=None, serialization_alias="endDate")
    order_type: str | None = None
    payment_status: str | None = None
    sort_by: str | None = Field(default=None, serialization_alias="sortBy")
    sort_order: Literal["asc", "desc"] | None = Field(default=None, serialization_alias="sortOrder")

    def to_params(self) -> dict[str, Any]:
        """Query parameters with unset filters dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
