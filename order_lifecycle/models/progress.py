"""Derived views of an order's lifecycle. Recomputed on every read, never persisted."""

from datetime import datetime

from pydantic import BaseModel, Field

from order_lifecycle.models.order import Order, OrderStatus, StatusHistoryEntry


class ProgressStep(BaseModel):
    """One stage of the five-step delivery tracker."""

    label: str
    ordinal: int
    completed: bool = False
    active: bool = False
    timestamp: datetime | None = None


class ProgressException(BaseModel):
    """Banner shown in place of the tracker for cancelled or failed orders."""

    kind: OrderStatus
    reason: str | None = None
    occurred_at: datetime | None = None


class OrderProgress(BaseModel):
    """Tracker state for one order."""

    status: OrderStatus
    steps: list[ProgressStep] = Field(default_factory=list)
    exception: ProgressException | None = None


class StatusOption(BaseModel):
    """An entry of the status-update menu."""

    status: OrderStatus
    label: str
    color: str
    enabled: bool


class AvailableActions(BaseModel):
    """Which status-changing actions may be offered for an order."""

    update_status: bool
    cancel: bool
    assign_rider: bool


class OrderView(BaseModel):
    """Everything an order detail page renders."""

    order: Order
    history: list[StatusHistoryEntry] = Field(default_factory=list)
    progress: OrderProgress
    actions: AvailableActions
