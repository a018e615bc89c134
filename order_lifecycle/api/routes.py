"""API routes for order lifecycle actions."""

from typing import Any, Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from order_lifecycle.lifecycle.status_model import (
    PROGRESS_STEPS,
    is_terminal,
    ordinal_of,
    status_color,
    status_label,
)
from order_lifecycle.lifecycle.transitions import TransitionValidator
from order_lifecycle.models.order import OptionalStatus, OrderFilters, OrderPage, OrderStatus, Status
from order_lifecycle.models.progress import OrderProgress, OrderView, StatusOption
from order_lifecycle.services.lifecycle_service import (
    OrderLifecycleService,
    get_lifecycle_service,
)
from order_lifecycle.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


# Request/Response Models


class StatusUpdateRequest(BaseModel):
    """Request to change an order's status."""

    status: Status
    notes: str | None = None
    expected_status: OptionalStatus = None


class CancelOrderRequest(BaseModel):
    """Request to cancel an order."""

    reason: str = ""
    expected_status: OptionalStatus = None


class AssignRiderRequest(BaseModel):
    """Request to assign a rider (and optionally a vehicle) to an order."""

    rider_id: str = Field(..., min_length=1)
    vehicle_id: str | None = None
    expected_status: OptionalStatus = None


class StatusInfo(BaseModel):
    """One entry of the status vocabulary."""

    status: OrderStatus
    label: str
    color: str
    terminal: bool
    ordinal: int | None


class StatusVocabularyResponse(BaseModel):
    """The full status vocabulary and tracker step labels."""

    statuses: list[StatusInfo]
    steps: list[str]


# Routes


@router.get("/statuses", response_model=StatusVocabularyResponse)
async def list_statuses() -> StatusVocabularyResponse:
    """Status vocabulary with display hints."""
    return StatusVocabularyResponse(
        statuses=[
            StatusInfo(
                status=status,
                label=status_label(status),
                color=status_color(status),
                terminal=is_terminal(status),
                ordinal=ordinal_of(status),
            )
            for status in OrderStatus
        ],
        steps=list(PROGRESS_STEPS),
    )


@router.get("/orders", response_model=OrderPage)
async def list_orders(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    search: str | None = None,
    status: OrderStatus | None = None,
    rider_id: str | None = None,
    sort_by: str | None = None,
    sort_order: Literal["asc", "desc"] | None = None,
    service: OrderLifecycleService = Depends(get_lifecycle_service),
) -> OrderPage:
    """List orders through the order-service."""
    filters = OrderFilters(
        page=page,
        limit=limit,
        search=search,
        status=status,
        rider_id=rider_id,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return await service.client.list_orders(filters)


@router.get("/orders/{order_id}", response_model=OrderView)
async def get_order(
    order_id: str,
    service: OrderLifecycleService = Depends(get_lifecycle_service),
) -> OrderView:
    """Order details with history, tracker and the actions that may be offered."""
    return await service.load(order_id)


@router.get("/orders/{order_id}/progress", response_model=OrderProgress)
async def get_order_progress(
    order_id: str,
    service: OrderLifecycleService = Depends(get_lifecycle_service),
) -> OrderProgress:
    """Tracker state only."""
    view = await service.load(order_id)
    return view.progress


@router.get("/orders/{order_id}/status-options", response_model=list[StatusOption])
async def get_status_options(
    order_id: str,
    service: OrderLifecycleService = Depends(get_lifecycle_service),
) -> list[StatusOption]:
    """Menu for the status-update dialog."""
    order = await service.client.get_order(order_id)
    return TransitionValidator.status_options(order.status)


@router.patch("/orders/{order_id}/status", response_model=OrderView)
async def update_order_status(
    order_id: str,
    request: StatusUpdateRequest,
    service: OrderLifecycleService = Depends(get_lifecycle_service),
) -> OrderView:
    """
    Change an order's status.

    Terminal orders reject every change; the order-service decides the rest.
    """
    view = await service.update_status(
        order_id,
        request.status,
        notes=request.notes,
        expected=request.expected_status,
    )
    logger.info("order_status_updated", order_id=order_id, status=view.order.status.value)
    return view


@router.post("/orders/{order_id}/cancel", response_model=OrderView)
async def cancel_order(
    order_id: str,
    request: CancelOrderRequest,
    service: OrderLifecycleService = Depends(get_lifecycle_service),
) -> OrderView:
    """Cancel an order; a reason is required."""
    view = await service.cancel_order(
        order_id,
        request.reason,
        expected=request.expected_status,
    )
    logger.info("order_cancelled", order_id=order_id)
    return view


@router.post("/orders/{order_id}/assign", response_model=OrderView)
async def assign_rider(
    order_id: str,
    request: AssignRiderRequest,
    service: OrderLifecycleService = Depends(get_lifecycle_service),
) -> OrderView:
    """Assign or reassign a rider to an approved order."""
    view = await service.assign_rider(
        order_id,
        request.rider_id,
        vehicle_id=request.vehicle_id,
        expected=request.expected_status,
    )
    logger.info("order_rider_assigned", order_id=order_id, rider_id=request.rider_id)
    return view


@router.get("/orders/{order_id}/busy")
async def get_order_busy(
    order_id: str,
    service: OrderLifecycleService = Depends(get_lifecycle_service),
) -> dict[str, Any]:
    """Whether an action on the order is still waiting for the order-service."""
    return {"order_id": order_id, "busy": service.is_busy(order_id)}
