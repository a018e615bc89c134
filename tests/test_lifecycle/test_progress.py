"""Tests for the delivery tracker projection."""

import random

from order_lifecycle.lifecycle.progress import ProgressProjector
from order_lifecycle.lifecycle.status_model import PROGRESS_STEPS
from order_lifecycle.models.order import OrderStatus


def test_pending_order_with_no_history() -> None:
    """Test that a new order has only the first step active."""
    progress = ProgressProjector().project(OrderStatus.PENDING, [])

    assert progress.exception is None
    assert [step.label for step in progress.steps] == list(PROGRESS_STEPS)
    assert progress.steps[0].active is True
    assert progress.steps[0].completed is False
    for step in progress.steps[1:]:
        assert step.active is False
        assert step.completed is False
    assert all(step.timestamp is None for step in progress.steps)


def test_delivered_order_with_full_history(full_delivery_history) -> None:
    """Test that a delivered order completes the first four steps."""
    progress = ProgressProjector().project(OrderStatus.DELIVERED, full_delivery_history)

    assert progress.exception is None
    assert [step.completed for step in progress.steps] == [True, True, True, True, False]
    assert [step.active for step in progress.steps] == [False, False, False, False, True]
    assert [step.timestamp for step in progress.steps] == [
        entry.occurred_at for entry in full_delivery_history
    ]


def test_completed_order_marks_every_step(full_delivery_history, entry_factory) -> None:
    """Test that completion after delivery finishes the whole tracker."""
    history = full_delivery_history + [
        entry_factory(OrderStatus.COMPLETED, 90, OrderStatus.DELIVERED)
    ]

    progress = ProgressProjector().project(OrderStatus.COMPLETED, history)

    assert all(step.completed for step in progress.steps)
    assert not any(step.active for step in progress.steps)
    assert progress.exception is None


def test_in_transit_order(entry_factory) -> None:
    """Test the tracker midway through a delivery."""
    history = [
        entry_factory(OrderStatus.PENDING, 0),
        entry_factory(OrderStatus.APPROVED, 5, OrderStatus.PENDING),
        entry_factory(OrderStatus.IN_TRANSIT, 25, OrderStatus.APPROVED),
    ]

    progress = ProgressProjector().project(OrderStatus.IN_TRANSIT, history)

    assert [step.completed for step in progress.steps] == [True, True, True, False, False]
    assert progress.steps[3].active is True
    # Picked up was skipped, so the step has no timestamp
    assert progress.steps[2].timestamp is None
    assert progress.steps[3].timestamp == history[2].occurred_at


def test_cancelled_order_projects_exception(entry_factory) -> None:
    """Test that a cancelled order shows the banner instead of the tracker."""
    history = [
        entry_factory(OrderStatus.PENDING, 0),
        entry_factory(OrderStatus.APPROVED, 10, OrderStatus.PENDING),
        entry_factory(
            OrderStatus.CANCELLED, 20, OrderStatus.APPROVED, note="customer unreachable"
        ),
    ]

    progress = ProgressProjector().project(OrderStatus.CANCELLED, history)

    assert progress.exception is not None
    assert progress.exception.kind == OrderStatus.CANCELLED
    assert progress.exception.reason == "customer unreachable"
    assert progress.exception.occurred_at == history[-1].occurred_at
    assert len(progress.steps) == len(PROGRESS_STEPS)
    assert not any(step.active or step.completed for step in progress.steps)


def test_failed_order_without_history() -> None:
    """Test that a failed order with no history still gets an exception record."""
    progress = ProgressProjector().project(OrderStatus.FAILED, [])

    assert progress.exception is not None
    assert progress.exception.kind == OrderStatus.FAILED
    assert progress.exception.reason is None
    assert progress.exception.occurred_at is None


def test_cancellation_sharing_a_timestamp_drives_the_banner(entry_factory) -> None:
    """Test that a cancellation recorded in the same second as the previous step wins."""
    history = [
        entry_factory(OrderStatus.PENDING, 0),
        entry_factory(OrderStatus.IN_TRANSIT, 10, OrderStatus.PENDING, note="left hub"),
        entry_factory(
            OrderStatus.CANCELLED, 10, OrderStatus.IN_TRANSIT, note="customer unreachable"
        ),
    ]
    projector = ProgressProjector()

    progress = projector.project(OrderStatus.CANCELLED, history)
    reversed_progress = projector.project(OrderStatus.CANCELLED, list(reversed(history)))

    assert progress.exception.reason == "customer unreachable"
    assert progress.exception.occurred_at == history[2].occurred_at
    assert reversed_progress.model_dump_json() == progress.model_dump_json()


def test_order_reason_used_when_history_has_no_note(entry_factory) -> None:
    """Test that the reason stored on the order fills in a missing note."""
    projector = ProgressProjector()
    history = [
        entry_factory(OrderStatus.PENDING, 0),
        entry_factory(OrderStatus.FAILED, 5, OrderStatus.PENDING),
    ]

    with_history = projector.project(OrderStatus.FAILED, history, reason="Rider breakdown")
    without_history = projector.project(OrderStatus.FAILED, [], reason="Rider breakdown")

    assert with_history.exception.reason == "Rider breakdown"
    assert with_history.exception.occurred_at == history[1].occurred_at
    assert without_history.exception.reason == "Rider breakdown"
    assert without_history.exception.occurred_at is None


def test_history_note_takes_precedence_over_order_reason(entry_factory) -> None:
    """Test that the history note is preferred to the order's stored reason."""
    history = [entry_factory(OrderStatus.CANCELLED, 0, note="duplicate order")]

    progress = ProgressProjector().project(
        OrderStatus.CANCELLED, history, reason="Cancelled by admin"
    )

    assert progress.exception.reason == "duplicate order"


def test_latest_entry_wins_for_step_timestamp(entry_factory) -> None:
    """Test that a repeated status uses its most recent timestamp."""
    history = [
        entry_factory(OrderStatus.PENDING, 0),
        entry_factory(OrderStatus.APPROVED, 10, OrderStatus.PENDING),
        entry_factory(OrderStatus.PENDING, 20, OrderStatus.APPROVED, note="correction"),
    ]

    progress = ProgressProjector().project(OrderStatus.PENDING, history)

    assert progress.steps[0].timestamp == history[2].occurred_at
    assert progress.steps[1].timestamp == history[1].occurred_at


def test_projection_is_idempotent_and_order_independent(full_delivery_history) -> None:
    """Test that the same inputs always produce the same output."""
    projector = ProgressProjector()
    shuffled = list(full_delivery_history)
    random.Random(7).shuffle(shuffled)

    first = projector.project(OrderStatus.IN_TRANSIT, full_delivery_history)
    second = projector.project(OrderStatus.IN_TRANSIT, full_delivery_history)
    third = projector.project(OrderStatus.IN_TRANSIT, shuffled)

    assert first.model_dump_json() == second.model_dump_json()
    assert first.model_dump_json() == third.model_dump_json()


def test_returned_order_has_no_active_step(full_delivery_history) -> None:
    """Test that a returned order leaves the progression without a banner."""
    progress = ProgressProjector().project(OrderStatus.RETURNED, full_delivery_history)

    assert progress.exception is None
    assert not any(step.active or step.completed for step in progress.steps)
    assert progress.steps[4].timestamp == full_delivery_history[-1].occurred_at
