"""Projection of an order's status and history onto the delivery tracker."""

from collections.abc import Iterable
from datetime import datetime

from order_lifecycle.lifecycle.status_model import (
    EXCEPTION_STATUSES,
    PROGRESS_STEPS,
    ordinal_of,
)
from order_lifecycle.models.order import OrderStatus, StatusHistoryEntry
from order_lifecycle.models.progress import OrderProgress, ProgressException, ProgressStep


class ProgressProjector:
    """
    Turns ``(current status, history)`` into tracker steps.

    Pure: the same inputs always give the same output, and the order of the
    history entries passed in does not matter.
    """

    def __init__(self, labels: tuple[str, ...] = PROGRESS_STEPS):
        self.labels = labels

    def project(
        self,
        current: OrderStatus,
        history: Iterable[StatusHistoryEntry] = (),
        reason: str | None = None,
    ) -> OrderProgress:
        """
        Build the tracker for an order.

        Args:
            current: The order's authoritative status
            history: Status history entries, in any order
            reason: Cancellation or failure reason stored on the order, used
                when the history carries no note for it

        Returns:
            OrderProgress with one step per label and, for cancelled or
            failed orders, the exception record that replaces the tracker
        """
        entries = sorted(history, key=lambda entry: (entry.occurred_at, entry.to_status.value))
        timestamps = self._step_timestamps(entries)

        if current in EXCEPTION_STATUSES:
            last = self._exception_entry(current, entries)
            note = last.note if last else None
            return OrderProgress(
                status=current,
                steps=[
                    ProgressStep(label=label, ordinal=i, timestamp=timestamps.get(i))
                    for i, label in enumerate(self.labels)
                ],
                exception=ProgressException(
                    kind=current,
                    reason=note or reason,
                    occurred_at=last.occurred_at if last else None,
                ),
            )

        ordinal = ordinal_of(current)
        all_done = current == OrderStatus.COMPLETED

        steps = []
        for i, label in enumerate(self.labels):
            steps.append(
                ProgressStep(
                    label=label,
                    ordinal=i,
                    completed=all_done or (ordinal is not None and i < ordinal),
                    active=ordinal == i,
                    timestamp=timestamps.get(i),
                )
            )

        return OrderProgress(status=current, steps=steps)

    @staticmethod
    def _step_timestamps(entries: list[StatusHistoryEntry]) -> dict[int, datetime]:
        # Entries are sorted oldest first, so later writes win
        timestamps: dict[int, datetime] = {}
        for entry in entries:
            ordinal = ordinal_of(entry.to_status)
            if ordinal is not None:
                timestamps[ordinal] = entry.occurred_at
        return timestamps

    @staticmethod
    def _exception_entry(
        current: OrderStatus, entries: list[StatusHistoryEntry]
    ) -> StatusHistoryEntry | None:
        # Latest entry into the current status, else the latest entry
        for entry in reversed(entries):
            if entry.to_status == current:
                return entry
        return entries[-1] if entries else None
