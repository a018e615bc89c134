"""Order status lifecycle: vocabulary, transition guards and progress projection."""

from order_lifecycle.lifecycle.progress import ProgressProjector
from order_lifecycle.lifecycle.status_model import (
    PROGRESS_STEPS,
    TERMINAL_STATUSES,
    is_terminal,
    ordinal_of,
    status_color,
    status_label,
)
from order_lifecycle.lifecycle.transitions import TransitionValidator

__all__ = [
    "PROGRESS_STEPS",
    "TERMINAL_STATUSES",
    "ProgressProjector",
    "TransitionValidator",
    "is_terminal",
    "ordinal_of",
    "status_color",
    "status_label",
]
