"""Utility modules."""

from order_lifecycle.utils.logging import OrderActionLogger, get_logger, setup_logging

__all__ = ["OrderActionLogger", "get_logger", "setup_logging"]
