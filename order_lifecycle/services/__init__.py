"""Order-service access and lifecycle actions."""

from order_lifecycle.services.lifecycle_service import OrderLifecycleService
from order_lifecycle.services.order_client import OrderServiceClient

__all__ = ["OrderLifecycleService", "OrderServiceClient"]
