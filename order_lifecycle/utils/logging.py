"""Structured logging configuration."""

import logging
import sys
from typing import Any

import structlog
from pythonjsonlogger import jsonlogger

from order_lifecycle.config import get_settings


def setup_logging() -> None:
    """Configure structured logging for the application."""
    settings = get_settings()

    log_level = getattr(logging, settings.log_level)

    if settings.log_format == "json":
        handler = logging.StreamHandler(sys.stdout)
        formatter = jsonlogger.JsonFormatter(
            fmt="%(timestamp)s %(level)s %(name)s %(message)s",
            rename_fields={"levelname": "level", "asctime": "timestamp"},
        )
        handler.setFormatter(formatter)
    else:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # httpx logs every request at INFO; the client logs its own events
    logging.getLogger("httpx").setLevel(max(log_level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer() if settings.log_format == "json"
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


class OrderActionLogger:
    """Logger for status-changing actions taken against orders."""

    def __init__(self, component: str):
        self.component = component
        self.logger = get_logger(component)

    def log_transition(
        self,
        order_id: str,
        action: str,
        current: str,
        requested: str,
        duration_ms: float | None = None,
        **kwargs: Any,
    ) -> None:
        """Log an action the order-service accepted."""
        log_data = {
            "component": self.component,
            "order_id": order_id,
            "action": action,
            "current": current,
            "requested": requested,
        }

        if duration_ms is not None:
            log_data["duration_ms"] = duration_ms

        log_data.update(kwargs)
        self.logger.info("order_action_applied", **log_data)

    def log_rejection(
        self,
        order_id: str,
        action: str,
        reason: str,
        **kwargs: Any,
    ) -> None:
        """Log an action refused before any request was sent."""
        self.logger.warning(
            "order_action_rejected",
            component=self.component,
            order_id=order_id,
            action=action,
            reason=reason,
            **kwargs,
        )

    def log_refetch(
        self,
        order_id: str,
        status: str,
        **kwargs: Any,
    ) -> None:
        """Log the authoritative state read back after a mutation."""
        self.logger.debug(
            "order_refetched",
            component=self.component,
            order_id=order_id,
            status=status,
            **kwargs,
        )

    def log_error(
        self,
        error: str,
        order_id: str,
        **kwargs: Any,
    ) -> None:
        """Log an error."""
        self.logger.error(
            "order_action_error",
            component=self.component,
            order_id=order_id,
            error=error,
            **kwargs,
        )
