"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from order_lifecycle.api.routes import router
from order_lifecycle.config import get_settings
from order_lifecycle.errors import (
    ActionInProgressError,
    AuthenticationError,
    InvalidTransitionError,
    NetworkError,
    OrderLifecycleError,
    ServerError,
    StaleStateError,
)
from order_lifecycle.services.lifecycle_service import reset_lifecycle_service
from order_lifecycle.services.order_client import close_order_client, get_order_client
from order_lifecycle.utils.logging import get_logger, setup_logging

# Setup logging first
setup_logging()
logger = get_logger(__name__)

# Most specific first; the first matching class decides the status code
ERROR_STATUS_CODES: list[tuple[type[OrderLifecycleError], int]] = [
    (InvalidTransitionError, 422),
    (ActionInProgressError, status.HTTP_409_CONFLICT),
    (StaleStateError, status.HTTP_409_CONFLICT),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (NetworkError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (ServerError, status.HTTP_502_BAD_GATEWAY),
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info("application_starting")

    await get_order_client()
    logger.info("order_client_initialized")

    yield

    logger.info("application_shutting_down")
    reset_lifecycle_service()
    await close_order_client()


app = FastAPI(
    title="Order Lifecycle Service",
    description="Order status guards, tracker projection and status actions for the fleet admin portal",
    version="0.1.0",
    lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def error_status_code(exc: OrderLifecycleError) -> int:
    if isinstance(exc, ServerError) and exc.status_code == status.HTTP_404_NOT_FOUND:
        return status.HTTP_404_NOT_FOUND
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@app.exception_handler(OrderLifecycleError)
async def lifecycle_error_handler(request: Request, exc: OrderLifecycleError) -> JSONResponse:
    """Turn lifecycle errors into a message the caller can show as-is."""
    status_code = error_status_code(exc)
    content = {
        "success": False,
        "error": {
            "code": exc.code,
            "message": exc.message,
            "details": exc.details,
        },
    }
    if isinstance(exc, StaleStateError) and exc.view is not None:
        # The caller replaces its state with this instead of refetching
        content["order"] = exc.view.model_dump(mode="json")

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "request_failed",
        path=request.url.path,
        status_code=status_code,
        code=exc.code,
        message=exc.message,
    )
    return JSONResponse(status_code=status_code, content=content)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "order-lifecycle"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "message": "Order Lifecycle Service API",
        "docs": "/docs",
        "health": "/health",
    }


app.include_router(router, prefix="/api/v1", tags=["orders"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "order_lifecycle.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.environment == "development",
    )
