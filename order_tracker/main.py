"""
FastAPI Application Entry Point

Restaurant Order Tracker - tables order dishes, the kitchen reports
deliveries, and waiters see what is still outstanding.

Endpoints:
    - GET /tables/{tables_id}/items: Remaining (not fully delivered) items
    - POST /tables/{tables_id}/items: Bulk create items
    - PUT /tables/{tables_id}/items: Bulk update quantities / deliveries
    - GET /tables/{tables_id}/items/{item_id}: Single item
    - DELETE /tables/{tables_id}/items/{item_id}: Delete single item
    - GET /health: System health check

Version: 1.0.0
"""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from order_tracker.core.config import get_settings, setup_logging
from order_tracker.core.exceptions import (
    LimitExceededError,
    NotFoundError,
    OperationTimeoutError,
    OrderTrackerError,
    StoreError,
    ValidationError,
)
from order_tracker.database import init_db
from order_tracker.schemas import (
    BulkNewItemRequest,
    BulkNewItemResponse,
    BulkUpdateItemRequest,
    ErrorResponse,
    HealthResponse,
    ItemResponse,
    PartialItemResponse,
    SuccessResponse,
)
from order_tracker.services.items import (
    BaseItemStore,
    FilterParams,
    Pagination,
    build_item_store,
)

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    store = build_item_store(settings)
    await init_db(store.engine)
    app.state.item_store = store
    logger.info("Item store ready")

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await store.close()
    logger.info("Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Tracks ordered and delivered quantities of every dish per table.",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


def get_item_store(request: Request) -> BaseItemStore:
    """Dependency returning the store built at startup."""
    return request.app.state.item_store


def error_response(status_code: int, error: str, detail: Optional[str] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, detail=detail).model_dump(),
    )


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    store: BaseItemStore = Depends(get_item_store),
) -> HealthResponse:
    """Verify the database answers."""
    healthy = await store.health_check()

    return HealthResponse(
        status="operational" if healthy else "degraded",
        database="healthy" if healthy else "unhealthy",
        timestamp=datetime.now(),
    )


# =============================================================================
# ITEM ENDPOINTS
# =============================================================================

@app.get(
    "/tables/{tables_id}/items",
    response_model=List[ItemResponse],
    responses={404: {"model": ErrorResponse}},
    tags=["Items"],
    summary="List Remaining Items",
)
async def items_list(
    tables_id: UUID,
    limit: Optional[int] = Query(None, ge=1),
    offset: Optional[int] = Query(None, ge=0),
    menu_id: Optional[UUID] = Query(None),
    store: BaseItemStore = Depends(get_item_store),
):
    """Items of a table that still have undelivered quantity."""
    pagination = Pagination(
        limit=limit if limit is not None else settings.default_page_limit,
        offset=offset,
    )
    items = await store.list_remaining_items(
        tables_id,
        pagination,
        FilterParams(menu_id=menu_id),
        timeout=settings.statement_timeout_seconds,
    )

    if not items:
        logger.info(f"No items found for tables_id {tables_id}")
        return error_response(
            status.HTTP_404_NOT_FOUND,
            "Not Found",
            f"No items found for table with id {tables_id}",
        )

    logger.info(f"{len(items)} items found for tables_id {tables_id}")
    return [ItemResponse.model_validate(item) for item in items]


@app.post(
    "/tables/{tables_id}/items",
    response_model=BulkNewItemResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["Items"],
    summary="Create Items",
)
async def items_create(
    tables_id: UUID,
    payload: BulkNewItemRequest,
    store: BaseItemStore = Depends(get_item_store),
):
    """Create every item in the request for the table."""
    logger.info(f"Creating {len(payload.items)} new items for table {tables_id}")

    created = await store.create_items(
        tables_id,
        [item.to_new_item() for item in payload.items],
        timeout=settings.statement_timeout_seconds,
    )

    if not created:
        logger.info("No items found in request")
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            "Bad Request",
            f"No items were created for table with id {tables_id}",
        )

    return BulkNewItemResponse(
        items=[PartialItemResponse.model_validate(item) for item in created],
    )


@app.put(
    "/tables/{tables_id}/items",
    response_model=SuccessResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["Items"],
    summary="Update Items",
)
async def items_update(
    tables_id: UUID,
    payload: BulkUpdateItemRequest,
    store: BaseItemStore = Depends(get_item_store),
):
    """
    Apply quantity changes and deliveries.

    `quantity` replaces the stored value, `delivered_quantity` is added
    to it. Items are addressed by id alone.
    """
    logger.info(f"Updating {len(payload.items)} items (table {tables_id})")

    updated = await store.update_items(
        [item.to_item_update() for item in payload.items],
        timeout=settings.statement_timeout_seconds,
    )

    if updated == 0:
        logger.info("No updated items")
        return error_response(
            status.HTTP_404_NOT_FOUND,
            "Not Found",
            "No items were updated",
        )

    return SuccessResponse(message=f"{updated} items updated successfully")


@app.get(
    "/tables/{tables_id}/items/{item_id}",
    response_model=ItemResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Items"],
)
async def item_get(
    tables_id: UUID,
    item_id: UUID,
    store: BaseItemStore = Depends(get_item_store),
) -> ItemResponse:
    """Get a specific item of a table."""
    item = await store.get_item(tables_id, item_id, timeout=settings.statement_timeout_seconds)
    return ItemResponse.model_validate(item)


@app.delete(
    "/tables/{tables_id}/items/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
    tags=["Items"],
)
async def item_delete(
    tables_id: UUID,
    item_id: UUID,
    store: BaseItemStore = Depends(get_item_store),
):
    """Delete a specific item of a table."""
    logger.info(f"Trying to delete item {item_id} for table {tables_id}")

    deleted = await store.delete_item(tables_id, item_id, timeout=settings.statement_timeout_seconds)
    if not deleted:
        return error_response(
            status.HTTP_404_NOT_FOUND,
            "Not Found",
            f"Item with id {item_id} not found in table {tables_id}",
        )

    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

ERROR_STATUS = (
    (LimitExceededError, status.HTTP_400_BAD_REQUEST, "Bad Request"),
    (ValidationError, 422, "Validation Error"),
    (NotFoundError, status.HTTP_404_NOT_FOUND, "Not Found"),
    (OperationTimeoutError, status.HTTP_504_GATEWAY_TIMEOUT, "Gateway Timeout"),
    (StoreError, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error"),
)


@app.exception_handler(OrderTrackerError)
async def order_tracker_exception_handler(request: Request, exc: OrderTrackerError) -> JSONResponse:
    """Map store errors to status codes."""
    for error_class, status_code, error in ERROR_STATUS:
        if isinstance(exc, error_class):
            break
    else:
        status_code, error = status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error"

    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")

    return error_response(status_code, error, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request bodies and query parameters."""
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "error": "Validation Error",
            "detail": str(exc.errors()),
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal Server Error",
        str(exc) if settings.debug else "An unexpected error occurred",
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("order_tracker.main:app", host=settings.api_host, port=settings.api_port)
