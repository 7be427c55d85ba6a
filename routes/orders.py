"""
Production order API routes.

Confirmation deducts stock; everything else manages the production queue.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.order import (
    OrderConfirmRequest,
    OrderStageUpdate,
    OrderStatus,
    OrderStatusUpdate,
    ProductionOrder,
    QueueReorderRequest,
)
from services.order_service import get_order_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# READ ROUTES
# ===================

@router.get("", response_model=list[ProductionOrder])
async def list_orders(
    status: Optional[OrderStatus] = Query(None, description="Filter by status")
):
    """All orders in queue order."""
    try:
        return get_order_service().list_orders(status)
    except Exception as e:
        return handle_error(e)


@router.get("/queue/{stage}", response_model=list[ProductionOrder])
async def stage_queue(stage: str):
    """Orders in production at a stage."""
    try:
        return get_order_service().get_stage_queue(stage)
    except Exception as e:
        return handle_error(e)


@router.get("/{order_id}", response_model=ProductionOrder)
async def get_order(order_id: str):
    """
    Get a single order.

    Raises:
        404: Order not found
    """
    try:
        return get_order_service().get_order(order_id)
    except Exception as e:
        return handle_error(e)


# ===================
# WRITE ROUTES
# ===================

@router.post("", response_model=ProductionOrder, status_code=201)
async def confirm_order(data: OrderConfirmRequest):
    """
    Confirm an order, deducting stock for every layer.

    Raises:
        404: Product or material not found
        409: Primary roll short under the REJECT policy
        422: A layer has no material selected
    """
    try:
        return get_order_service().confirm_order(data)
    except Exception as e:
        return handle_error(e)


@router.post("/reorder", response_model=list[ProductionOrder])
async def reorder_queue(data: QueueReorderRequest):
    """Rewrite queue positions."""
    try:
        return get_order_service().reorder_queue(data.order_ids)
    except Exception as e:
        return handle_error(e)


@router.patch("/{order_id}/status", response_model=ProductionOrder)
async def update_status(order_id: str, data: OrderStatusUpdate):
    try:
        return get_order_service().update_status(order_id, data.status)
    except Exception as e:
        return handle_error(e)


@router.patch("/{order_id}/stage", response_model=ProductionOrder)
async def update_stage(order_id: str, data: OrderStageUpdate):
    """
    Move an order to one of its stages.

    Raises:
        422: Stage not in the order's workflow
    """
    try:
        return get_order_service().update_stage(order_id, data.stage)
    except Exception as e:
        return handle_error(e)


@router.post("/{order_id}/advance", response_model=ProductionOrder)
async def advance_stage(order_id: str):
    """Next stage; the last stage finishes the order."""
    try:
        return get_order_service().advance_stage(order_id)
    except Exception as e:
        return handle_error(e)


@router.delete("/{order_id}", status_code=204)
async def delete_order(order_id: str):
    """
    Delete an order. Deducted stock is not restored.

    Raises:
        404: Order not found
    """
    try:
        get_order_service().delete_order(order_id)
        return None
    except Exception as e:
        return handle_error(e)
