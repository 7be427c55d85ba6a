"""
Production calculation API routes.

Read-only: nothing here changes stock or persists orders.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
import structlog

from models.production import (
    CalculationRequest,
    CalculationResult,
    StockCheckRequest,
    StockCheckResponse,
)
from models.recommendation import RecipeRecommendations, RecommendationRequest
from services.production_service import get_production_service
from services.recommendation_service import get_recommendation_service
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
    # Unexpected error
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
# ROUTES
# ===================

@router.post("/calculate", response_model=CalculationResult)
async def calculate(data: CalculationRequest):
    """
    Net, gross and max meters plus per-layer weights for an order.

    Raises:
        404: Product not found
        422: Weight order on a recipe with no weight per meter
    """
    try:
        service = get_production_service()
        return service.calculate(
            data.product_id,
            data.quantity,
            data.unit,
            data.tolerance_percent,
            data.scrap_overrides
        )
    except Exception as e:
        return handle_error(e)


@router.post("/recommendations", response_model=RecipeRecommendations)
async def recommendations(data: RecommendationRequest):
    """
    Ranked inventory rolls for every layer of a product.

    Layers with no compatible roll come back empty, with a warning.
    """
    try:
        service = get_recommendation_service()
        return service.get_recommendations(
            data.product_id,
            selections=data.selections,
            quantity=data.quantity,
            unit=data.unit,
            tolerance_percent=data.tolerance_percent
        )
    except Exception as e:
        return handle_error(e)


@router.post("/stock-check", response_model=StockCheckResponse)
async def stock_check(data: StockCheckRequest):
    """Whether the chosen rolls cover each layer's real requirement."""
    try:
        service = get_production_service()
        result, layers = service.check_stock(
            data.product_id,
            data.quantity,
            data.unit,
            data.selections,
            tolerance_percent=data.tolerance_percent,
            use_tolerance=data.use_tolerance,
            scrap_overrides=data.scrap_overrides
        )
        return StockCheckResponse(result=result, layers=layers)
    except Exception as e:
        return handle_error(e)
