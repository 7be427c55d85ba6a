"""
Config API routes.

Exposes the effective production constants and accepts partial updates.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
import structlog

from models.production import ProductionConfig, ProductionConfigUpdate
from services.config_service import get_config_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()


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
# READ
# ===================

@router.get("", response_model=ProductionConfig)
async def get_config():
    """Effective production config (defaults plus stored overrides)."""
    try:
        return get_config_service().get_config()
    except Exception as e:
        return handle_error(e)


# ===================
# WRITE
# ===================

@router.patch("", response_model=ProductionConfig)
async def update_config(data: ProductionConfigUpdate):
    """Change only the provided fields; densities merge per type."""
    try:
        return get_config_service().update_config(data)
    except Exception as e:
        return handle_error(e)
