"""
Catalog API routes.

Materials, products, clients and suppliers share one CRUD shape, so each
router is built from its catalog service factory.
"""

from typing import Callable
from fastapi import APIRouter
from fastapi.responses import JSONResponse
import structlog

from models.material import Material, Supplier
from models.product import Client, ProductRecipe
from services.catalog_service import (
    CatalogService,
    client_catalog,
    material_catalog,
    product_catalog,
    supplier_catalog,
)
from exceptions import AppError

logger = structlog.get_logger(__name__)


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
# ROUTER FACTORY
# ===================

def build_catalog_router(schema: type, get_service: Callable[[], CatalogService]) -> APIRouter:
    """List/get/put/delete routes for one catalog collection."""
    router = APIRouter()

    @router.get("", response_model=list[schema])
    async def list_records():
        try:
            return get_service().get_all()
        except Exception as e:
            return handle_error(e)

    @router.get("/{record_id}", response_model=schema)
    async def get_record(record_id: str):
        """
        Raises:
            404: Record not found
        """
        try:
            return get_service().get_by_id(record_id)
        except Exception as e:
            return handle_error(e)

    @router.put("/{record_id}", response_model=schema)
    async def save_record(record_id: str, data: schema):
        """
        Create or replace a record.

        Raises:
            422: Body ID differs from the URL
        """
        try:
            return get_service().save(record_id, data)
        except Exception as e:
            return handle_error(e)

    @router.delete("/{record_id}", status_code=204)
    async def delete_record(record_id: str):
        """
        Delete a record. Orders keep their own snapshot of it.

        Raises:
            404: Record not found
        """
        try:
            get_service().delete(record_id)
            return None
        except Exception as e:
            return handle_error(e)

    return router


materials_router = build_catalog_router(Material, material_catalog)
products_router = build_catalog_router(ProductRecipe, product_catalog)
clients_router = build_catalog_router(Client, client_catalog)
suppliers_router = build_catalog_router(Supplier, supplier_catalog)
