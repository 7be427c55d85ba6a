"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.production import router as production_router
from routes.orders import router as orders_router
from routes.config import router as config_router
from routes.catalog import (
    materials_router,
    products_router,
    clients_router,
    suppliers_router,
)

__all__ = [
    "production_router",
    "orders_router",
    "config_router",
    "materials_router",
    "products_router",
    "clients_router",
    "suppliers_router",
]
