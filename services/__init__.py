"""
Business logic services.

Each service handles one domain area.
"""

from services.store import Store, InMemoryStore, SupabaseStore, get_store, set_store
from services.config_service import ConfigService, get_config_service
from services.production_service import (
    ProductionService,
    get_production_service,
    calculate_production_requirements,
)
from services.recommendation_service import (
    RecommendationService,
    get_recommendation_service,
    recommend,
    auto_select,
)
from services.allocation_service import AllocationService, plan_allocation
from services.order_service import OrderService, get_order_service, derive_stages
from services.catalog_service import (
    CatalogService,
    material_catalog,
    product_catalog,
    client_catalog,
    supplier_catalog,
)

__all__ = [
    "Store",
    "InMemoryStore",
    "SupabaseStore",
    "get_store",
    "set_store",
    "ConfigService",
    "get_config_service",
    "ProductionService",
    "get_production_service",
    "calculate_production_requirements",
    "RecommendationService",
    "get_recommendation_service",
    "recommend",
    "auto_select",
    "AllocationService",
    "plan_allocation",
    "OrderService",
    "get_order_service",
    "derive_stages",
    "CatalogService",
    "material_catalog",
    "product_catalog",
    "client_catalog",
    "supplier_catalog",
]
