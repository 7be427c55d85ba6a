"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    SnapshotSchema,
)
from models.material import (
    MaterialType,
    Material,
    Supplier,
)
from models.product import (
    ProductFormat,
    LayerSlot,
    LayerSpec,
    ProductRecipe,
    Client,
)
from models.production import (
    OrderUnit,
    ShortfallPolicy,
    ProductionConfig,
    ProductionConfigUpdate,
    ScrapOverrides,
    ScrapBreakdown,
    MaterialWeights,
    CalculationResult,
    CalculationRequest,
    LayerStockCheck,
    StockCheckRequest,
    StockCheckResponse,
)
from models.recommendation import (
    MaterialRecommendation,
    LayerRecommendations,
    RecommendationRequest,
    RecipeRecommendations,
)
from models.order import (
    OrderStatus,
    MaterialRequirementSnapshot,
    StockDeduction,
    AllocationPlan,
    TechnicalDetails,
    ProductionOrder,
    OrderConfirmRequest,
    OrderStatusUpdate,
    OrderStageUpdate,
    QueueReorderRequest,
)

__all__ = [
    # Base
    "BaseSchema",
    "SnapshotSchema",

    # Material
    "MaterialType",
    "Material",
    "Supplier",

    # Product
    "ProductFormat",
    "LayerSlot",
    "LayerSpec",
    "ProductRecipe",
    "Client",

    # Production
    "OrderUnit",
    "ShortfallPolicy",
    "ProductionConfig",
    "ProductionConfigUpdate",
    "ScrapOverrides",
    "ScrapBreakdown",
    "MaterialWeights",
    "CalculationResult",
    "CalculationRequest",
    "LayerStockCheck",
    "StockCheckRequest",
    "StockCheckResponse",

    # Recommendation
    "MaterialRecommendation",
    "LayerRecommendations",
    "RecommendationRequest",
    "RecipeRecommendations",

    # Order
    "OrderStatus",
    "MaterialRequirementSnapshot",
    "StockDeduction",
    "AllocationPlan",
    "TechnicalDetails",
    "ProductionOrder",
    "OrderConfirmRequest",
    "OrderStatusUpdate",
    "OrderStageUpdate",
    "QueueReorderRequest",
]
