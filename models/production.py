"""
Production calculation schemas.

Inputs and outputs of the quantity → meters → kilograms pipeline.
"""

from pydantic import Field
from typing import Optional
from enum import Enum

from config.settings import settings
from models.base import BaseSchema, SnapshotSchema
from models.material import MaterialType
from models.product import LayerSlot


class OrderUnit(str, Enum):
    """Unit an order quantity is expressed in."""
    COUNT = "COUNT"    # Finished units
    WEIGHT = "WEIGHT"  # Kilograms of finished laminate
    LENGTH = "LENGTH"  # Finished meters


class ShortfallPolicy(str, Enum):
    """Behavior when the primary roll is short and no substitute is chosen."""
    OVERDRAW = "OVERDRAW"  # Deduct anyway, stock clamps at zero
    REJECT = "REJECT"      # Refuse the allocation


class ProductionConfig(BaseSchema):
    """Tunable production constants."""

    fixed_startup_meters: float = Field(..., ge=0)
    reprint_meters: float = Field(..., ge=0)
    lamination1_meters: float = Field(..., ge=0)
    lamination2_meters: float = Field(..., ge=0)
    variable_scrap_percent: float = Field(..., ge=0, le=1)
    material_densities: dict[MaterialType, float] = Field(default_factory=dict)
    shortfall_policy: ShortfallPolicy = ShortfallPolicy.OVERDRAW


class ProductionConfigUpdate(BaseSchema):
    """
    Partial config update.

    Only provided fields are changed; densities are merged per type.
    """

    fixed_startup_meters: Optional[float] = Field(None, ge=0)
    reprint_meters: Optional[float] = Field(None, ge=0)
    lamination1_meters: Optional[float] = Field(None, ge=0)
    lamination2_meters: Optional[float] = Field(None, ge=0)
    variable_scrap_percent: Optional[float] = Field(None, ge=0, le=1)
    material_densities: Optional[dict[MaterialType, float]] = None
    shortfall_policy: Optional[ShortfallPolicy] = None


class ScrapOverrides(BaseSchema):
    """Manual correction of any scrap component (meters)."""

    startup: Optional[float] = Field(None, ge=0)
    reprint: Optional[float] = Field(None, ge=0)
    lamination: Optional[float] = Field(None, ge=0)
    variable: Optional[float] = Field(None, ge=0)


class ScrapBreakdown(SnapshotSchema):
    """Waste meters by cause."""

    startup: float
    reprint: float
    lamination: float
    variable: float

    @property
    def total(self) -> float:
        return self.startup + self.reprint + self.lamination + self.variable


class MaterialWeights(SnapshotSchema):
    """Kilograms per layer and insum at one press length."""

    layer1_kg: float
    layer2_kg: float = 0
    layer3_kg: float = 0
    ink_kg: float = 0
    adhesive_kg: float = 0
    total_kg: float = 0


class CalculationResult(SnapshotSchema):
    """
    Full production requirement snapshot.

    Stored verbatim inside confirmed orders.
    """

    net_linear_meters: float = Field(..., description="Press meters for the order itself")
    gross_linear_meters: float = Field(..., description="Net plus scrap")
    max_linear_meters_with_tolerance: float = Field(..., description="Gross plus tolerance on net")
    scrap_meters: float
    scrap_breakdown: ScrapBreakdown
    variable_scrap_percent: float = Field(..., description="Variable scrap ratio actually used")
    standard: MaterialWeights = Field(..., description="Weights at gross meters")
    maximum: MaterialWeights = Field(..., description="Weights at max meters")
    total_weight_kg: float

    def meters_for(self, use_tolerance: bool) -> float:
        """Meters to allocate for an order."""
        return self.max_linear_meters_with_tolerance if use_tolerance else self.gross_linear_meters


class CalculationRequest(BaseSchema):
    """Request body for a production calculation."""

    product_id: str
    quantity: float = Field(..., ge=0)
    unit: OrderUnit = OrderUnit.COUNT
    tolerance_percent: float = Field(
        default_factory=lambda: settings.default_tolerance_percent, ge=0, le=100
    )
    scrap_overrides: Optional[ScrapOverrides] = None


class LayerStockCheck(BaseSchema):
    """Whether the chosen roll covers a layer's real requirement."""

    layer: LayerSlot
    material_id: Optional[str] = None
    stock_ok: bool
    missing_kg: float = 0
    required_real_kg: float = 0


class StockCheckRequest(CalculationRequest):
    """Calculation plus the operator's roll choices."""

    use_tolerance: bool = False
    selections: dict[LayerSlot, str] = Field(default_factory=dict)


class StockCheckResponse(BaseSchema):
    result: CalculationResult
    layers: list[LayerStockCheck]

