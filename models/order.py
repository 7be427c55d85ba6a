"""
Production order schemas.

A confirmed order carries denormalized snapshots (calculation result,
technical details, material requirements) so later recipe or inventory
edits never change what was recorded.
"""

from pydantic import Field
from typing import Optional
from datetime import date
from enum import Enum

from config.settings import settings
from models.base import BaseSchema, SnapshotSchema
from models.product import LayerSlot, ProductFormat
from models.production import CalculationResult, OrderUnit, ScrapOverrides


class OrderStatus(str, Enum):
    """Order lifecycle."""
    PENDING = "PENDING"
    IN_PRODUCTION = "IN_PRODUCTION"
    DONE = "DONE"


class MaterialRequirementSnapshot(SnapshotSchema):
    """One roll consumed for an order."""

    layer: str = Field(..., description="Layer label, suffixed for complements")
    material_id: str
    material_name: str
    internal_code: str
    width_mm: float
    required_kg: float = Field(..., description="Kg deducted, rounded to 2 decimals")
    meters: float = Field(default=0, description="Press meters covered by this roll")
    is_substitute: bool = False
    original_material_id: Optional[str] = Field(
        None,
        description="Primary roll this substitute complements"
    )


class StockDeduction(SnapshotSchema):
    """Stock movement implied by an allocation plan."""

    material_id: str
    kg: float


class AllocationPlan(SnapshotSchema):
    """Rows and deductions for one layer, computed before any stock moves."""

    layer: LayerSlot
    meters_required: float
    rows: list[MaterialRequirementSnapshot] = Field(default_factory=list)
    deductions: list[StockDeduction] = Field(default_factory=list)
    used_substitute: bool = False
    overdrawn: bool = Field(
        default=False,
        description="Primary was short, no substitute, deducted anyway"
    )


class TechnicalDetails(SnapshotSchema):
    """What the press operator needs to know about the product."""

    format: ProductFormat
    web_width_mm: float
    cylinder_mm: float
    cutoff_mm: float
    track_count: int
    layers: list[str] = Field(default_factory=list, description="Material names used")
    winding_direction: Optional[str] = None


class ProductionOrder(BaseSchema):
    """Confirmed production order."""

    id: str
    order_code: str = Field(..., description="Human-readable code, e.g. OP-1001")
    product_id: str
    product_name: str
    client_id: Optional[str] = None
    client_name: str = "Unknown"
    order_date: date

    quantity_requested: float
    unit: OrderUnit
    tolerance_percent: float = 0
    use_tolerance: bool = False

    calculation_snapshot: CalculationResult
    technical_details: TechnicalDetails
    material_requirements: list[MaterialRequirementSnapshot] = Field(default_factory=list)

    required_stages: list[str]
    status: OrderStatus = OrderStatus.PENDING
    current_stage: Optional[str] = None
    queue_index: int = 0
    notes: Optional[str] = None


class OrderConfirmRequest(BaseSchema):
    """Everything needed to confirm an order."""

    product_id: str
    client_id: Optional[str] = Field(None, description="Defaults to the recipe's client")
    quantity: float = Field(..., gt=0)
    unit: OrderUnit = OrderUnit.COUNT
    tolerance_percent: float = Field(
        default_factory=lambda: settings.default_tolerance_percent, ge=0, le=100
    )
    use_tolerance: bool = Field(
        default=False,
        description="Allocate max-with-tolerance meters instead of gross"
    )
    selections: dict[LayerSlot, str] = Field(
        default_factory=dict,
        description="Primary material ID per layer"
    )
    substitutes: dict[LayerSlot, str] = Field(
        default_factory=dict,
        description="Optional substitute material ID per layer"
    )
    scrap_overrides: Optional[ScrapOverrides] = None
    notes: Optional[str] = Field(None, max_length=1000)


class OrderStatusUpdate(BaseSchema):
    status: OrderStatus


class OrderStageUpdate(BaseSchema):
    stage: str = Field(..., min_length=1)


class QueueReorderRequest(BaseSchema):
    order_ids: list[str] = Field(..., description="Order IDs in the new queue order")
