"""
Material recommendation schemas.

Ranks inventory rolls against a recipe's ideal layer.
"""

from pydantic import Field
from typing import Optional

from config.settings import settings
from models.base import BaseSchema
from models.material import Material
from models.product import LayerSlot
from models.production import OrderUnit


class MaterialRecommendation(BaseSchema):
    """One candidate roll for a layer. Lower score is better."""

    material: Material
    is_exact_thickness: bool
    thickness_diff_microns: float = Field(..., ge=0, description="|real - ideal| thickness")
    width_diff_mm: float = Field(..., ge=0, description="Excess width over the ideal")
    score: float
    notes: list[str] = Field(default_factory=list)


class LayerRecommendations(BaseSchema):
    """Ranked candidates for one recipe layer."""

    layer: LayerSlot
    label: str
    material_type: str
    ideal_thickness_microns: float
    ideal_width_mm: float
    theoretical_kg: float = Field(default=0, description="Ideal weight at gross meters")
    candidates: list[MaterialRecommendation] = Field(default_factory=list)
    selected_material_id: Optional[str] = Field(
        None,
        description="Operator choice, or the top candidate when none was made"
    )


class RecommendationRequest(BaseSchema):
    """Request body for recipe-wide recommendations."""

    product_id: str
    quantity: float = Field(default=0, ge=0)
    unit: OrderUnit = OrderUnit.COUNT
    tolerance_percent: float = Field(
        default_factory=lambda: settings.default_tolerance_percent, ge=0, le=100
    )
    selections: dict[LayerSlot, str] = Field(default_factory=dict)


class RecipeRecommendations(BaseSchema):
    """Recommendations for every present layer of a recipe."""

    product_id: str
    layers: list[LayerRecommendations]
    warnings: list[dict] = Field(
        default_factory=list,
        description="Non-fatal issues, e.g. a required layer with no compatible stock"
    )

    @property
    def selections(self) -> dict[LayerSlot, str]:
        return {
            layer.layer: layer.selected_material_id
            for layer in self.layers
            if layer.selected_material_id
        }
