"""
Product recipe and client schemas.
"""

from pydantic import Field
from typing import Optional
from enum import Enum

from config.production import DEFAULT_WIDTH_MARGIN_MM
from models.base import BaseSchema
from models.material import MaterialType


class ProductFormat(str, Enum):
    """Finished-good format."""
    REEL = "REEL"
    BAG = "BAG"


class LayerSlot(str, Enum):
    """Structural position of a layer in the laminate."""
    LAYER1 = "layer1"  # Print
    LAYER2 = "layer2"  # Lamination / barrier
    LAYER3 = "layer3"  # Sealant

    @property
    def label(self) -> str:
        return _LAYER_LABELS[self]


_LAYER_LABELS = {
    LayerSlot.LAYER1: "Layer 1 (Print)",
    LayerSlot.LAYER2: "Layer 2 (Lamination)",
    LayerSlot.LAYER3: "Layer 3 (Sealant)",
}


class LayerSpec(BaseSchema):
    """Ideal specification of one layer in a recipe."""

    type: MaterialType
    thickness_microns: float = Field(..., gt=0, description="Ideal thickness (μ)")
    ideal_width_mm: Optional[float] = Field(
        None,
        ge=0,
        description="Ideal width (mm); blank or 0 means print web + 20mm"
    )

    def effective_width_mm(self, print_web_width_mm: float) -> float:
        """Ideal width, falling back to the print web plus margin."""
        if self.ideal_width_mm:
            return self.ideal_width_mm
        return print_web_width_mm + DEFAULT_WIDTH_MARGIN_MM


class ProductRecipe(BaseSchema):
    """
    Commercial and technical definition of a product.

    layer1 is mandatory; layer2 and layer3 are present only when the
    structure actually has them.
    """

    id: str = Field(..., min_length=1)
    sku: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1)
    client_id: Optional[str] = None
    format: ProductFormat = ProductFormat.REEL

    specific_scrap_percent: Optional[float] = Field(
        None,
        ge=0,
        le=1,
        description="Overrides the global variable scrap ratio"
    )

    # Press geometry
    web_width_mm: float = Field(..., gt=0, description="Print web width (mm)")
    track_count: int = Field(default=1, description="Lanes per press pass")
    cylinder_mm: float = Field(default=0, ge=0, description="Cylinder repeat (mm)")
    cutoff_mm: float = Field(default=0, ge=0, description="Press advance per unit (mm)")

    # Reel only
    winding_direction: Optional[str] = None
    final_reel_width_mm: Optional[float] = Field(None, ge=0)

    # Bag only
    bag_width_mm: Optional[float] = Field(None, ge=0)
    bag_height_mm: Optional[float] = Field(None, ge=0)
    gusset_mm: Optional[float] = Field(None, ge=0)

    # Structure
    layer1: LayerSpec
    layer2: Optional[LayerSpec] = None
    layer3: Optional[LayerSpec] = None

    # Insums
    ink_coverage_g_m2: float = Field(default=0, ge=0)
    adhesive_coverage_g_m2: float = Field(default=0, ge=0)

    @property
    def effective_track_count(self) -> int:
        # Guard against division by zero on badly entered recipes
        return self.track_count if self.track_count > 0 else 1

    @property
    def layers(self) -> list[tuple[LayerSlot, LayerSpec]]:
        """Present layers in structural order."""
        slots = [
            (LayerSlot.LAYER1, self.layer1),
            (LayerSlot.LAYER2, self.layer2),
            (LayerSlot.LAYER3, self.layer3),
        ]
        return [(slot, spec) for slot, spec in slots if spec is not None]

    @property
    def layer_count(self) -> int:
        return len(self.layers)

    def get_layer(self, slot: LayerSlot) -> Optional[LayerSpec]:
        return getattr(self, slot.value)


class Client(BaseSchema):
    """Customer."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    contact: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    external_id: Optional[str] = None
