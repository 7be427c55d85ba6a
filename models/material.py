"""
Inventory material and supplier schemas.
"""

from pydantic import Field, field_validator
from typing import Optional
from enum import Enum

from config.production import REPRINT_MATERIAL_TYPES
from models.base import BaseSchema


class MaterialType(str, Enum):
    """Substrate families."""
    BOPP = "BOPP"
    BOPP_MATTE = "BOPP MATTE"
    BOPP_METALLIZED = "BOPP METALLIZED"
    BOPP_DT = "BOPP DT"
    BOPP_PEARL = "BOPP PEARL"
    BOPP_WHITE = "BOPP WHITE"
    PET = "PET"
    PET_DT = "PET DT"
    PET_PVDC = "PET PVDC"
    PET_METALLIZED = "PET METALLIZED"
    PE = "PE"
    PE_WHITE = "PE WHITE"
    CPP = "CPP"
    BOPA = "BOPA"
    PAPER = "PAPER"
    FOIL = "FOIL"

    @property
    def is_reprint(self) -> bool:
        """DT substrates need a second printing pass."""
        return self.value in REPRINT_MATERIAL_TYPES


class Material(BaseSchema):
    """
    A physical inventory roll / SKU.

    Width and thickness are the real, as-stocked dimensions and may differ
    from a recipe's ideal layer.
    """

    id: str = Field(..., min_length=1, description="Material ID")
    internal_code: str = Field(..., description="Internal ERP code")
    name: str = Field(..., min_length=1, description="Display name")
    supplier: Optional[str] = Field(None, description="Supplier name")
    type: MaterialType = Field(..., description="Substrate family")
    thickness_microns: float = Field(..., ge=0, description="Real thickness (μ)")
    density_g_cm3: float = Field(
        default=0,
        ge=0,
        description="Specific density (g/cm³); 0 uses the type default"
    )
    width_mm: float = Field(..., ge=0, description="Real roll width (mm)")
    current_stock_kg: float = Field(default=0, ge=0, description="Stock on hand (kg)")
    cost_per_kg: Optional[float] = Field(None, ge=0, description="Cost per kg")
    external_id: Optional[str] = Field(None, description="ERP identifier")

    @field_validator("internal_code")
    @classmethod
    def code_uppercase(cls, v: str) -> str:
        """Internal codes are stored uppercase."""
        return v.upper().strip()


class Supplier(BaseSchema):
    """Material supplier."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, description="Legal name")
    contact: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    origin: Optional[str] = Field(None, description="Domestic / imported")
    external_id: Optional[str] = None
