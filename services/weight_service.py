"""
Weight service: converts press meters into kilograms and back.

Film weight:
    kg = (width_mm / 1000) * meters * thickness_μ * density_g_cm3 / 1000

Every computation resolves density through resolve_density() so the
theoretical, real and inverse paths always agree on which density applies.
"""

from enum import Enum
from typing import Mapping, Optional, Union
import structlog

from config.production import (
    DEFAULT_MATERIAL_DENSITIES,
    FALLBACK_DENSITY,
    G_PER_KG,
    MM_PER_M,
)
from exceptions import DegenerateMaterialError
from models.material import Material, MaterialType
from models.product import LayerSpec, ProductRecipe

logger = structlog.get_logger(__name__)

DensityTable = Mapping[Union[MaterialType, str], float]


def _type_key(material_type: Union[MaterialType, str]) -> str:
    return material_type.value if isinstance(material_type, Enum) else str(material_type)


def resolve_density(
    material_type: Union[MaterialType, str],
    material_density: Optional[float] = None,
    densities: Optional[DensityTable] = None,
) -> float:
    """
    Density for a material, in g/cm³.

    Resolution order:
        1. the material's own density, if non-zero
        2. the configured density for its type
        3. the built-in default for its type
        4. FALLBACK_DENSITY
    """
    if material_density:
        return material_density

    key = _type_key(material_type)
    if densities:
        configured = {_type_key(k): v for k, v in densities.items()}
        if configured.get(key):
            return configured[key]

    return DEFAULT_MATERIAL_DENSITIES.get(key) or FALLBACK_DENSITY


def film_weight(width_mm: float, length_m: float, thickness_microns: float, density: float) -> float:
    """Kilograms of film for a web of the given size."""
    return (width_mm / MM_PER_M) * length_m * thickness_microns * density / G_PER_KG


def theoretical_weight(
    print_web_width_mm: float,
    length_m: float,
    layer: LayerSpec,
    densities: Optional[DensityTable] = None,
) -> float:
    """
    Ideal weight of a recipe layer.

    Uses the layer's ideal width (or print web + margin) and the type
    density, since an ideal layer has no density of its own.
    """
    width_mm = layer.effective_width_mm(print_web_width_mm)
    density = resolve_density(layer.type, None, densities)
    return film_weight(width_mm, length_m, layer.thickness_microns, density)


def real_weight(
    length_m: float,
    material: Material,
    densities: Optional[DensityTable] = None,
) -> float:
    """Weight of a specific inventory roll for a press length."""
    density = resolve_density(material.type, material.density_g_cm3, densities)
    return film_weight(material.width_mm, length_m, material.thickness_microns, density)


def meters_from_real_weight(
    kg: float,
    material: Material,
    densities: Optional[DensityTable] = None,
    strict: bool = False,
) -> float:
    """
    Press meters a quantity of a roll yields. Inverse of real_weight().

    A material with zero width or thickness cannot be converted. By
    default this returns 0 so incomplete inventory records never break a
    calculation; with strict=True it raises DegenerateMaterialError.

    Raises:
        DegenerateMaterialError: strict mode and a zero dimension
    """
    density = resolve_density(material.type, material.density_g_cm3, densities)
    kg_per_meter = film_weight(material.width_mm, 1, material.thickness_microns, density)

    if kg_per_meter <= 0:
        logger.warning(
            "degenerate_material",
            material_id=material.id,
            width_mm=material.width_mm,
            thickness_microns=material.thickness_microns
        )
        if strict:
            raise DegenerateMaterialError(material.id, material.width_mm, material.thickness_microns)
        return 0.0

    return kg / kg_per_meter


def insum_weights(recipe: ProductRecipe, length_m: float) -> tuple[float, float]:
    """
    Ink and adhesive kilograms for a press length.

    Ink covers the print web once. Adhesive is applied once per
    lamination interface (one for layer2, one more for layer3).

    Returns:
        (ink_kg, adhesive_kg)
    """
    area_m2 = (recipe.web_width_mm / MM_PER_M) * length_m
    ink_kg = area_m2 * recipe.ink_coverage_g_m2 / G_PER_KG
    interfaces = recipe.layer_count - 1
    adhesive_kg = interfaces * area_m2 * recipe.adhesive_coverage_g_m2 / G_PER_KG
    return ink_kg, adhesive_kg


def recipe_kg_per_meter(
    recipe: ProductRecipe,
    densities: Optional[DensityTable] = None,
) -> float:
    """Theoretical weight of one press meter of finished laminate."""
    films = sum(
        theoretical_weight(recipe.web_width_mm, 1, spec, densities)
        for _, spec in recipe.layers
    )
    ink_kg, adhesive_kg = insum_weights(recipe, 1)
    return films + ink_kg + adhesive_kg
