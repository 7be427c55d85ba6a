"""
Recommendation service: which inventory rolls fit a recipe layer.

Algorithm (per layer):
1. FILTER: same material type, width >= ideal width, stock > 0
2. SCORE (lower is better):
     thickness mismatch   +1000 + diff_μ * 100
     excess width         +width_diff_mm (always)
     thickness error >30% +10000 (last resort, still listed)
3. SORT ascending by score; ties keep inventory order

A perfect width match never outranks an exact thickness match, and among
exact matches the narrowest roll wins (least over-purchase and trim).
"""

from typing import Optional
import structlog

from config.production import (
    THICKNESS_DIFF_WEIGHT,
    THICKNESS_LAST_RESORT_PENALTY,
    THICKNESS_LAST_RESORT_RATIO,
    THICKNESS_MISMATCH_PENALTY,
    THICKNESS_WARNING_RATIO,
)
from exceptions import NoCompatibleInventoryError, ProductNotFoundError
from models.material import Material
from models.product import LayerSlot, LayerSpec, ProductRecipe
from models.production import CalculationResult, OrderUnit
from models.recommendation import (
    LayerRecommendations,
    MaterialRecommendation,
    RecipeRecommendations,
)
from services.config_service import ConfigService
from services.production_service import calculate_production_requirements
from services.store import Store, get_store

logger = structlog.get_logger(__name__)


def _score_candidate(material: Material, layer: LayerSpec, ideal_width_mm: float) -> MaterialRecommendation:
    thickness_diff = abs(material.thickness_microns - layer.thickness_microns)
    width_diff = material.width_mm - ideal_width_mm
    thickness_error = thickness_diff / layer.thickness_microns
    is_exact = thickness_diff == 0

    notes = []
    if not is_exact:
        notes.append(f"Thickness differs by {thickness_diff:g}μ")
        if thickness_error > THICKNESS_WARNING_RATIO:
            notes.append("OUT OF THICKNESS TOLERANCE")
    if width_diff > 0:
        notes.append(f"+{width_diff:g}mm of width")

    score = 0.0
    if not is_exact:
        score += THICKNESS_MISMATCH_PENALTY + thickness_diff * THICKNESS_DIFF_WEIGHT
    score += width_diff
    if thickness_error > THICKNESS_LAST_RESORT_RATIO:
        score += THICKNESS_LAST_RESORT_PENALTY

    return MaterialRecommendation(
        material=material,
        is_exact_thickness=is_exact,
        thickness_diff_microns=thickness_diff,
        width_diff_mm=width_diff,
        score=score,
        notes=notes,
    )


def recommend(
    layer: LayerSpec,
    print_web_width_mm: float,
    inventory: list[Material],
) -> list[MaterialRecommendation]:
    """
    Rank inventory rolls for an ideal layer, best first.

    Args:
        layer: Ideal layer specification
        print_web_width_mm: Recipe print web (drives the default width)
        inventory: Inventory snapshot (not mutated)

    Returns:
        Candidates sorted by ascending score (stable)
    """
    ideal_width = layer.effective_width_mm(print_web_width_mm)

    candidates = [
        m for m in inventory
        if m.type == layer.type
        and m.width_mm >= ideal_width
        and m.current_stock_kg > 0
    ]

    # sorted() is stable: equal scores keep inventory order
    return sorted(
        (_score_candidate(m, layer, ideal_width) for m in candidates),
        key=lambda r: r.score
    )


def auto_select(
    recipe: ProductRecipe,
    inventory: list[Material],
    selections: Optional[dict[LayerSlot, str]] = None,
) -> dict[LayerSlot, str]:
    """
    Fill unset layers with their top-ranked roll.

    Existing choices are never replaced. Layers with no compatible roll
    stay unset.
    """
    chosen = dict(selections or {})
    for slot, spec in recipe.layers:
        if chosen.get(slot):
            continue
        ranked = recommend(spec, recipe.web_width_mm, inventory)
        if ranked:
            chosen[slot] = ranked[0].material.id
    return chosen


def recommend_for_recipe(
    recipe: ProductRecipe,
    inventory: list[Material],
    selections: Optional[dict[LayerSlot, str]] = None,
    result: Optional[CalculationResult] = None,
) -> RecipeRecommendations:
    """
    Recommendations for every present layer, with auto-selection.

    Layers with no compatible roll produce a NoCompatibleInventoryError
    warning instead of failing: the numbers are still useful, but the
    order cannot be confirmed until stock arrives or the recipe changes.
    """
    chosen = auto_select(recipe, inventory, selections)
    layers = []
    warnings = []

    for slot, spec in recipe.layers:
        ranked = recommend(spec, recipe.web_width_mm, inventory)
        ideal_width = spec.effective_width_mm(recipe.web_width_mm)

        if not ranked:
            warning = NoCompatibleInventoryError(slot.value, spec.type.value, ideal_width)
            logger.warning(
                "no_compatible_inventory",
                product_id=recipe.id,
                layer=slot.value,
                material_type=spec.type.value,
                min_width_mm=ideal_width
            )
            warnings.append(warning.to_dict()["error"])

        layers.append(LayerRecommendations(
            layer=slot,
            label=slot.label,
            material_type=spec.type.value,
            ideal_thickness_microns=spec.thickness_microns,
            ideal_width_mm=ideal_width,
            theoretical_kg=getattr(result.standard, f"{slot.value}_kg") if result else 0,
            candidates=ranked,
            selected_material_id=chosen.get(slot),
        ))

    return RecipeRecommendations(product_id=recipe.id, layers=layers, warnings=warnings)


class RecommendationService:
    """Store-backed recommendations for stored recipes."""

    def __init__(self, store: Optional[Store] = None):
        self.store = store or get_store()
        self.config_service = ConfigService(self.store)

    def get_recommendations(
        self,
        product_id: str,
        selections: Optional[dict[LayerSlot, str]] = None,
        quantity: float = 0,
        unit: OrderUnit = OrderUnit.COUNT,
        tolerance_percent: float = 0,
    ) -> RecipeRecommendations:
        """
        Rank current inventory for each layer of a product.

        When a quantity is given, each layer also carries its theoretical
        weight at gross meters.
        """
        recipe = self.store.get_product(product_id)
        if recipe is None:
            raise ProductNotFoundError(product_id)

        inventory = self.store.list_materials()
        result = None
        if quantity > 0:
            result = calculate_production_requirements(
                quantity,
                tolerance_percent,
                unit,
                recipe,
                inventory,
                config=self.config_service.get_config(),
            )

        logger.info(
            "getting_material_recommendations",
            product_id=product_id,
            inventory_size=len(inventory)
        )
        return recommend_for_recipe(recipe, inventory, selections, result)


# Singleton instance
_recommendation_service: Optional[RecommendationService] = None


def get_recommendation_service() -> RecommendationService:
    """Get or create RecommendationService instance."""
    global _recommendation_service
    if _recommendation_service is None:
        _recommendation_service = RecommendationService()
    return _recommendation_service
