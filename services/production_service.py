"""
Production service: quantity → press meters → kilograms.

Pipeline:
1. NORMALIZE the requested quantity into net press meters
2. ADD scrap (startup, reprint, lamination, variable) → gross meters
3. ADD tolerance on net meters → max meters
4. EXPLODE gross and max meters into per-layer and insum kilograms

Every function here is read-only: no store writes, and identical inputs
always give identical results.
"""

import math
from typing import Optional
import structlog

from config.production import MM_PER_M
from exceptions import InvalidRecipeError, ProductNotFoundError, ValidationError
from models.material import Material
from models.product import LayerSlot, ProductRecipe
from models.production import (
    CalculationResult,
    LayerStockCheck,
    MaterialWeights,
    OrderUnit,
    ProductionConfig,
    ScrapBreakdown,
    ScrapOverrides,
)
from services.config_service import ConfigService, get_config_service
from services.store import Store, get_store
from services.weight_service import (
    DensityTable,
    insum_weights,
    real_weight,
    recipe_kg_per_meter,
    theoretical_weight,
)

logger = structlog.get_logger(__name__)


# Float noise guard before ceil (75.00000000001 must stay 75)
CEIL_PRECISION = 6


def _ceil(value: float) -> int:
    return math.ceil(round(value, CEIL_PRECISION))


# ===================
# UNIT NORMALIZER
# ===================

def normalize_quantity(
    quantity: float,
    unit: OrderUnit,
    recipe: ProductRecipe,
    densities: Optional[DensityTable] = None,
) -> float:
    """
    Net press meters needed for an order quantity.

    LENGTH: finished meters / tracks (each pass yields one lane per track)
    COUNT:  units * cutoff_mm / (tracks * 1000)
    WEIGHT: kg / theoretical kg per press meter

    Raises:
        InvalidRecipeError: WEIGHT order on a recipe with no weight per meter
        ValidationError: negative quantity
    """
    if quantity < 0:
        raise ValidationError(
            "Quantity must not be negative",
            code="INVALID_QUANTITY",
            details={"quantity": quantity}
        )

    tracks = recipe.effective_track_count

    if unit == OrderUnit.LENGTH:
        return quantity / tracks

    if unit == OrderUnit.COUNT:
        return (quantity * recipe.cutoff_mm) / (tracks * MM_PER_M)

    kg_per_meter = recipe_kg_per_meter(recipe, densities)
    if kg_per_meter <= 0:
        logger.warning("invalid_recipe_weight", product_id=recipe.id, kg_per_meter=kg_per_meter)
        raise InvalidRecipeError(recipe.id, kg_per_meter)
    return quantity / kg_per_meter


# ===================
# SCRAP MODEL
# ===================

def effective_scrap_percent(recipe: ProductRecipe, config: ProductionConfig) -> float:
    """Recipe-specific variable scrap ratio, else the global one."""
    if recipe.specific_scrap_percent is not None:
        return recipe.specific_scrap_percent
    return config.variable_scrap_percent


def compute_scrap(
    net_meters: float,
    recipe: ProductRecipe,
    config: ProductionConfig,
    overrides: Optional[ScrapOverrides] = None,
) -> ScrapBreakdown:
    """
    Waste meters by cause.

    Each component is taken from overrides when given; the others keep
    their computed defaults.
    """
    overrides = overrides or ScrapOverrides()

    default_reprint = config.reprint_meters if recipe.layer1.type.is_reprint else 0
    default_lamination = (
        (config.lamination1_meters if recipe.layer2 is not None else 0)
        + (config.lamination2_meters if recipe.layer3 is not None else 0)
    )
    default_variable = _ceil(net_meters * effective_scrap_percent(recipe, config))

    return ScrapBreakdown(
        startup=overrides.startup if overrides.startup is not None else config.fixed_startup_meters,
        reprint=overrides.reprint if overrides.reprint is not None else default_reprint,
        lamination=overrides.lamination if overrides.lamination is not None else default_lamination,
        variable=overrides.variable if overrides.variable is not None else default_variable,
    )


def gross_meters(net_meters: float, scrap: ScrapBreakdown) -> int:
    return _ceil(net_meters + scrap.total)


def max_meters_with_tolerance(gross: float, net_meters: float, tolerance_percent: float) -> int:
    """Tolerance applies to net meters, then is added on top of gross."""
    return _ceil(gross + net_meters * (tolerance_percent / 100))


# ===================
# WEIGHT EXPLOSION
# ===================

def explode_weights(
    recipe: ProductRecipe,
    length_m: float,
    densities: Optional[DensityTable] = None,
) -> MaterialWeights:
    """Theoretical kilograms per layer and insum, rounded to 2 decimals."""
    layer_kg = {
        slot: theoretical_weight(recipe.web_width_mm, length_m, spec, densities)
        for slot, spec in recipe.layers
    }
    ink_kg, adhesive_kg = insum_weights(recipe, length_m)
    total = sum(layer_kg.values()) + ink_kg + adhesive_kg

    return MaterialWeights(
        layer1_kg=round(layer_kg.get(LayerSlot.LAYER1, 0), 2),
        layer2_kg=round(layer_kg.get(LayerSlot.LAYER2, 0), 2),
        layer3_kg=round(layer_kg.get(LayerSlot.LAYER3, 0), 2),
        ink_kg=round(ink_kg, 2),
        adhesive_kg=round(adhesive_kg, 2),
        total_kg=round(total, 2),
    )


def calculate_production_requirements(
    quantity: float,
    tolerance_percent: float,
    unit: OrderUnit,
    recipe: ProductRecipe,
    inventory: Optional[list[Material]] = None,
    scrap_overrides: Optional[ScrapOverrides] = None,
    config: Optional[ProductionConfig] = None,
) -> CalculationResult:
    """
    Full production requirement for an order.

    Sizing is based on the ideal recipe; inventory is accepted so callers
    can pass the snapshot they will recommend from, but real roll
    dimensions only matter at allocation time.

    Args:
        quantity: Amount in `unit`
        tolerance_percent: Over-production allowance on net meters (%)
        unit: COUNT, WEIGHT or LENGTH
        recipe: Product recipe
        inventory: Inventory snapshot (not mutated)
        scrap_overrides: Manual scrap components
        config: Production config (defaults to the stored config)

    Returns:
        CalculationResult snapshot
    """
    config = config or get_config_service().get_config()
    densities = config.material_densities

    net = normalize_quantity(quantity, unit, recipe, densities)
    scrap = compute_scrap(net, recipe, config, scrap_overrides)
    gross = gross_meters(net, scrap)
    maximum = max_meters_with_tolerance(gross, net, tolerance_percent)

    standard_weights = explode_weights(recipe, gross, densities)
    max_weights = explode_weights(recipe, maximum, densities)

    logger.debug(
        "production_requirements_calculated",
        product_id=recipe.id,
        unit=unit.value,
        quantity=quantity,
        net_meters=round(net, 2),
        gross_meters=gross,
        max_meters=maximum,
        inventory_size=len(inventory) if inventory is not None else None
    )

    return CalculationResult(
        net_linear_meters=_ceil(net),
        gross_linear_meters=gross,
        max_linear_meters_with_tolerance=maximum,
        scrap_meters=scrap.total,
        scrap_breakdown=scrap,
        variable_scrap_percent=effective_scrap_percent(recipe, config),
        standard=standard_weights,
        maximum=max_weights,
        total_weight_kg=standard_weights.total_kg,
    )


# ===================
# STOCK CHECK
# ===================

def check_stock(
    result: CalculationResult,
    recipe: ProductRecipe,
    selections: dict[LayerSlot, str],
    inventory: list[Material],
    use_tolerance: bool = False,
    densities: Optional[DensityTable] = None,
) -> list[LayerStockCheck]:
    """
    Whether each chosen roll covers its layer's real requirement.

    Layers with no choice (or an unknown material) are reported short by
    their theoretical weight.
    """
    meters = result.meters_for(use_tolerance)
    weights = result.maximum if use_tolerance else result.standard
    by_id = {m.id: m for m in inventory}
    checks = []

    for slot, _ in recipe.layers:
        theoretical_kg = getattr(weights, f"{slot.value}_kg")
        material = by_id.get(selections.get(slot, ""))

        if material is None:
            checks.append(LayerStockCheck(
                layer=slot,
                material_id=selections.get(slot),
                stock_ok=False,
                missing_kg=theoretical_kg,
                required_real_kg=theoretical_kg,
            ))
            continue

        required = real_weight(meters, material, densities)
        missing = max(0.0, required - material.current_stock_kg)
        checks.append(LayerStockCheck(
            layer=slot,
            material_id=material.id,
            stock_ok=missing == 0,
            missing_kg=round(missing, 2),
            required_real_kg=round(required, 2),
        ))

    return checks


class ProductionService:
    """Store-backed wrapper around the calculation pipeline."""

    def __init__(self, store: Optional[Store] = None):
        self.store = store or get_store()
        self.config_service = ConfigService(self.store)

    def get_recipe(self, product_id: str) -> ProductRecipe:
        recipe = self.store.get_product(product_id)
        if recipe is None:
            raise ProductNotFoundError(product_id)
        return recipe

    def calculate(
        self,
        product_id: str,
        quantity: float,
        unit: OrderUnit,
        tolerance_percent: float = 0,
        scrap_overrides: Optional[ScrapOverrides] = None,
    ) -> CalculationResult:
        """Calculate requirements for a stored recipe."""
        logger.info(
            "calculating_production_requirements",
            product_id=product_id,
            quantity=quantity,
            unit=unit.value
        )
        recipe = self.get_recipe(product_id)
        return calculate_production_requirements(
            quantity,
            tolerance_percent,
            unit,
            recipe,
            self.store.list_materials(),
            scrap_overrides,
            self.config_service.get_config(),
        )

    def check_stock(
        self,
        product_id: str,
        quantity: float,
        unit: OrderUnit,
        selections: dict[LayerSlot, str],
        tolerance_percent: float = 0,
        use_tolerance: bool = False,
        scrap_overrides: Optional[ScrapOverrides] = None,
    ) -> tuple[CalculationResult, list[LayerStockCheck]]:
        """Calculate and check the chosen rolls against current stock."""
        recipe = self.get_recipe(product_id)
        config = self.config_service.get_config()
        inventory = self.store.list_materials()
        result = calculate_production_requirements(
            quantity, tolerance_percent, unit, recipe, inventory, scrap_overrides, config
        )
        checks = check_stock(
            result, recipe, selections, inventory, use_tolerance, config.material_densities
        )
        return result, checks


# Singleton instance
_production_service: Optional[ProductionService] = None


def get_production_service() -> ProductionService:
    """Get or create ProductionService instance."""
    global _production_service
    if _production_service is None:
        _production_service = ProductionService()
    return _production_service
