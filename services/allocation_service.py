"""
Allocation service: splits a layer's meters across real rolls and moves stock.

Policy for one layer:
1. required_kg = real weight of the primary roll for the required meters
2. Primary covers it, or no substitute was chosen → deduct required_kg
   from the primary (stock clamps at 0; REJECT policy refuses instead)
3. Otherwise → consume the primary's whole stock, and the substitute
   covers the remaining meters at its own real weight

Planning is pure; apply() is the only place stock changes.
"""

from typing import Optional
import structlog

from config.production import SUBSTITUTE_LABEL_SUFFIX
from exceptions import MaterialNotFoundError, StockShortfallError, ValidationError
from models.material import Material
from models.order import AllocationPlan, MaterialRequirementSnapshot, StockDeduction
from models.product import LayerSlot
from models.production import ShortfallPolicy
from services.config_service import ConfigService
from services.store import Store, get_store
from services.weight_service import DensityTable, meters_from_real_weight, real_weight

logger = structlog.get_logger(__name__)


def _snapshot_row(
    label: str,
    material: Material,
    kg: float,
    meters: float,
    original_material_id: Optional[str] = None,
) -> MaterialRequirementSnapshot:
    return MaterialRequirementSnapshot(
        layer=label,
        material_id=material.id,
        material_name=material.name,
        internal_code=material.internal_code,
        width_mm=material.width_mm,
        required_kg=round(kg, 2),
        meters=round(meters, 2),
        is_substitute=original_material_id is not None,
        original_material_id=original_material_id,
    )


def plan_allocation(
    layer: LayerSlot,
    meters_required: float,
    primary: Material,
    substitute: Optional[Material] = None,
    densities: Optional[DensityTable] = None,
    policy: ShortfallPolicy = ShortfallPolicy.OVERDRAW,
    label: Optional[str] = None,
) -> AllocationPlan:
    """
    Work out which rolls cover a layer and how much each gives up.

    Args:
        layer: Layer slot being allocated
        meters_required: Press meters to cover
        primary: Chosen roll
        substitute: Optional complementary roll for a shortfall
        densities: Configured densities
        policy: What to do when the primary is short and has no substitute
        label: Row label (defaults to the slot label)

    Returns:
        AllocationPlan (nothing is deducted)

    Raises:
        ValidationError: substitute is the primary itself
        StockShortfallError: REJECT policy and the primary is short
    """
    label = label or layer.label

    if substitute is not None and substitute.id == primary.id:
        raise ValidationError(
            "Substitute material must differ from the primary material",
            code="INVALID_SUBSTITUTE",
            details={"layer": layer.value, "material_id": primary.id}
        )

    if meters_required <= 0:
        return AllocationPlan(layer=layer, meters_required=meters_required)

    total_kg = real_weight(meters_required, primary, densities)
    available_kg = primary.current_stock_kg
    short = available_kg < total_kg

    if not short or substitute is None:
        if short and policy == ShortfallPolicy.REJECT:
            raise StockShortfallError(primary.id, total_kg, available_kg)

        return AllocationPlan(
            layer=layer,
            meters_required=meters_required,
            rows=[_snapshot_row(label, primary, total_kg, meters_required)],
            deductions=[StockDeduction(material_id=primary.id, kg=total_kg)],
            overdrawn=short,
        )

    # A residue that rounds to 0.00 kg is left on the roll; the substitute
    # covers every meter instead
    primary_kg = available_kg if round(available_kg, 2) > 0 else 0.0
    primary_meters = meters_from_real_weight(primary_kg, primary, densities)
    substitute_meters = meters_required - primary_meters
    substitute_kg = real_weight(substitute_meters, substitute, densities)

    rows = []
    deductions = []
    if primary_kg > 0:
        rows.append(_snapshot_row(label, primary, primary_kg, primary_meters))
        deductions.append(StockDeduction(material_id=primary.id, kg=primary_kg))

    rows.append(_snapshot_row(
        label + SUBSTITUTE_LABEL_SUFFIX,
        substitute,
        substitute_kg,
        substitute_meters,
        original_material_id=primary.id,
    ))
    deductions.append(StockDeduction(material_id=substitute.id, kg=substitute_kg))

    return AllocationPlan(
        layer=layer,
        meters_required=meters_required,
        rows=rows,
        deductions=deductions,
        used_substitute=True,
    )


class AllocationService:
    """Plans allocations and applies them to the store."""

    def __init__(self, store: Optional[Store] = None, policy: Optional[ShortfallPolicy] = None):
        self.store = store or get_store()
        self.config_service = ConfigService(self.store)
        self.policy = policy

    def plan(
        self,
        layer: LayerSlot,
        meters_required: float,
        primary: Material,
        substitute: Optional[Material] = None,
        label: Optional[str] = None,
    ) -> AllocationPlan:
        """Plan with the configured densities and shortfall policy."""
        config = self.config_service.get_config()
        return plan_allocation(
            layer,
            meters_required,
            primary,
            substitute,
            densities=config.material_densities,
            policy=self.policy or config.shortfall_policy,
            label=label,
        )

    def apply(self, plan: AllocationPlan) -> list[MaterialRequirementSnapshot]:
        """
        Deduct a plan's stock movements.

        Raises:
            MaterialNotFoundError: a planned material vanished from the store
        """
        for deduction in plan.deductions:
            if not self.store.deduct_stock(deduction.material_id, deduction.kg):
                raise MaterialNotFoundError(deduction.material_id)

        if plan.overdrawn:
            logger.warning(
                "allocation_overdrawn",
                layer=plan.layer.value,
                material_id=plan.deductions[0].material_id
            )

        logger.info(
            "layer_allocated",
            layer=plan.layer.value,
            meters=plan.meters_required,
            rows=len(plan.rows),
            used_substitute=plan.used_substitute
        )
        return list(plan.rows)

    def allocate(
        self,
        layer: LayerSlot,
        meters_required: float,
        primary: Material,
        substitute: Optional[Material] = None,
        label: Optional[str] = None,
    ) -> list[MaterialRequirementSnapshot]:
        """Plan and apply in one step."""
        return self.apply(self.plan(layer, meters_required, primary, substitute, label))
