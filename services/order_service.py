"""
Order service: confirmation and production queue lifecycle.

Confirmation flow:
1. PRECHECK  recipe exists, every present layer has an existing roll
2. CALCULATE requirements (gross or max-with-tolerance meters)
3. PLAN every layer (REJECT policy fails here, before any stock moves)
4. APPLY deductions layer by layer
5. PERSIST the order with its snapshots, at the end of the queue

Nothing is deducted unless steps 1-3 succeed for every layer.
"""

from datetime import date
from typing import Optional
from uuid import uuid4
import structlog

from config import settings
from config.production import (
    ALL_STAGES,
    ORDER_SEQUENCE_NAME,
    STAGE_BAG_MAKING,
    STAGE_LAMINATION,
    STAGE_PRINT,
    STAGE_REPRINT,
    STAGE_SLITTING,
    STAGE_TRILAMINATION,
)
from exceptions import (
    InvalidStageError,
    MaterialNotFoundError,
    MissingSelectionError,
    OrderNotFoundError,
    ProductNotFoundError,
    ValidationError,
)
from models.material import Material
from models.order import (
    OrderConfirmRequest,
    OrderStatus,
    ProductionOrder,
    TechnicalDetails,
)
from models.product import ProductFormat, ProductRecipe
from services.allocation_service import AllocationService
from services.config_service import ConfigService
from services.production_service import calculate_production_requirements
from services.store import ORDERS, Store, get_store

logger = structlog.get_logger(__name__)


def derive_stages(recipe: ProductRecipe) -> list[str]:
    """
    Workflow stages implied by a recipe's structure.

    Print and Slitting are always present; the rest depend on the print
    substrate, the laminate layers and the finished format.
    """
    stages = [STAGE_PRINT]
    if recipe.layer1.type.is_reprint:
        stages.append(STAGE_REPRINT)
    if recipe.layer2 is not None:
        stages.append(STAGE_LAMINATION)
    if recipe.layer3 is not None:
        stages.append(STAGE_TRILAMINATION)
    stages.append(STAGE_SLITTING)
    if recipe.format == ProductFormat.BAG:
        stages.append(STAGE_BAG_MAKING)
    return stages


def next_order_code(store: Store) -> str:
    """Next human-readable code, e.g. OP-1001. Never reused after deletes."""
    sequence = store.next_sequence(ORDER_SEQUENCE_NAME)
    return f"{settings.order_code_prefix}{settings.order_code_start + sequence}"


def _with_remaining_stock(material: Material, remaining: dict[str, float]) -> Material:
    return material.model_copy(update={"current_stock_kg": remaining[material.id]})


class OrderService:
    """
    Production order business logic.

    Confirms orders against live stock and manages the production queue.
    """

    def __init__(self, store: Optional[Store] = None):
        self.store = store or get_store()
        self.config_service = ConfigService(self.store)
        self.allocation_service = AllocationService(self.store)

    # ===================
    # CONFIRMATION
    # ===================

    def confirm_order(self, request: OrderConfirmRequest) -> ProductionOrder:
        """
        Confirm an order: deduct stock and persist the snapshot.

        Args:
            request: Product, quantity and roll choices

        Returns:
            Persisted ProductionOrder (status PENDING)

        Raises:
            ProductNotFoundError: Unknown product
            MissingSelectionError: A present layer has no roll chosen
            MaterialNotFoundError: A chosen roll does not exist
            StockShortfallError: REJECT policy and a primary roll is short
        """
        logger.info(
            "confirming_order",
            product_id=request.product_id,
            quantity=request.quantity,
            unit=request.unit.value
        )

        recipe = self.store.get_product(request.product_id)
        if recipe is None:
            raise ProductNotFoundError(request.product_id)

        inventory = {m.id: m for m in self.store.list_materials()}

        # Precheck: no stock moves unless every layer is resolvable
        chosen = []
        for slot, _ in recipe.layers:
            primary_id = request.selections.get(slot)
            if not primary_id:
                raise MissingSelectionError(slot.value, slot.label)
            primary = inventory.get(primary_id)
            if primary is None:
                raise MaterialNotFoundError(primary_id)

            substitute = None
            substitute_id = request.substitutes.get(slot)
            if substitute_id:
                substitute = inventory.get(substitute_id)
                if substitute is None:
                    raise MaterialNotFoundError(substitute_id)

            chosen.append((slot, primary, substitute))

        config = self.config_service.get_config()
        result = calculate_production_requirements(
            request.quantity,
            request.tolerance_percent,
            request.unit,
            recipe,
            list(inventory.values()),
            request.scrap_overrides,
            config,
        )
        meters = result.meters_for(request.use_tolerance)

        # A roll chosen for several layers is planned against what the
        # earlier layers left on it
        remaining = {material_id: m.current_stock_kg for material_id, m in inventory.items()}
        plans = []
        for slot, primary, substitute in chosen:
            plan = self.allocation_service.plan(
                slot,
                meters,
                _with_remaining_stock(primary, remaining),
                _with_remaining_stock(substitute, remaining) if substitute else None,
            )
            for deduction in plan.deductions:
                remaining[deduction.material_id] = max(
                    0.0, remaining[deduction.material_id] - deduction.kg
                )
            plans.append(plan)

        requirements = []
        for plan in plans:
            requirements.extend(self.allocation_service.apply(plan))

        client_id = request.client_id or recipe.client_id
        client = self.store.get_client(client_id) if client_id else None
        existing = self.store.list_orders()

        order = ProductionOrder(
            id=str(uuid4()),
            order_code=next_order_code(self.store),
            product_id=recipe.id,
            product_name=recipe.name,
            client_id=client_id,
            client_name=client.name if client else "Unknown",
            order_date=date.today(),
            quantity_requested=request.quantity,
            unit=request.unit,
            tolerance_percent=request.tolerance_percent,
            use_tolerance=request.use_tolerance,
            calculation_snapshot=result,
            technical_details=TechnicalDetails(
                format=recipe.format,
                web_width_mm=recipe.web_width_mm,
                cylinder_mm=recipe.cylinder_mm,
                cutoff_mm=recipe.cutoff_mm,
                track_count=recipe.effective_track_count,
                layers=[primary.name for _, primary, _ in chosen],
                winding_direction=recipe.winding_direction,
            ),
            material_requirements=requirements,
            required_stages=derive_stages(recipe),
            queue_index=max((o.queue_index for o in existing), default=-1) + 1,
            notes=request.notes,
        )
        self.store.save_order(order)

        logger.info(
            "order_confirmed",
            order_id=order.id,
            order_code=order.order_code,
            meters=meters,
            materials=len(requirements)
        )
        return order

    # ===================
    # READ OPERATIONS
    # ===================

    def list_orders(self, status: Optional[OrderStatus] = None) -> list[ProductionOrder]:
        """Orders in queue order, optionally filtered by status."""
        orders = self.store.list_orders()
        if status is not None:
            orders = [o for o in orders if o.status == status]
        return sorted(orders, key=lambda o: o.queue_index)

    def get_order(self, order_id: str) -> ProductionOrder:
        row = self.store.get_record(ORDERS, order_id)
        if row is None:
            raise OrderNotFoundError(order_id)
        return ProductionOrder(**row)

    def get_stage_queue(self, stage: str) -> list[ProductionOrder]:
        """
        Orders in production at a stage, in queue order.

        Orders in production with no stage recorded are treated as being
        at the first stage.

        Raises:
            InvalidStageError: Unknown stage
        """
        if stage not in ALL_STAGES:
            raise InvalidStageError(stage, ALL_STAGES)
        return [
            o for o in self.list_orders(OrderStatus.IN_PRODUCTION)
            if (o.current_stage or STAGE_PRINT) == stage
        ]

    # ===================
    # LIFECYCLE
    # ===================

    def update_status(self, order_id: str, status: OrderStatus) -> ProductionOrder:
        """
        Change an order's status.

        Moving into production puts the order at its first stage if it
        has none yet.
        """
        order = self.get_order(order_id)
        order.status = status
        if status == OrderStatus.IN_PRODUCTION and not order.current_stage:
            order.current_stage = order.required_stages[0]
        self.store.save_order(order)

        logger.info("order_status_updated", order_id=order_id, status=status.value)
        return order

    def update_stage(self, order_id: str, stage: str) -> ProductionOrder:
        """
        Move an order to a stage of its own workflow.

        Raises:
            InvalidStageError: Stage is not one of the order's stages
        """
        order = self.get_order(order_id)
        if stage not in order.required_stages:
            raise InvalidStageError(stage, order.required_stages)

        order.current_stage = stage
        if order.status == OrderStatus.PENDING:
            order.status = OrderStatus.IN_PRODUCTION
        self.store.save_order(order)

        logger.info("order_stage_updated", order_id=order_id, stage=stage)
        return order

    def advance_stage(self, order_id: str) -> ProductionOrder:
        """Move to the next stage; finishing the last stage marks it DONE."""
        order = self.get_order(order_id)
        if order.status == OrderStatus.DONE:
            raise ValidationError(
                "Order is already done",
                code="ORDER_ALREADY_DONE",
                details={"order_id": order_id}
            )

        stages = order.required_stages
        if order.status == OrderStatus.PENDING or not order.current_stage:
            order.current_stage = stages[0]
            order.status = OrderStatus.IN_PRODUCTION
        else:
            position = stages.index(order.current_stage) if order.current_stage in stages else 0
            if position + 1 < len(stages):
                order.current_stage = stages[position + 1]
            else:
                order.status = OrderStatus.DONE

        self.store.save_order(order)
        logger.info(
            "order_stage_advanced",
            order_id=order_id,
            stage=order.current_stage,
            status=order.status.value
        )
        return order

    def reorder_queue(self, order_ids: list[str]) -> list[ProductionOrder]:
        """
        Rewrite queue positions to follow the given order.

        Orders not mentioned keep their relative order after the listed ones.

        Raises:
            OrderNotFoundError: An ID does not exist
            ValidationError: Duplicate IDs
        """
        if len(set(order_ids)) != len(order_ids):
            raise ValidationError(
                "Order IDs must not repeat",
                code="DUPLICATE_ORDER_IDS",
                details={"order_ids": order_ids}
            )

        orders = {o.id: o for o in self.list_orders()}
        for order_id in order_ids:
            if order_id not in orders:
                raise OrderNotFoundError(order_id)

        rest = [o.id for o in orders.values() if o.id not in set(order_ids)]
        for index, order_id in enumerate(list(order_ids) + rest):
            order = orders[order_id]
            if order.queue_index != index:
                order.queue_index = index
                self.store.save_order(order)

        logger.info("order_queue_reordered", count=len(order_ids))
        return self.list_orders()

    def delete_order(self, order_id: str) -> bool:
        """
        Delete an order. Stock already deducted is not restored.

        Raises:
            OrderNotFoundError: Unknown order
        """
        if not self.store.delete_record(ORDERS, order_id):
            raise OrderNotFoundError(order_id)
        logger.info("order_deleted", order_id=order_id)
        return True


# Singleton instance
_order_service: Optional[OrderService] = None


def get_order_service() -> OrderService:
    """Get or create OrderService instance."""
    global _order_service
    if _order_service is None:
        _order_service = OrderService()
    return _order_service
