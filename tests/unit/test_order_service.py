"""
Unit tests for order confirmation and the production queue.

Run: pytest tests/unit/test_order_service.py -v
"""

import pytest

from services.order_service import OrderService, derive_stages
from models.order import OrderConfirmRequest, OrderStatus
from models.product import LayerSlot, ProductRecipe
from models.production import OrderUnit
from exceptions import (
    InvalidStageError,
    MaterialNotFoundError,
    MissingSelectionError,
    OrderNotFoundError,
    ProductNotFoundError,
    StockShortfallError,
    ValidationError,
)
from tests.factories import MaterialFactory, RecipeFactory


@pytest.fixture
def seeded_store(store):
    """Single-layer recipe with one covering roll and one client."""
    store.save_record("clients", {"id": "cli-1", "name": "Snack Co"})
    store.save_record("products", RecipeFactory.create(id="prod-a", client_id="cli-1"))
    store.save_record("materials", MaterialFactory.create(id="mat-a", current_stock_kg=1000))
    return store


@pytest.fixture
def laminate_store(store):
    """Three-layer bag with a roll per layer; the PE roll is short."""
    store.save_record("products", RecipeFactory.create_laminate(id="lam"))
    store.save_record("materials", MaterialFactory.create(
        id="pet", type="PET DT", thickness_microns=12, width_mm=420, current_stock_kg=1000
    ))
    store.save_record("materials", MaterialFactory.create(
        id="met", type="BOPP METALLIZED", thickness_microns=20, width_mm=420, current_stock_kg=1000
    ))
    store.save_record("materials", MaterialFactory.create(
        id="pe", type="PE", thickness_microns=50, width_mm=430, current_stock_kg=1
    ))
    return store


def _request(product_id="prod-a", **overrides) -> OrderConfirmRequest:
    data = {
        "product_id": product_id,
        "quantity": 1000,
        "unit": OrderUnit.COUNT,
        "selections": {LayerSlot.LAYER1: "mat-a"},
    }
    data.update(overrides)
    return OrderConfirmRequest(**data)


LAMINATE_SELECTIONS = {
    LayerSlot.LAYER1: "pet",
    LayerSlot.LAYER2: "met",
    LayerSlot.LAYER3: "pe",
}


class TestDeriveStages:
    """Tests for derive_stages()"""

    def test_single_layer_reel(self):
        recipe = ProductRecipe(**RecipeFactory.create())
        assert derive_stages(recipe) == ["Print", "Slitting"]

    def test_full_laminate_bag(self):
        recipe = ProductRecipe(**RecipeFactory.create_laminate())
        assert derive_stages(recipe) == [
            "Print", "Reprint", "Lamination", "Trilamination", "Slitting", "Bag Making"
        ]


class TestConfirmOrder:
    """Tests for OrderService.confirm_order()"""

    def test_confirm_deducts_and_persists(self, seeded_store):
        order = OrderService(seeded_store).confirm_order(_request())

        assert order.order_code == "OP-1001"
        assert order.status == OrderStatus.PENDING
        assert order.client_name == "Snack Co"
        assert order.calculation_snapshot.gross_linear_meters == 579
        assert order.required_stages == ["Print", "Slitting"]
        assert order.technical_details.track_count == 4
        assert len(order.material_requirements) == 1
        # 0.45m * 579m * 20μ * 0.91
        assert order.material_requirements[0].required_kg == 4.74
        assert seeded_store.get_material("mat-a").current_stock_kg == pytest.approx(1000 - 4.74201)
        assert seeded_store.list_orders()[0].id == order.id

    def test_use_tolerance_allocates_max_meters(self, seeded_store):
        order = OrderService(seeded_store).confirm_order(
            _request(tolerance_percent=10, use_tolerance=True)
        )
        assert order.material_requirements[0].meters == 587

    def test_codes_never_reused_after_delete(self, seeded_store):
        service = OrderService(seeded_store)
        first = service.confirm_order(_request())
        service.delete_order(first.id)
        second = service.confirm_order(_request())
        assert second.order_code == "OP-1002"

    def test_missing_selection_blocks_everything(self, laminate_store):
        selections = {LayerSlot.LAYER1: "pet", LayerSlot.LAYER3: "pe"}
        with pytest.raises(MissingSelectionError) as exc_info:
            OrderService(laminate_store).confirm_order(_request("lam", selections=selections))

        assert exc_info.value.message == "A material must be selected for Layer 2 (Lamination)"
        assert laminate_store.get_material("pet").current_stock_kg == 1000
        assert laminate_store.list_orders() == []

    def test_unknown_material_blocks_everything(self, seeded_store):
        with pytest.raises(MaterialNotFoundError):
            OrderService(seeded_store).confirm_order(
                _request(selections={LayerSlot.LAYER1: "nope"})
            )
        assert seeded_store.list_orders() == []

    def test_unknown_product(self, store):
        with pytest.raises(ProductNotFoundError):
            OrderService(store).confirm_order(_request("missing"))

    def test_reject_policy_fails_before_any_deduction(self, laminate_store):
        config = laminate_store.get_config()
        config["shortfall_policy"] = "REJECT"
        laminate_store.save_config(config)

        with pytest.raises(StockShortfallError):
            OrderService(laminate_store).confirm_order(
                _request("lam", selections=LAMINATE_SELECTIONS)
            )

        assert laminate_store.get_material("pet").current_stock_kg == 1000
        assert laminate_store.get_material("met").current_stock_kg == 1000
        assert laminate_store.list_orders() == []

    def test_overdraw_policy_clamps_short_layer(self, laminate_store):
        order = OrderService(laminate_store).confirm_order(
            _request("lam", selections=LAMINATE_SELECTIONS)
        )
        assert laminate_store.get_material("pe").current_stock_kg == 0
        assert len(order.material_requirements) == 3

    def test_substitute_covers_short_layer(self, laminate_store):
        laminate_store.save_record("materials", MaterialFactory.create(
            id="pe-2", type="PE", thickness_microns=50, width_mm=450, current_stock_kg=1000
        ))
        order = OrderService(laminate_store).confirm_order(
            _request("lam", selections=LAMINATE_SELECTIONS, substitutes={LayerSlot.LAYER3: "pe-2"})
        )

        complement = order.material_requirements[-1]
        assert complement.is_substitute is True
        assert complement.original_material_id == "pe"
        assert complement.layer == "Layer 3 (Sealant) (COMPLEMENT)"
        assert laminate_store.get_material("pe").current_stock_kg == 0


class TestOrderLifecycle:
    """Tests for status, stage and queue operations."""

    @pytest.fixture
    def orders(self, seeded_store):
        service = OrderService(seeded_store)
        return service, [service.confirm_order(_request()) for _ in range(3)]

    def test_list_orders_in_queue_order(self, orders):
        service, created = orders
        assert [o.queue_index for o in service.list_orders()] == [0, 1, 2]

    def test_reorder_queue(self, orders):
        service, (a, b, c) = orders
        reordered = service.reorder_queue([c.id, a.id])
        assert [o.id for o in reordered] == [c.id, a.id, b.id]

    def test_reorder_unknown_id(self, orders):
        service, _ = orders
        with pytest.raises(OrderNotFoundError):
            service.reorder_queue(["missing"])

    def test_reorder_duplicate_ids(self, orders):
        service, (a, _, _) = orders
        with pytest.raises(ValidationError):
            service.reorder_queue([a.id, a.id])

    def test_advance_through_all_stages(self, orders):
        service, (a, _, _) = orders

        order = service.advance_stage(a.id)
        assert (order.status, order.current_stage) == (OrderStatus.IN_PRODUCTION, "Print")
        order = service.advance_stage(a.id)
        assert order.current_stage == "Slitting"
        order = service.advance_stage(a.id)
        assert order.status == OrderStatus.DONE

        with pytest.raises(ValidationError):
            service.advance_stage(a.id)

    def test_update_stage_must_be_required(self, orders):
        service, (a, _, _) = orders
        with pytest.raises(InvalidStageError):
            service.update_stage(a.id, "Bag Making")

    def test_update_stage_starts_production(self, orders):
        service, (a, _, _) = orders
        order = service.update_stage(a.id, "Slitting")
        assert order.status == OrderStatus.IN_PRODUCTION
        assert service.get_order(a.id).current_stage == "Slitting"

    def test_stage_queue(self, seeded_store, orders):
        service, (a, b, c) = orders
        service.update_status(a.id, OrderStatus.IN_PRODUCTION)
        service.update_stage(b.id, "Slitting")
        stageless = service.get_order(c.id).model_copy(
            update={"status": OrderStatus.IN_PRODUCTION, "current_stage": None}
        )
        seeded_store.save_order(stageless)

        assert [o.id for o in service.get_stage_queue("Print")] == [a.id, c.id]
        assert [o.id for o in service.get_stage_queue("Slitting")] == [b.id]

    def test_delete_unknown_order(self, orders):
        service, _ = orders
        with pytest.raises(OrderNotFoundError):
            service.delete_order("missing")

    def test_stage_queue_unknown_stage(self, orders):
        service, _ = orders
        with pytest.raises(InvalidStageError):
            service.get_stage_queue("Painting")


class TestSharedRoll:
    """One roll chosen for more than one layer of the same order."""

    @pytest.fixture
    def shared_store(self, store):
        """Two PE laminate layers; 1179 gross m need about 23.3 kg of PE each."""
        pe_layer = {"type": "PE", "thickness_microns": 50, "ideal_width_mm": 430}
        store.save_record("products", RecipeFactory.create(
            id="duo", layer2=dict(pe_layer), layer3=dict(pe_layer)
        ))
        store.save_record("materials", MaterialFactory.create(id="mat-a", current_stock_kg=1000))
        store.save_record("materials", MaterialFactory.create(
            id="pe", type="PE", thickness_microns=50, width_mm=430, current_stock_kg=30
        ))
        store.save_record("materials", MaterialFactory.create(
            id="pe-2", type="PE", thickness_microns=50, width_mm=430, current_stock_kg=1000
        ))
        return store

    SELECTIONS = {
        LayerSlot.LAYER1: "mat-a",
        LayerSlot.LAYER2: "pe",
        LayerSlot.LAYER3: "pe",
    }

    def test_second_layer_sees_what_the_first_left(self, shared_store):
        order = OrderService(shared_store).confirm_order(
            _request("duo", selections=self.SELECTIONS, substitutes={LayerSlot.LAYER3: "pe-2"})
        )

        assert order.calculation_snapshot.gross_linear_meters == 1179
        pe_kg = sum(r.required_kg for r in order.material_requirements if r.material_id == "pe")
        assert pe_kg == pytest.approx(30, abs=0.01)

        complement = order.material_requirements[-1]
        assert complement.material_id == "pe-2"
        assert complement.is_substitute is True
        assert complement.layer == "Layer 3 (Sealant) (COMPLEMENT)"

        layer3_meters = sum(
            r.meters for r in order.material_requirements if r.layer.startswith("Layer 3")
        )
        assert layer3_meters == pytest.approx(1179, abs=0.02)
        assert shared_store.get_material("pe").current_stock_kg == pytest.approx(0)
        assert shared_store.get_material("pe-2").current_stock_kg < 1000

    def test_shared_shortfall_overdraws(self, shared_store):
        order = OrderService(shared_store).confirm_order(
            _request("duo", selections=self.SELECTIONS)
        )
        pe_rows = [r for r in order.material_requirements if r.material_id == "pe"]
        assert len(pe_rows) == 2
        assert shared_store.get_material("pe").current_stock_kg == 0

    def test_reject_policy_sees_shared_shortfall(self, shared_store):
        config = shared_store.get_config()
        config["shortfall_policy"] = "REJECT"
        shared_store.save_config(config)

        with pytest.raises(StockShortfallError):
            OrderService(shared_store).confirm_order(
                _request("duo", selections=self.SELECTIONS)
            )

        assert shared_store.get_material("pe").current_stock_kg == 30
        assert shared_store.get_material("mat-a").current_stock_kg == 1000
        assert shared_store.list_orders() == []
