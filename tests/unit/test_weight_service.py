"""
Unit tests for weight conversions.

Run: pytest tests/unit/test_weight_service.py -v
"""

import pytest

from services.weight_service import (
    film_weight,
    insum_weights,
    meters_from_real_weight,
    real_weight,
    recipe_kg_per_meter,
    resolve_density,
    theoretical_weight,
)
from models.material import Material, MaterialType
from models.product import LayerSpec, ProductRecipe
from exceptions import DegenerateMaterialError
from tests.factories import MaterialFactory, RecipeFactory


class TestResolveDensity:
    """Tests for the density fallback chain."""

    def test_material_density_wins(self):
        density = resolve_density(MaterialType.PET, 1.38, {MaterialType.PET: 1.5})
        assert density == 1.38

    def test_configured_density_beats_builtin(self):
        density = resolve_density(MaterialType.PET, 0, {MaterialType.PET: 1.5})
        assert density == 1.5

    def test_configured_density_accepts_string_keys(self):
        density = resolve_density(MaterialType.PE, 0, {"PE": 0.95})
        assert density == 0.95

    def test_builtin_default_when_not_configured(self):
        assert resolve_density(MaterialType.FOIL) == 2.7

    def test_fallback_for_unknown_type(self):
        assert resolve_density("MYSTERY FILM") == 0.91


class TestFilmWeight:
    """Tests for the kg formula."""

    def test_formula(self):
        # 0.5m wide * 1000m * 20μ * 1.0 / 1000
        assert film_weight(500, 1000, 20, 1.0) == pytest.approx(10.0)

    def test_theoretical_weight_uses_default_width(self):
        layer = LayerSpec(type=MaterialType.BOPP, thickness_microns=20)
        # 420mm effective width, BOPP 0.91
        expected = 0.42 * 100 * 20 * 0.91 / 1000
        assert theoretical_weight(400, 100, layer) == pytest.approx(expected)

    def test_theoretical_weight_uses_ideal_width(self):
        layer = LayerSpec(type=MaterialType.PE, thickness_microns=50, ideal_width_mm=300)
        expected = 0.3 * 100 * 50 * 0.92 / 1000
        assert theoretical_weight(400, 100, layer) == pytest.approx(expected)

    def test_real_weight_uses_roll_dimensions(self):
        material = Material(**MaterialFactory.create(width_mm=500, thickness_microns=25, density_g_cm3=0.8))
        assert real_weight(1000, material) == pytest.approx(0.5 * 1000 * 25 * 0.8 / 1000)


class TestMetersFromRealWeight:
    """Tests for the inverse conversion."""

    @pytest.mark.parametrize("meters", [0, 1, 579, 12345.6])
    def test_inverts_real_weight(self, meters):
        material = Material(**MaterialFactory.create(width_mm=620, thickness_microns=23, type="PET"))
        kg = real_weight(meters, material)
        assert meters_from_real_weight(kg, material) == pytest.approx(meters)

    def test_degenerate_material_returns_zero(self):
        material = Material(**MaterialFactory.create(width_mm=0))
        assert meters_from_real_weight(100, material) == 0

    def test_degenerate_material_strict_raises(self):
        material = Material(**MaterialFactory.create(thickness_microns=0))
        with pytest.raises(DegenerateMaterialError) as exc_info:
            meters_from_real_weight(100, material, strict=True)
        assert exc_info.value.code == "DEGENERATE_MATERIAL"


class TestInsumWeights:
    """Tests for ink and adhesive."""

    def test_single_layer_has_no_adhesive(self):
        recipe = ProductRecipe(**RecipeFactory.create(ink_coverage_g_m2=3, adhesive_coverage_g_m2=2))
        ink, adhesive = insum_weights(recipe, 1000)
        assert ink == pytest.approx(0.4 * 1000 * 3 / 1000)
        assert adhesive == 0

    def test_adhesive_once_per_interface(self):
        recipe = ProductRecipe(**RecipeFactory.create_laminate())
        _, adhesive = insum_weights(recipe, 1000)
        assert adhesive == pytest.approx(2 * 0.4 * 1000 * 2 / 1000)

    def test_kg_per_meter_sums_layers_and_insums(self):
        recipe = ProductRecipe(**RecipeFactory.create_laminate())
        expected = (
            0.42 * 12 * 1.40 / 1000
            + 0.42 * 20 * 0.91 / 1000
            + 0.43 * 50 * 0.92 / 1000
            + 0.4 * 3 / 1000
            + 2 * 0.4 * 2 / 1000
        )
        assert recipe_kg_per_meter(recipe) == pytest.approx(expected)
