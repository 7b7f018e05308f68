"""Tests for the TCO calculator."""

import pytest

from product_catalog.schema import ProductRecord
from product_scorer.config import ScorerConfig
from product_scorer.tco import (
    CATEGORY_ENERGY_DEFAULTS,
    calculate_tco,
    compare_tco,
    default_energy_kwh_month,
    energy_present_value,
    hidden_cost_percent,
    maintenance_rate_from_repairability,
    product_tco,
    rank_by_tco,
)


class TestCalculateTco:
    """Core formula."""

    def test_degenerate_case_is_price(self):
        tco = calculate_tco(1000, 0, energy_rate=1, lifespan_years=1, maintenance_rate=0)
        assert tco.total_tco == 1000
        assert tco.energy_cost == 0
        assert tco.maintenance_cost == 0

    def test_one_year_energy(self):
        tco = calculate_tco(0, 10, energy_rate=1, lifespan_years=1, maintenance_rate=0)
        # 120 kWh * 1.05 / 1.02
        assert tco.energy_cost == 124
        assert tco.total_tco == 124

    def test_maintenance_reserve(self):
        tco = calculate_tco(1000, 0, lifespan_years=5, maintenance_rate=0.02)
        assert tco.maintenance_cost == 100
        assert tco.total_tco == 1100
        assert tco.tco_per_year == 220

    def test_components_add_up(self):
        tco = calculate_tco(7999, 17.5)
        assert abs(
            tco.total_tco - (tco.acquisition_cost + tco.energy_cost + tco.maintenance_cost)
        ) <= 1
        assert tco.tco_per_month == round(tco.total_tco / 60)

    def test_fractional_lifespan(self):
        whole = energy_present_value(10, 1, 1)
        partial = energy_present_value(10, 1, 1.5)
        assert whole < partial < energy_present_value(10, 1, 2)

    def test_monotonic_in_energy(self):
        low = calculate_tco(3000, 20)
        high = calculate_tco(3000, 40)
        assert high.total_tco > low.total_tco

    def test_monotonic_in_lifespan(self):
        short = calculate_tco(3000, 20, lifespan_years=3)
        long = calculate_tco(3000, 20, lifespan_years=10)
        assert long.total_tco > short.total_tco

    @pytest.mark.parametrize("kwargs", [
        {"price": -1, "energy_kwh_month": 10},
        {"price": 100, "energy_kwh_month": -1},
        {"price": 100, "energy_kwh_month": 10, "energy_rate": -0.1},
        {"price": 100, "energy_kwh_month": 10, "lifespan_years": 0},
        {"price": 100, "energy_kwh_month": 10, "maintenance_rate": -0.01},
    ], ids=["price", "energy", "rate", "lifespan", "maintenance"])
    def test_rejects_invalid_input(self, kwargs):
        with pytest.raises(ValueError):
            calculate_tco(**kwargs)


class TestEnergyDefaults:
    """Category consumption defaults."""

    @pytest.mark.parametrize("category,expected", [
        ("tv", 15.0),
        ("geladeira", 40.0),
        ("ar-condicionado", 120.0),
        ("robot_vacuum", 3.0),
        ("toaster", 20.0),
        (None, 20.0),
    ])
    def test_default(self, category, expected):
        assert default_energy_kwh_month(category) == expected

    def test_table_has_fallback(self):
        assert "default" in CATEGORY_ENERGY_DEFAULTS


class TestHelpers:
    """Maintenance rate, hidden cost, comparison and ranking."""

    @pytest.mark.parametrize("score,expected", [
        (10, 0.02),
        (0, 0.08),
        (5, 0.05),
        (15, 0.02),
    ])
    def test_maintenance_rate_from_repairability(self, score, expected):
        assert maintenance_rate_from_repairability(score) == pytest.approx(expected)

    def test_hidden_cost_percent(self):
        tco = calculate_tco(1000, 0, lifespan_years=5, maintenance_rate=0.02)
        assert hidden_cost_percent(tco) == pytest.approx(9.1)

    def test_compare(self):
        cheap = calculate_tco(3000, 20)
        dear = calculate_tco(3500, 20)
        comparison = compare_tco(("b", dear), ("a", cheap))
        assert comparison.cheaper == "a"
        assert comparison.more_expensive == "b"
        assert comparison.savings == dear.total_tco - cheap.total_tco
        assert comparison.savings_percent > 0

    def test_compare_tie_favours_first(self):
        tco = calculate_tco(3000, 20)
        comparison = compare_tco(("x", tco), ("y", tco))
        assert comparison.cheaper == "x"
        assert comparison.savings == 0

    def test_rank(self):
        items = [
            ("mid", calculate_tco(3000, 20)),
            ("low", calculate_tco(1000, 20)),
            ("high", calculate_tco(5000, 20)),
        ]
        assert [item_id for item_id, _ in rank_by_tco(items)] == ["low", "mid", "high"]


class TestProductTco:
    """Catalog product TCO."""

    def test_uses_declared_consumption(self, repository):
        product = repository.get_product("samsung-qn90c-65")
        assert product_tco(product, config=ScorerConfig()) == calculate_tco(7999, 17.5)

    def test_category_default_when_undeclared(self):
        product = ProductRecord(id="f1", category_id="fridge", price=3000)
        assert product_tco(product, config=ScorerConfig()) == calculate_tco(3000, 40.0)

    def test_no_price(self):
        product = ProductRecord(id="f1", category_id="fridge")
        assert product_tco(product, config=ScorerConfig()) is None

    def test_repairability_drives_maintenance(self, repository):
        product = repository.get_product("tcl-c735-65")
        easy = product_tco(product, repairability_score=10, config=ScorerConfig())
        hard = product_tco(product, repairability_score=0, config=ScorerConfig())
        assert hard.maintenance_cost > easy.maintenance_cost

    def test_overrides(self, repository):
        product = repository.get_product("tcl-c735-65")
        tco = product_tco(product, lifespan_years=8, energy_rate=1.2, config=ScorerConfig())
        assert tco.lifespan_years == 8
        assert tco.energy_rate == 1.2
