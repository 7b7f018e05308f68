"""Tests for the component intelligence engine."""

import math

import pytest

from product_catalog import CatalogRepository
from product_catalog.schema import ComponentInstance, Criticality
from product_scorer.config import ScorerConfig
from product_scorer.schema import LocationType, UserEnvironment, VoltageStability
from product_scorer.sic import (
    REPAIRABILITY_LABELS,
    ComponentIntelligenceEngine,
    classify_repairability,
    component_status,
    environment_factor,
    weibull_failure_probability,
)


@pytest.fixture
def sic(repository):
    return ComponentIntelligenceEngine(repository, ScorerConfig())


def repository_with_mapping(catalog_document, product_id, components):
    """Rebuild a repository after replacing one product's components."""
    mappings = [
        m.model_copy(update={"components": components}) if m.product_id == product_id else m
        for m in catalog_document.mappings
    ]
    return CatalogRepository(catalog_document.model_copy(update={"mappings": mappings}))


class TestWeibull:
    """Weibull failure probability."""

    def test_characteristic_life(self):
        assert weibull_failure_probability(10, 10, 1.0) == pytest.approx(1 - math.exp(-1))

    def test_zero_years(self):
        assert weibull_failure_probability(0, 10, 1.5) == 0.0

    def test_monotonic_in_years(self):
        probabilities = [weibull_failure_probability(y, 8, 1.5) for y in (1, 3, 5, 10)]
        assert probabilities == sorted(probabilities)
        assert all(0 <= p <= 1 for p in probabilities)


class TestEnvironmentFactor:
    """Divisors from location, voltage, heat and usage."""

    def test_neutral_environment(self, repository):
        for component in repository.list_components():
            assert environment_factor(component, UserEnvironment()) == pytest.approx(1.0)

    def test_coastal_and_unstable(self, repository):
        component = repository.get_component("board_psu_integrated")
        env = UserEnvironment(
            location=LocationType.COASTAL, voltage_stability=VoltageStability.UNSTABLE
        )
        assert environment_factor(component, env) == pytest.approx(1.3 * 1.6)

    def test_heat(self, repository):
        component = repository.get_component("board_psu_integrated")
        env = UserEnvironment(avg_temperature_celsius=35)
        assert environment_factor(component, env) == pytest.approx(2.0)

    def test_mild_heat_ignored(self, repository):
        component = repository.get_component("board_psu_integrated")
        assert environment_factor(component, UserEnvironment(avg_temperature_celsius=28)) == 1.0

    def test_heavy_usage(self, repository):
        component = repository.get_component("panel_va_qled_standard")
        env = UserEnvironment(daily_usage_hours=16)
        assert environment_factor(component, env) == pytest.approx(2.0)


class TestClassification:
    """Repairability labels and component status."""

    THRESHOLDS = {"excellent": 8.0, "good": 6.0, "moderate": 4.0, "poor": 2.0}

    @pytest.mark.parametrize("score,expected", [
        (9.0, "excellent"),
        (8.0, "excellent"),
        (6.5, "good"),
        (4.0, "moderate"),
        (2.5, "poor"),
        (1.0, "unrepairable"),
    ])
    def test_classify(self, score, expected):
        assert classify_repairability(score, self.THRESHOLDS) == expected

    @pytest.mark.parametrize("score,expected", [
        (7.0, "repairable"),
        (5.5, "moderate"),
        (3.9, "critical"),
    ])
    def test_component_status(self, score, expected):
        assert component_status(score) == expected


class TestLifespan:
    """Limiting component and category band."""

    def test_limiting_component_within_band(self, sic):
        result = sic.calculate("samsung-qn90c-65")
        assert result.limiting_component.id == "board_psu_integrated"
        assert result.estimated_lifespan_years == pytest.approx(11.03, abs=0.01)
        assert result.category_id == "tv"
        assert not any("fora da faixa" in w for w in result.warnings)
        assert "Construção premium: vida útil 10% acima da média" in result.warnings

    def test_clamped_to_band_minimum(self, sic):
        result = sic.calculate("lg-french-door-linear")
        assert result.estimated_lifespan_years == 8
        assert any("fora da faixa" in w for w in result.warnings)
        assert any("reduzem a vida útil" in w for w in result.warnings)

    def test_brand_tier_product(self, sic):
        result = sic.calculate("philco-inverter-12000")
        assert result.quality_factors.source == "brand_tier"
        assert result.limiting_component.id == "ac_pcb_inverter_standard"
        assert result.limiting_component.estimated_life_years == pytest.approx(4.8)
        assert result.estimated_lifespan_years == 7

    def test_unknown_brand_product(self, sic):
        result = sic.calculate("xiaomi-robot-vacuum-e10")
        assert result.quality_factors.source == "neutral"
        assert result.limiting_component.id == "battery_liion_standard"
        assert result.estimated_lifespan_years == 3
        assert any("Xiaomi" in w for w in result.warnings)

    def test_hostile_environment_shortens_life(self, sic):
        neutral = sic.calculate("samsung-qn90c-65")
        coastal = sic.calculate(
            "samsung-qn90c-65", UserEnvironment(location=LocationType.COASTAL)
        )
        assert coastal.estimated_lifespan_years < neutral.estimated_lifespan_years
        assert coastal.failure_probability_5y > neutral.failure_probability_5y

    def test_heat_clamps_to_minimum(self, sic):
        result = sic.calculate("samsung-qn90c-65", UserEnvironment(avg_temperature_celsius=35))
        assert result.estimated_lifespan_years == 6

    def test_explicit_limiting_flag_wins(self, catalog_document):
        components = [
            ComponentInstance(
                component_id="panel_miniled_samsung_neo_qled",
                criticality=Criticality.FATAL,
                limiting=True,
            ),
            ComponentInstance(component_id="board_psu_integrated", criticality=Criticality.HIGH),
        ]
        repository = repository_with_mapping(catalog_document, "samsung-qn90c-65", components)
        result = ComponentIntelligenceEngine(repository, ScorerConfig()).calculate(
            "samsung-qn90c-65"
        )
        assert result.limiting_component.id == "panel_miniled_samsung_neo_qled"
        assert result.estimated_lifespan_years == 13

    def test_no_critical_components_warns(self, catalog_document):
        components = [
            ComponentInstance(component_id="fan_evaporator", criticality=Criticality.MEDIUM),
            ComponentInstance(component_id="gasket_door", criticality=Criticality.LOW),
        ]
        repository = repository_with_mapping(catalog_document, "consul-crm50-410", components)
        result = ComponentIntelligenceEngine(repository, ScorerConfig()).calculate(
            "consul-crm50-410"
        )
        assert any("Nenhum componente crítico" in w for w in result.warnings)


class TestMappingEdgeCases:
    """Unmapped products and unknown components."""

    def test_unmapped_product(self, sic):
        assert sic.calculate("multilaser-tl045-43") is None

    def test_unknown_component_skipped(self, catalog_document):
        components = [
            ComponentInstance(component_id="compressor_onoff_embraco", criticality=Criticality.FATAL),
            ComponentInstance(component_id="flux_capacitor", criticality=Criticality.HIGH),
        ]
        repository = repository_with_mapping(catalog_document, "consul-crm50-410", components)
        result = ComponentIntelligenceEngine(repository, ScorerConfig()).calculate(
            "consul-crm50-410"
        )
        assert "Componente desconhecido ignorado: flux_capacitor" in result.warnings
        assert [c.component_id for c in result.component_breakdown] == [
            "compressor_onoff_embraco"
        ]

    def test_only_unknown_components(self, catalog_document):
        components = [ComponentInstance(component_id="flux_capacitor")]
        repository = repository_with_mapping(catalog_document, "consul-crm50-410", components)
        engine = ComponentIntelligenceEngine(repository, ScorerConfig())
        assert engine.calculate("consul-crm50-410") is None


class TestRisksAndRepairability:
    """Failure probability, maintenance cost and repairability."""

    def test_ranges_for_every_mapped_product(self, sic, repository):
        for mapping in repository.list_mappings():
            result = sic.calculate(mapping.product_id)
            assert 0.0 <= result.failure_probability_5y <= 1.0
            assert result.expected_maintenance_cost_5y >= 0
            assert 0.0 <= result.calculation_confidence <= 1.0
            index = result.repairability_index
            assert 0.0 <= index.score <= 10.0
            assert index.label == REPAIRABILITY_LABELS[index.classification]
            assert len(result.repairability_map.components) == len(mapping.components)

    def test_system_probability_exceeds_each_critical_component(self, sic):
        result = sic.calculate("samsung-qn90c-65")
        critical = [
            c.failure_probability_5y
            for c in result.component_breakdown
            if c.criticality in (Criticality.FATAL, Criticality.HIGH)
        ]
        assert result.failure_probability_5y >= max(critical)

    def test_expected_maintenance(self, sic):
        result = sic.calculate("consul-crm50-410")
        expected = sum(
            c.failure_probability_5y * c.repair_cost for c in result.component_breakdown
        )
        assert result.expected_maintenance_cost_5y == pytest.approx(expected, abs=0.05)

    def test_category_average_in_map(self, sic):
        result = sic.calculate("lg-c3-65")
        assert result.repairability_map.category_average == 3.8
        assert result.repairability_map.overall_score == result.repairability_index.score
