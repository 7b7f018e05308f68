"""Tests for the semantic (metacategory) adapter."""

import pytest

from product_catalog import CatalogRepository
from product_catalog.schema import (
    CategoryConfig,
    CriterionDefinition,
    Metacategory,
    ProductCatalog,
    ProductRecord,
)
from product_scorer.config import ScorerConfig
from product_scorer.semantic_adapter import (
    SemanticAdapter,
    format_value,
    weighted_harmonic_mean,
)


@pytest.fixture
def adapter(repository):
    return SemanticAdapter(repository, ScorerConfig())


class TestWeightedHarmonicMean:
    """Harmonic mean used for the final semantic score."""

    def test_penalizes_weak_group(self):
        assert weighted_harmonic_mean([8, 2], [1, 1]) == 3.2

    def test_single_weak_group_dominates(self):
        assert weighted_harmonic_mean([9, 9, 9, 1], [1, 1, 1, 1]) == 3.0

    def test_equal_scores(self):
        assert weighted_harmonic_mean([7, 7, 7], [1, 2, 3]) == 7.0

    def test_not_above_arithmetic_mean(self):
        scores = [9.1, 6.4, 7.7, 3.2]
        weights = [45, 20, 20, 15]
        arithmetic = sum(s * w for s, w in zip(scores, weights)) / sum(weights)
        assert weighted_harmonic_mean(scores, weights) <= round(arithmetic, 1)

    def test_zero_score_uses_floor(self):
        assert weighted_harmonic_mean([0, 10], [1, 1]) == 0.2

    def test_zero_weights_ignored(self):
        assert weighted_harmonic_mean([2, 8], [0, 1]) == 8.0

    def test_no_positive_weight(self):
        assert weighted_harmonic_mean([5, 6], [0, 0]) == 0.0

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            weighted_harmonic_mean([5, 6], [1])


class TestFormatValue:
    """Display strings for raw values."""

    @pytest.mark.parametrize("raw,unit,expected", [
        (None, "nits", "N/A"),
        ("", "nits", "N/A"),
        (True, None, "Sim"),
        (False, None, "Não"),
        (1800, "nits", "1800 nits"),
        (9.0, None, "9"),
        (9.65, "cm", "9.65 cm"),
        ("Mini-LED", None, "Mini-LED"),
    ])
    def test_format(self, raw, unit, expected):
        assert format_value(raw, unit) == expected


class TestSemanticAdapter:
    """Radar, breakdown and warnings for catalog products."""

    def test_radar_has_four_axes_for_tv(self, adapter, repository):
        result = adapter.process(repository.get_product("samsung-qn90c-65"))
        assert [p.key for p in result.radar] == list(Metacategory)
        performance = result.radar[0]
        assert performance.label == "Performance"
        assert performance.weight == 45
        assert performance.color.startswith("#")

    def test_final_score_in_range(self, adapter, repository):
        for product in repository.list_products():
            result = adapter.process(product)
            assert 0.0 <= result.final_score <= 10.0
            for point in result.radar:
                assert 0.0 <= point.score <= 10.0

    def test_metacategory_without_members_excluded(self, adapter, repository):
        result = adapter.process(repository.get_product("roborock-s8"))
        assert Metacategory.ECONOMY not in [p.key for p in result.radar]
        assert len(result.radar) == 3

    def test_hidden_truth_warnings(self, adapter, repository):
        result = adapter.process(repository.get_product("multilaser-tl045-43"))
        assert "Atenção: Confiabilidade/Hardware abaixo da média (1.5/10)" in result.warnings
        assert any("Input Lag" in w for w in result.warnings)
        assert any("Tecnologia do Painel" in w for w in result.warnings)

    def test_no_hidden_truth_warning_for_strong_product(self, adapter, repository):
        result = adapter.process(repository.get_product("sony-x90l-65"))
        assert not any(w.startswith("Atenção") for w in result.warnings)

    def test_missing_criteria_reported(self, adapter, repository):
        result = adapter.process(repository.get_product("hisense-u7h-65"))
        assert result.missing_criteria == ["c3"]
        assert "Missing data for criteria: c3" in result.warnings
        assert "c3" not in [c.id for c in result.breakdown]

    def test_breakdown_sorted_and_formatted(self, adapter, repository):
        result = adapter.process(repository.get_product("samsung-qn90c-65"))
        scores = [c.score for c in result.breakdown]
        assert scores == sorted(scores, reverse=True)
        brightness = next(c for c in result.breakdown if c.id == "peak_brightness")
        assert brightness.value_display == "1800 nits"
        hdmi = next(c for c in result.breakdown if c.id == "hdmi_21")
        assert hdmi.value_display == "Sim"

    def test_minimize_criterion_in_breakdown(self, adapter, repository):
        result = adapter.process(repository.get_product("xiaomi-robot-vacuum-e10"))
        height = next(c for c in result.breakdown if c.id == "c5")
        assert height.score == 7.5

    def test_unknown_category(self, adapter):
        product = ProductRecord(id="w1", category_id="washer", scores={"c1": 5})
        assert adapter.process(product) is None

    def test_category_override(self, adapter, repository):
        product = repository.get_product("lg-b3-55")
        result = adapter.process(product, category_id="smart-tv")
        assert result.category_id == "tv"

    def test_blank_spec_counts_as_missing(self, adapter, repository):
        product = repository.get_product("samsung-qn90c-65")
        specs = {**product.specs, "peak_brightness_nits": "  "}
        result = adapter.process(product.model_copy(update={"specs": specs}))
        assert "peak_brightness" in result.missing_criteria
        assert "peak_brightness" not in [c.id for c in result.breakdown]
        assert result.final_score == adapter.process(
            product.model_copy(update={"specs": {
                k: v for k, v in product.specs.items() if k != "peak_brightness_nits"
            }})
        ).final_score

    def test_final_score_uses_unrounded_averages(self):
        category = CategoryConfig(
            id="tv",
            name="TV",
            criteria=[
                CriterionDefinition(
                    id="c1", label="C1", data_field="scores.c1", weight=0.5,
                    metacategory=Metacategory.PERFORMANCE,
                ),
                CriterionDefinition(
                    id="c2", label="C2", data_field="scores.c2", weight=0.5,
                    metacategory=Metacategory.USABILITY,
                ),
            ],
            metacategory_weights={Metacategory.PERFORMANCE: 1, Metacategory.USABILITY: 1},
        )
        product = ProductRecord(id="p1", category_id="tv", scores={"c1": 8.0, "c2": 1.049})
        repository = CatalogRepository(ProductCatalog(categories=[category], products=[product]))
        result = SemanticAdapter(repository, ScorerConfig()).process(product)
        # Rounded radar scores [8.0, 1.0] would give 1.8
        assert [p.score for p in result.radar] == [8.0, 1.0]
        assert result.final_score == 1.9
