"""End-to-end tests for the scoring engine and the explainer."""

import pytest
import yaml

from product_scorer.config import ScorerConfig
from product_scorer.engine import ScoringEngine, validate_catalog
from product_scorer.explainer import ScoreExplainer
from product_scorer.schema import (
    CriterionContribution,
    CriterionFlag,
    HmumResult,
    LocationType,
    UserEnvironment,
)
from product_scorer.tco import calculate_tco


def make_hmum(score, breakdown=(), **kwargs):
    return HmumResult(
        category_id="tv",
        product_id="p1",
        score=score,
        raw_score=score,
        base_score=score,
        breakdown=list(breakdown),
        **kwargs,
    )


def contribution(criterion_id, value, flags=()):
    return CriterionContribution(
        criterion_id=criterion_id,
        label=criterion_id.upper(),
        raw_value=value,
        normalized_value=value,
        final_weight=0.1,
        contribution=value * 0.1,
        flags=list(flags),
    )


class TestScoreProduct:
    """Full product reports."""

    def test_full_report(self, engine):
        report = engine.score_product("samsung-qn90c-65")
        assert report.product_name == 'Samsung QN90C Neo QLED 65"'
        assert report.category_id == "tv"
        assert report.hmum is not None and not report.hmum.vetoed
        assert report.semantic is not None
        assert report.sic is not None
        assert report.tco is not None
        assert report.explanation.verdict
        assert report.warnings == []

    def test_tco_over_estimated_lifespan(self, engine):
        report = engine.score_product("samsung-qn90c-65")
        assert report.tco.lifespan_years == report.sic.estimated_lifespan_years

    def test_unmapped_product(self, engine):
        report = engine.score_product("multilaser-tl045-43")
        assert report.sic is None
        assert report.hmum.vetoed
        assert report.tco.lifespan_years == 5.0
        assert any("mapeamento" in w for w in report.warnings)
        assert report.explanation.verdict.startswith("Não recomendado")

    def test_environment_passed_to_sic(self, engine):
        inland = engine.score_product("samsung-qn90c-65")
        coastal = engine.score_product(
            "samsung-qn90c-65", environment=UserEnvironment(location=LocationType.COASTAL)
        )
        assert coastal.sic.estimated_lifespan_years < inland.sic.estimated_lifespan_years

    def test_contexts_passed_to_hmum(self, engine):
        report = engine.score_product("lg-c3-65", contexts=["gamer_competitive"])
        assert list(report.hmum.contextual_scores) == ["gamer_competitive"]

    def test_energy_rate_override(self, engine):
        cheap = engine.score_product("lg-b3-55", energy_rate=0.5)
        dear = engine.score_product("lg-b3-55", energy_rate=1.5)
        assert dear.tco.energy_cost > cheap.tco.energy_cost

    def test_unknown_product(self, engine):
        with pytest.raises(ValueError, match="Unknown product"):
            engine.score_product("nope")

    def test_report_serializes(self, engine):
        data = engine.score_product("roborock-s8").model_dump(mode="json")
        assert data["hmum"]["breakdown"][0]["criterion_id"] == "c1"
        assert data["semantic"]["radar"][0]["key"] == "performance"


class TestEngineHelpers:
    """Ranking, TCO and agent payloads."""

    def test_rank_category(self, engine):
        ranked = engine.rank_category("tv")
        assert len(ranked) == 7
        assert ranked[0].raw_score >= ranked[-1].raw_score
        assert ranked[-1].product_id == "multilaser-tl045-43"

    def test_product_tco_fixed_lifespan(self, engine):
        tco = engine.product_tco("tcl-c735-65", lifespan_years=5)
        assert tco == calculate_tco(3999, 14.0)

    def test_agent_payload(self, engine):
        payload = engine.agent_payload("lg-c3-65")
        assert payload["id"] == "lg-c3-65"
        assert payload["category"] == "tv"
        assert payload["scores"]["hmum_score"] == payload["scores"]["nota_auditoria"]
        assert payload["durability"]["estimated_lifespan_years"] > 0
        assert payload["tco"]["total_tco"] > payload["tco"]["acquisition_cost"]

    def test_from_catalog_uses_config_path(self, catalog_document, tmp_path):
        path = tmp_path / "catalog.yaml"
        path.write_text(
            yaml.safe_dump(catalog_document.model_dump(mode="json"), allow_unicode=True),
            encoding="utf-8",
        )
        config = ScorerConfig.model_validate({"catalog": {"path": str(path)}})
        engine = ScoringEngine(config=config)
        assert engine.get_product("consul-crm50-410").brand == "Consul"


class TestValidateCatalog:
    """Catalog validation helper."""

    def test_bundled_catalog_is_valid(self):
        assert validate_catalog() == (True, [])

    def test_weight_drift_reported(self, catalog_document, tmp_path):
        data = catalog_document.model_dump(mode="json")
        data["categories"][0]["criteria"][0]["weight"] += 0.5
        path = tmp_path / "catalog.yaml"
        path.write_text(yaml.safe_dump(data, allow_unicode=True), encoding="utf-8")
        is_valid, issues = validate_catalog(path)
        assert not is_valid
        assert "weights sum" in issues[0]

    def test_schema_error_reported(self, tmp_path):
        path = tmp_path / "catalog.yaml"
        path.write_text(yaml.safe_dump({"categories": [{"id": "tv"}]}))
        is_valid, issues = validate_catalog(path)
        assert not is_valid
        assert issues

    def test_malformed_yaml_reported(self, tmp_path):
        path = tmp_path / "catalog.yaml"
        path.write_text("categories: [\n  {id: tv, name: TV\n")
        is_valid, issues = validate_catalog(path)
        assert not is_valid
        assert issues[0].startswith("Malformed catalog file")

    def test_configured_weight_policy_applied(self, catalog_document, tmp_path):
        data = catalog_document.model_dump(mode="json")
        data["categories"][0]["criteria"][0]["weight"] += 0.2
        path = tmp_path / "catalog.yaml"
        path.write_text(yaml.safe_dump(data, allow_unicode=True), encoding="utf-8")

        strict = ScorerConfig()
        normalize = ScorerConfig.model_validate({"catalog": {"weight_policy": "normalize"}})
        assert validate_catalog(path, strict)[0] is False
        assert validate_catalog(path, normalize) == (True, [])

    def test_catalog_path_from_config(self, tmp_path):
        path = tmp_path / "catalog.yaml"
        path.write_text("products: {broken", encoding="utf-8")
        config = ScorerConfig.model_validate({"catalog": {"path": str(path)}})
        is_valid, _ = validate_catalog(config=config)
        assert not is_valid


class TestExplainer:
    """Verdicts, highlights and caveats."""

    @pytest.fixture
    def explainer(self):
        return ScoreExplainer(ScorerConfig())

    @pytest.mark.parametrize("score,verdict", [
        (9.0, "Excelente escolha"),
        (7.5, "Boa escolha"),
        (5.0, "Escolha aceitável, com ressalvas"),
        (3.0, "Abaixo da média da categoria"),
    ])
    def test_verdicts(self, explainer, score, verdict):
        assert explainer.explain(make_hmum(score)).verdict == verdict

    def test_vetoed_verdict_and_caveat(self, explainer):
        hmum = make_hmum(
            0.1,
            [contribution("c3", 1.5, [CriterionFlag.VETO])],
            vetoed=True,
            veto_criteria=["c3"],
        )
        explanation = explainer.explain(hmum)
        assert explanation.verdict.startswith("Não recomendado")
        assert "Veto aplicado: C3" in explanation.caveats

    def test_strengths_and_weaknesses(self, explainer):
        hmum = make_hmum(7.0, [
            contribution("c1", 9.5),
            contribution("c2", 8.7),
            contribution("c3", 9.0, [CriterionFlag.IMPUTED]),
            contribution("c4", 7.0),
            contribution("c5", 4.0),
            contribution("c6", 6.5),
        ])
        explanation = explainer.explain(hmum)
        assert explanation.strengths == ["C1 (9.5)", "C2 (8.7)"]
        assert explanation.weaknesses == ["C5 (4.0)", "C6 (6.5)"]
        assert "Dados estimados (não auditados): C3" in explanation.caveats

    def test_highlights_capped(self, explainer):
        hmum = make_hmum(9.0, [contribution(f"c{i}", 9.0) for i in range(1, 6)])
        assert len(explainer.explain(hmum).strengths) == 3

    def test_no_hmum(self, explainer):
        assert explainer.explain(None).verdict == "Categoria sem configuração de pontuação"

    def test_lifespan_summary(self, engine):
        report = engine.score_product("samsung-qn90c-65")
        explanation = report.explanation
        assert explanation.lifespan_summary == (
            "Vida útil estimada de 11.0 anos, 10% acima da média da categoria (10 anos)"
        )
        assert explanation.lifespan_details[0].startswith("Componente limitante:")
        assert any(line.startswith("Multiplicadores:") for line in explanation.lifespan_details)

    def test_lifespan_below_average(self, engine):
        report = engine.score_product("philco-inverter-12000")
        assert "30% abaixo da média da categoria (10 anos)" in report.explanation.lifespan_summary

    def test_best_context_caveat(self, engine):
        report = engine.score_product("lg-c3-65")
        assert any(c.startswith("Melhor perfil de uso:") for c in report.explanation.caveats)

    def test_lifespan_kept_without_hmum(self, engine, explainer, repository):
        report = engine.score_product("samsung-qn90c-65")
        explanation = explainer.explain(
            None, sic=report.sic, category=repository.get_category("tv")
        )
        assert explanation.verdict == "Categoria sem configuração de pontuação"
        assert explanation.lifespan_summary.startswith("Vida útil estimada de 11.0 anos")
        assert explanation.lifespan_details
