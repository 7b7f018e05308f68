"""Explainer - Phase 5 of the Scoring Engine.

Generates human-readable explanations for scoring results: strengths,
weaknesses, a verdict line, caveats about vetoes and imputed data, and the
reasoning behind the lifespan estimate.
"""

from typing import Optional

from product_catalog.schema import CategoryConfig

from .config import ScorerConfig, get_config
from .schema import (
    CriterionFlag,
    HmumResult,
    ScoreExplanation,
    SicResult,
    UserEnvironment,
)

MAX_HIGHLIGHTS = 3


class ScoreExplainer:
    """Builds a ScoreExplanation from engine outputs.

    Principles:
    - Every number shown to a shopper must be traceable to a criterion
    - Imputed data and vetoes are always disclosed
    """

    def __init__(self, config: Optional[ScorerConfig] = None):
        """Initialize explainer with configuration."""
        cfg = (config or get_config()).hmum
        self.strength_threshold = cfg.strength_threshold
        self.weakness_threshold = cfg.weakness_threshold

    def explain(
        self,
        hmum: Optional[HmumResult],
        sic: Optional[SicResult] = None,
        category: Optional[CategoryConfig] = None,
        environment: Optional[UserEnvironment] = None,
    ) -> ScoreExplanation:
        """Explain one product's results.

        Args:
            hmum: HMUM result (None when the category is unsupported)
            sic: Component analysis, if the product is mapped
            category: Category configuration for lifespan comparison
            environment: Environment assumed for the lifespan estimate

        Returns:
            ScoreExplanation
        """
        lifespan_summary = None
        lifespan_details: list[str] = []
        if sic is not None:
            lifespan_summary, lifespan_details = self.explain_lifespan(
                sic, category, environment
            )

        if hmum is None:
            return ScoreExplanation(
                verdict="Categoria sem configuração de pontuação",
                caveats=["Nenhuma nota calculada para este produto"],
                lifespan_summary=lifespan_summary,
                lifespan_details=lifespan_details,
            )

        return ScoreExplanation(
            verdict=self._verdict(hmum),
            strengths=self._strengths(hmum),
            weaknesses=self._weaknesses(hmum),
            caveats=self._caveats(hmum),
            lifespan_summary=lifespan_summary,
            lifespan_details=lifespan_details,
        )

    def _strengths(self, hmum: HmumResult) -> list[str]:
        items = [
            c for c in hmum.breakdown
            if c.normalized_value >= self.strength_threshold and not c.flags
        ]
        items.sort(key=lambda c: c.normalized_value, reverse=True)
        return [f"{c.label} ({c.normalized_value:.1f})" for c in items[:MAX_HIGHLIGHTS]]

    def _weaknesses(self, hmum: HmumResult) -> list[str]:
        items = [c for c in hmum.breakdown if c.normalized_value <= self.weakness_threshold]
        items.sort(key=lambda c: c.normalized_value)
        return [f"{c.label} ({c.normalized_value:.1f})" for c in items[:MAX_HIGHLIGHTS]]

    def _verdict(self, hmum: HmumResult) -> str:
        if hmum.vetoed:
            return "Não recomendado: falha crítica em um critério eliminatório"
        if hmum.score >= 8.5:
            return "Excelente escolha"
        if hmum.score >= 7.0:
            return "Boa escolha"
        if hmum.score >= 5.0:
            return "Escolha aceitável, com ressalvas"
        return "Abaixo da média da categoria"

    def _caveats(self, hmum: HmumResult) -> list[str]:
        caveats = []
        if hmum.vetoed:
            labels = [c.label for c in hmum.breakdown if CriterionFlag.VETO in c.flags]
            caveats.append(f"Veto aplicado: {', '.join(labels)}")
        imputed = [c.label for c in hmum.breakdown if CriterionFlag.IMPUTED in c.flags]
        if imputed:
            caveats.append(
                f"Dados estimados (não auditados): {', '.join(imputed)}"
            )
        if hmum.best_context:
            caveats.append(f"Melhor perfil de uso: {hmum.best_context}")
        return caveats

    def explain_lifespan(
        self,
        sic: SicResult,
        category: Optional[CategoryConfig] = None,
        environment: Optional[UserEnvironment] = None,
    ) -> tuple[str, list[str]]:
        """Explain the lifespan estimate against the category average.

        Returns:
            (summary line, detail lines)
        """
        years = sic.estimated_lifespan_years
        summary = f"Vida útil estimada de {years:.1f} anos"

        if category is not None and category.base_vue_years:
            average = category.base_vue_years
            delta = round((years - average) / average * 100)
            if delta > 0:
                summary += f", {delta}% acima da média da categoria ({average:g} anos)"
            elif delta < 0:
                summary += f", {abs(delta)}% abaixo da média da categoria ({average:g} anos)"
            else:
                summary += f", igual à média da categoria ({average:g} anos)"

        limiting = sic.limiting_component
        details = [f"Componente limitante: {limiting.name}"]
        if limiting.l10_hours:
            details.append(f"L10 do componente: {limiting.l10_hours:,.0f} horas")
        if limiting.failure_modes:
            details.append(f"Modos de falha: {', '.join(limiting.failure_modes)}")

        quality = sic.quality_factors
        details.append(
            f"Multiplicadores: marca {quality.brand_factor:.2f} × tecnologia "
            f"{quality.tech_factor:.2f} = {quality.combined:.2f}"
        )

        environment = environment or UserEnvironment()
        details.append(
            f"Premissas de uso: {environment.daily_usage_hours:g} h/dia, "
            f"{environment.avg_temperature_celsius:g} °C, "
            f"local {environment.location.value}, rede {environment.voltage_stability.value}"
        )
        return summary, details
