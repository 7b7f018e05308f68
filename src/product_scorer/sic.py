"""SIC Component Intelligence - Phase 3 of the Scoring Engine.

Estimates useful life, repairability and five-year failure risk from the
physical components a product is built from. A product lasts as long as
its weakest critical component (the limiting component); brand and
technology quality scale every component's characteristic life.
"""

import logging
import math
from typing import Optional, Sequence

from product_catalog import CatalogRepository
from product_catalog.schema import (
    CategoryConfig,
    ComponentDefinition,
    ComponentInstance,
    DataSource,
    PartsAvailability,
)

from .config import ScorerConfig, SicConfig, get_config
from .normalizer import clamp
from .quality_factors import quality_warnings, resolve_quality_factors
from .schema import (
    ComponentLife,
    LimitingComponent,
    LocationType,
    QualityFactorsResult,
    RepairabilityComponent,
    RepairabilityIndex,
    RepairabilityMap,
    SicResult,
    UserEnvironment,
    VoltageStability,
)

logger = logging.getLogger(__name__)

# Reference conditions for component reliability data
REFERENCE_TEMPERATURE_C = 25.0
HEAT_ONSET_C = 28.0
REFERENCE_DAILY_HOURS = 4.0

PARTS_AVAILABILITY_SCORES = {
    PartsAvailability.EXCELLENT: 10.0,
    PartsAvailability.GOOD: 8.0,
    PartsAvailability.LIMITED: 5.0,
    PartsAvailability.SCARCE: 2.0,
    PartsAvailability.DISCONTINUED: 0.0,
}

DATA_SOURCE_CONFIDENCE = {
    DataSource.LAB_TEST: 1.0,
    DataSource.FIELD_DATA: 0.9,
    DataSource.MANUFACTURER: 0.7,
    DataSource.INDUSTRY_AVG: 0.6,
    DataSource.ESTIMATED: 0.4,
}

REPAIRABILITY_LABELS = {
    "excellent": "Fácil Reparo",
    "good": "Fácil Reparo",
    "moderate": "Reparo Moderado",
    "poor": "Risco de Descarte",
    "unrepairable": "Risco de Descarte",
}


def weibull_failure_probability(years: float, eta_years: float, beta: float) -> float:
    """Probability that a component fails within ``years`` (Weibull CDF)."""
    if years <= 0:
        return 0.0
    if eta_years <= 0:
        return 1.0
    return 1.0 - math.exp(-((years / eta_years) ** beta))


def environment_factor(component: ComponentDefinition, environment: UserEnvironment) -> float:
    """Divisor applied to a component's life for the given environment.

    1.0 under reference conditions (inland, stable grid, 25 °C, 4 h/day).
    """
    risks = component.risk_factors
    factor = 1.0
    if environment.location == LocationType.COASTAL:
        factor *= risks.coastal_penalty
    if environment.voltage_stability == VoltageStability.UNSTABLE:
        factor *= risks.voltage_instability_penalty
    if environment.avg_temperature_celsius > HEAT_ONSET_C:
        exponent = (environment.avg_temperature_celsius - REFERENCE_TEMPERATURE_C) / 10
        factor *= risks.heat_penalty ** exponent
    if environment.daily_usage_hours > REFERENCE_DAILY_HOURS:
        factor *= math.sqrt(environment.daily_usage_hours / REFERENCE_DAILY_HOURS)
    return factor


def classify_repairability(score: float, thresholds: dict[str, float]) -> str:
    for classification in ("excellent", "good", "moderate", "poor"):
        if score >= thresholds[classification]:
            return classification
    return "unrepairable"


def component_status(score: float) -> str:
    if score >= 7:
        return "repairable"
    if score >= 4:
        return "moderate"
    return "critical"


class ComponentIntelligenceEngine:
    """Computes SIC results from component mappings.

    Configuration:
    - Repairability weights, criticality weights and classification
      thresholds come from the ``sic`` section of scorer-config.yaml
    """

    def __init__(
        self,
        repository: CatalogRepository,
        config: Optional[ScorerConfig] = None,
    ):
        self.repository = repository
        self.config: SicConfig = (config or get_config()).sic

    def calculate(
        self,
        product_id: str,
        environment: Optional[UserEnvironment] = None,
    ) -> Optional[SicResult]:
        """Run the component analysis for a mapped product.

        Args:
            product_id: Product slug.
            environment: Usage environment (neutral defaults when omitted).

        Returns:
            SicResult, or None when the product has no usable mapping.
        """
        mapping = self.repository.get_mapping(product_id)
        if mapping is None:
            logger.info("No component mapping for product %s", product_id)
            return None

        environment = environment or UserEnvironment()
        warnings: list[str] = []

        resolved: list[tuple[ComponentInstance, ComponentDefinition]] = []
        for instance in mapping.components:
            component = self.repository.get_component(instance.component_id)
            if component is None:
                logger.warning(
                    "Mapping %s references unknown component %s",
                    product_id, instance.component_id,
                )
                warnings.append(f"Componente desconhecido ignorado: {instance.component_id}")
                continue
            resolved.append((instance, component))

        if not resolved:
            logger.info("No known components for product %s", product_id)
            return None

        product = self.repository.get_product(product_id)
        price = product.price if product else None
        category = self.repository.get_category(mapping.category_id)

        quality = resolve_quality_factors(product_id, self.repository, mapping.category_id)
        warnings.extend(quality.warnings)
        warnings.extend(quality_warnings(
            quality.combined,
            self.config.quality_warning_low,
            self.config.quality_warning_high,
        ))

        lives = [
            self._component_life(instance, component, quality, environment, price)
            for instance, component in resolved
        ]

        _, limiting_component, limiting_life = self._limiting_component(
            resolved, lives, warnings
        )
        lifespan = self._clamp_lifespan(limiting_life.adjusted_life_years, category, warnings)

        repairability_index = self._repairability_index(resolved, price)
        repairability_map = RepairabilityMap(
            overall_score=repairability_index.score,
            label=repairability_index.label,
            category_average=category.category_average_repairability if category else 4.0,
            components=[
                RepairabilityComponent(
                    id=component.id,
                    name=component.name,
                    score=life.repairability_score,
                    status=component_status(life.repairability_score),
                    repair_cost=life.repair_cost,
                    parts_availability=component.repairability.parts_availability.value,
                )
                for (_, component), life in zip(resolved, lives)
            ],
        )

        critical = [life for life in lives if life.criticality.is_limiting_candidate()] or lives
        survival = 1.0
        for life in critical:
            survival *= 1.0 - life.failure_probability_5y
        expected_maintenance = sum(life.failure_probability_5y * life.repair_cost for life in lives)

        return SicResult(
            product_id=product_id,
            category_id=category.id if category else mapping.category_id,
            estimated_lifespan_years=round(lifespan, 2),
            limiting_component=LimitingComponent(
                id=limiting_component.id,
                name=limiting_component.name,
                category=limiting_component.category,
                l10_hours=limiting_component.reliability.l10_life_hours,
                estimated_life_years=round(limiting_life.adjusted_life_years, 2),
                failure_modes=limiting_component.failure_modes,
            ),
            quality_factors=quality,
            repairability_index=repairability_index,
            repairability_map=repairability_map,
            component_breakdown=lives,
            failure_probability_5y=round(1.0 - survival, 4),
            expected_maintenance_cost_5y=round(expected_maintenance, 2),
            calculation_confidence=self._confidence(mapping.mapping_confidence, resolved),
            warnings=warnings,
        )

    def _component_life(
        self,
        instance: ComponentInstance,
        component: ComponentDefinition,
        quality: QualityFactorsResult,
        environment: UserEnvironment,
        price: Optional[float],
    ) -> ComponentLife:
        base_life = component.reliability.weibull_eta_years / environment_factor(
            component, environment
        )
        adjusted_life = base_life * quality.combined
        probability = weibull_failure_probability(
            self.config.forecast_years, adjusted_life, component.reliability.weibull_beta
        )
        return ComponentLife(
            component_id=component.id,
            name=component.name,
            category=component.category,
            criticality=instance.criticality,
            quantity=instance.quantity,
            base_life_years=round(base_life, 2),
            adjusted_life_years=round(adjusted_life, 2),
            failure_probability_5y=round(probability, 4),
            repair_cost=component.costs.total,
            repairability_score=round(self._component_repairability(component, price)[0], 1),
        )

    def _limiting_component(
        self,
        resolved: Sequence[tuple[ComponentInstance, ComponentDefinition]],
        lives: Sequence[ComponentLife],
        warnings: list[str],
    ) -> tuple[ComponentInstance, ComponentDefinition, ComponentLife]:
        """Pick the component whose failure ends the product's life."""
        entries = [(i, c, life) for (i, c), life in zip(resolved, lives)]

        for entry in entries:
            if entry[0].limiting:
                return entry

        candidates = [e for e in entries if e[0].criticality.is_limiting_candidate()]
        if not candidates:
            warnings.append(
                "Nenhum componente crítico mapeado; considerando todos os componentes"
            )
            candidates = entries
        return min(candidates, key=lambda e: e[2].adjusted_life_years)

    def _clamp_lifespan(
        self,
        years: float,
        category: Optional[CategoryConfig],
        warnings: list[str],
    ) -> float:
        if category is None or category.lifespan_band is None:
            return years
        band = category.lifespan_band
        if not band.contains(years):
            clamped = band.clamp(years)
            warnings.append(
                f"Vida útil calculada ({years:.1f} anos) fora da faixa da categoria "
                f"({band.min_years:g}-{band.max_years:g}); ajustada para {clamped:g}"
            )
            return clamped
        return years

    def _component_repairability(
        self,
        component: ComponentDefinition,
        price: Optional[float],
    ) -> tuple[float, dict[str, float]]:
        """Return (score, sub-scores) for one component."""
        repair = component.repairability
        cost = component.costs.total

        if price:
            pricing = clamp(10 * (1 - cost / price))
        else:
            pricing = max(0.0, 10 - cost / self.config.repair_cost_scale)

        if repair.disassembly_score is not None:
            disassembly = repair.disassembly_score
        else:
            disassembly = 7.0 if repair.diy_friendly else 4.0

        subscores = {
            "documentation": 8.0 if repair.has_service_manual else 3.0,
            "disassembly": disassembly,
            "parts_availability": PARTS_AVAILABILITY_SCORES[repair.parts_availability],
            "parts_pricing": pricing,
            "software_reset": self.config.software_reset_score,
        }
        weights = self.config.repairability_weights.model_dump()
        score = sum(subscores[key] * weights[key] for key in subscores)
        return clamp(score), subscores

    def _repairability_index(
        self,
        resolved: Sequence[tuple[ComponentInstance, ComponentDefinition]],
        price: Optional[float],
    ) -> RepairabilityIndex:
        """Criticality-weighted repairability index over all components."""
        totals = {
            "documentation": 0.0,
            "disassembly": 0.0,
            "parts_availability": 0.0,
            "parts_pricing": 0.0,
            "software_reset": 0.0,
        }
        score_sum = 0.0
        weight_sum = 0.0
        for instance, component in resolved:
            weight = self.config.criticality_weights.get(instance.criticality.value, 1.0)
            score, subscores = self._component_repairability(component, price)
            score_sum += score * weight
            for key, value in subscores.items():
                totals[key] += value * weight
            weight_sum += weight

        if weight_sum <= 0:
            weight_sum = 1.0

        score = round(score_sum / weight_sum, 1)
        classification = classify_repairability(score, self.config.label_thresholds)
        return RepairabilityIndex(
            score=score,
            classification=classification,
            label=REPAIRABILITY_LABELS[classification],
            **{key: round(value / weight_sum, 1) for key, value in totals.items()},
        )

    def _confidence(
        self,
        mapping_confidence: float,
        resolved: Sequence[tuple[ComponentInstance, ComponentDefinition]],
    ) -> float:
        base = mapping_confidence * 0.8 + 0.2
        sources = [DATA_SOURCE_CONFIDENCE[c.data_source] for _, c in resolved]
        data_quality = sum(sources) / len(sources)
        return round(min(1.0, base * data_quality), 2)
