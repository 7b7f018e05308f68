"""Pydantic models for scoring results.

Every engine returns one of these models; ``model_dump()`` gives the JSON
shape consumed by the frontend and by third-party agents.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from product_catalog.schema import (
    BrandTier,
    ComponentCategory,
    Criticality,
    Metacategory,
)


# =============================================================================
# HMUM Results
# =============================================================================


class CriterionFlag(str, Enum):
    """Markers attached to a criterion contribution."""
    VETO = "VETO"
    IMPUTED = "IMPUTED"


class CriterionContribution(BaseModel):
    """One criterion's share of the HMUM score."""
    criterion_id: str
    label: str
    raw_value: Any = None
    normalized_value: float = Field(..., ge=0, le=10)
    final_weight: float = Field(..., ge=0)
    contribution: float
    flags: list[CriterionFlag] = Field(default_factory=list)


class HmumResult(BaseModel):
    """Output of the HMUM aggregator for one product."""
    category_id: str
    product_id: str
    score: float = Field(..., ge=0, le=10, description="Final score, one decimal")
    raw_score: float = Field(..., ge=0, le=10, description="Final score before rounding")
    base_score: float = Field(..., ge=0, le=10, description="Weighted sum of normalized criteria")
    contextual_scores: dict[str, float] = Field(default_factory=dict)
    best_context: Optional[str] = None
    synergy_bonus: float = 0.0
    vetoed: bool = False
    veto_criteria: list[str] = Field(default_factory=list)
    breakdown: list[CriterionContribution] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def imputed_criteria(self) -> list[str]:
        return [c.criterion_id for c in self.breakdown if CriterionFlag.IMPUTED in c.flags]


# =============================================================================
# Semantic Results
# =============================================================================


class RadarPoint(BaseModel):
    """One axis of the metacategory radar chart."""
    key: Metacategory
    label: str
    score: float
    weight: float
    color: str


class SemanticCriterion(BaseModel):
    """A criterion as shown in the semantic breakdown."""
    id: str
    label: str
    metacategory: Metacategory
    score: float
    raw_value: Any = None
    value_display: str = "N/A"
    is_hidden_truth: bool = False


class SemanticResult(BaseModel):
    """Metacategory view of a product."""
    product_id: str
    category_id: str
    radar: list[RadarPoint] = Field(default_factory=list)
    breakdown: list[SemanticCriterion] = Field(default_factory=list)
    final_score: float = Field(..., ge=0, le=10)
    missing_criteria: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


# =============================================================================
# Component Intelligence Results
# =============================================================================


class LocationType(str, Enum):
    INLAND = "inland"
    COASTAL = "coastal"
    RURAL = "rural"


class VoltageStability(str, Enum):
    STABLE = "stable"
    UNSTABLE = "unstable"


class UserEnvironment(BaseModel):
    """Where and how the product is used. Defaults are neutral."""
    location: LocationType = LocationType.INLAND
    voltage_stability: VoltageStability = VoltageStability.STABLE
    avg_temperature_celsius: float = 25.0
    daily_usage_hours: float = Field(4.0, ge=0, le=24)


class QualityFactorsResult(BaseModel):
    """Resolved πMarca and πTech multipliers."""
    brand_factor: float = 1.0
    tech_factor: float = 1.0
    combined: float = 1.0
    brand_tier: Optional[BrandTier] = None
    technology: Optional[str] = None
    source: str = Field("neutral", description="explicit, brand_tier or neutral")
    warnings: list[str] = Field(default_factory=list)


class LimitingComponent(BaseModel):
    """The component expected to fail first."""
    id: str
    name: str
    category: ComponentCategory
    l10_hours: Optional[float] = None
    estimated_life_years: float
    failure_modes: list[str] = Field(default_factory=list)


class ComponentLife(BaseModel):
    """Per-component lifespan and risk figures."""
    component_id: str
    name: str
    category: ComponentCategory
    criticality: Criticality
    quantity: int = 1
    base_life_years: float
    adjusted_life_years: float
    failure_probability_5y: float = Field(..., ge=0, le=1)
    repair_cost: float = 0.0
    repairability_score: float = Field(..., ge=0, le=10)


class RepairabilityIndex(BaseModel):
    """Repairability index with its five sub-scores."""
    score: float = Field(..., ge=0, le=10)
    classification: str
    label: str
    documentation: float
    disassembly: float
    parts_availability: float
    parts_pricing: float
    software_reset: float


class RepairabilityComponent(BaseModel):
    """One entry of the repairability map."""
    id: str
    name: str
    score: float
    status: str = Field(..., description="repairable, moderate or critical")
    repair_cost: float
    parts_availability: str


class RepairabilityMap(BaseModel):
    overall_score: float
    label: str
    category_average: float
    components: list[RepairabilityComponent] = Field(default_factory=list)


class SicResult(BaseModel):
    """Output of the component intelligence engine for one product."""
    product_id: str
    category_id: str
    estimated_lifespan_years: float
    limiting_component: LimitingComponent
    quality_factors: QualityFactorsResult
    repairability_index: RepairabilityIndex
    repairability_map: RepairabilityMap
    component_breakdown: list[ComponentLife] = Field(default_factory=list)
    failure_probability_5y: float = Field(..., ge=0, le=1)
    expected_maintenance_cost_5y: float = Field(..., ge=0)
    calculation_confidence: float = Field(..., ge=0, le=1)
    warnings: list[str] = Field(default_factory=list)


# =============================================================================
# TCO Results
# =============================================================================


class TcoBreakdown(BaseModel):
    """Total cost of ownership, currency values in whole BRL."""
    acquisition_cost: int
    energy_cost: int
    maintenance_cost: int
    total_tco: int
    tco_per_year: int
    tco_per_month: int
    lifespan_years: float
    energy_rate: float


class TcoComparison(BaseModel):
    """Two products compared by total cost of ownership."""
    cheaper: str
    more_expensive: str
    savings: int
    savings_percent: float


# =============================================================================
# Reports
# =============================================================================


class ScoreExplanation(BaseModel):
    """Human-readable summary of a product's scores."""
    verdict: str
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    caveats: list[str] = Field(default_factory=list)
    lifespan_summary: Optional[str] = None
    lifespan_details: list[str] = Field(default_factory=list)


class ProductReport(BaseModel):
    """Everything the scoring core knows about one product."""
    product_id: str
    product_name: str
    category_id: str
    hmum: Optional[HmumResult] = None
    semantic: Optional[SemanticResult] = None
    sic: Optional[SicResult] = None
    tco: Optional[TcoBreakdown] = None
    explanation: Optional[ScoreExplanation] = None
    warnings: list[str] = Field(default_factory=list)
