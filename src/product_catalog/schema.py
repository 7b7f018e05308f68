"""Pydantic models for the product catalog schema."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


# =============================================================================
# Product Records
# =============================================================================


class ProductRecord(BaseModel):
    """A product as supplied by the data layer.

    Read-only to the scoring core. ``scores`` holds pre-computed per-criterion
    inputs (c1..c10); ``specs`` holds raw technical attributes.
    """
    id: str = Field(..., description="Product slug, e.g. samsung-qn90c-65")
    category_id: str = Field(..., description="Category id or alias")
    name: str = ""
    brand: Optional[str] = None
    price: Optional[float] = Field(None, ge=0, description="Current price in BRL")
    specs: dict[str, Any] = Field(default_factory=dict)
    scores: dict[str, float] = Field(default_factory=dict)
    attributes: dict[str, Any] = Field(default_factory=dict)
    energy_kwh_month: Optional[float] = Field(
        None, ge=0, description="Declared monthly consumption (INMETRO label)"
    )


# =============================================================================
# Normalization and Criteria
# =============================================================================


class NormalizationType(str, Enum):
    """Strategy used to map a raw value onto the 0-10 scale."""
    LINEAR = "linear"
    INVERSE_EXP = "inverse_exp"
    LOGARITHMIC = "logarithmic"
    BOOLEAN = "boolean"
    MAPPING = "mapping"

    @classmethod
    def from_string(cls, value: str) -> "NormalizationType":
        """Parse normalization type from string (accepts legacy spellings)."""
        mapping = {
            "linear": cls.LINEAR,
            "inverseexp": cls.INVERSE_EXP,
            "inverseexponential": cls.INVERSE_EXP,
            "log": cls.LOGARITHMIC,
            "logarithmic": cls.LOGARITHMIC,
            "bool": cls.BOOLEAN,
            "boolean": cls.BOOLEAN,
            "map": cls.MAPPING,
            "mapping": cls.MAPPING,
        }
        key = value.lower().replace("-", "").replace("_", "").replace(" ", "")
        if key not in mapping:
            raise ValueError(f"Unknown normalization type: {value}")
        return mapping[key]


class NormalizationConfig(BaseModel):
    """Parameters for one normalization strategy.

    Only the fields relevant to ``type`` are read; the others keep their
    defaults.
    """
    type: NormalizationType
    min: float = 0.0
    max: float = 10.0
    reference_value: float = 0.0
    decay: float = Field(0.05, ge=0)
    scale_factor: float = Field(2.5, gt=0)
    true_score: float = Field(10.0, ge=0, le=10)
    false_score: float = Field(0.0, ge=0, le=10)
    mapping: dict[str, float] = Field(default_factory=dict)
    default_score: float = Field(5.0, ge=0, le=10)

    @field_validator("type", mode="before")
    @classmethod
    def _parse_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return NormalizationType.from_string(value)
        return value

    @model_validator(mode="after")
    def _check_range(self) -> "NormalizationConfig":
        if self.type == NormalizationType.LINEAR and self.max <= self.min:
            raise ValueError(
                f"linear normalization needs max > min (got min={self.min}, max={self.max})"
            )
        return self


class Direction(str, Enum):
    """Whether a higher raw value is better."""
    MAXIMIZE = "maximize"
    MINIMIZE = "minimize"


class MissingStrategy(str, Enum):
    """What the aggregator does when a criterion's raw value is missing."""
    IMPUTE_PENALTY = "impute_penalty"  # Substitute a neutral value, flag IMPUTED
    IGNORE_REWEIGHT = "ignore_reweight"  # Drop and renormalize remaining weights
    VETO = "veto"  # Missing data disqualifies the product


class Metacategory(str, Enum):
    """The four fixed groupings used by the semantic view."""
    PERFORMANCE = "performance"
    USABILITY = "usability"
    CONSTRUCTION = "construction"
    ECONOMY = "economy"

    @property
    def label(self) -> str:
        return METACATEGORY_LABELS[self]

    @property
    def color(self) -> str:
        return METACATEGORY_COLORS[self]


METACATEGORY_LABELS = {
    Metacategory.PERFORMANCE: "Performance",
    Metacategory.USABILITY: "Usabilidade",
    Metacategory.CONSTRUCTION: "Construção",
    Metacategory.ECONOMY: "Economia",
}

METACATEGORY_COLORS = {
    Metacategory.PERFORMANCE: "#8884d8",
    Metacategory.USABILITY: "#82ca9d",
    Metacategory.CONSTRUCTION: "#ff7300",
    Metacategory.ECONOMY: "#4caf50",
}


class CriterionDefinition(BaseModel):
    """One scored criterion of a category."""
    id: str
    label: str
    description: str = ""
    data_field: str = Field(..., description="Field path, e.g. scores.c3 or specs.noise_db")
    weight: float = Field(..., ge=0)
    direction: Direction = Direction.MAXIMIZE
    metacategory: Metacategory = Metacategory.PERFORMANCE
    missing_strategy: MissingStrategy = MissingStrategy.IMPUTE_PENALTY
    impute_value: float = Field(5.0, description="Raw value substituted when data is missing")
    veto_threshold: Optional[float] = Field(None, ge=0, le=10)
    normalization: NormalizationConfig = Field(
        default_factory=lambda: NormalizationConfig(type=NormalizationType.LINEAR)
    )
    is_hidden_truth: bool = False
    unit: Optional[str] = None


class ContextProfile(BaseModel):
    """A use-case profile re-weighting criteria (e.g. competitive gaming)."""
    id: str
    label: str
    description: str = ""
    weight_multipliers: dict[str, float] = Field(default_factory=dict)

    def multiplier(self, criterion_id: str) -> float:
        return self.weight_multipliers.get(criterion_id, 1.0)


class LifespanBand(BaseModel):
    """Plausible useful-life range for a category, in years."""
    min_years: float = Field(..., gt=0)
    max_years: float = Field(..., gt=0)

    @model_validator(mode="after")
    def _check_band(self) -> "LifespanBand":
        if self.max_years <= self.min_years:
            raise ValueError("lifespan band needs max_years > min_years")
        return self

    def clamp(self, years: float) -> float:
        return max(self.min_years, min(self.max_years, years))

    def contains(self, years: float) -> bool:
        return self.min_years <= years <= self.max_years


class CategoryConfig(BaseModel):
    """Scoring configuration for one product category."""
    id: str
    name: str
    criteria: list[CriterionDefinition] = Field(default_factory=list)
    extended_criteria: list[CriterionDefinition] = Field(default_factory=list)
    metacategory_weights: dict[Metacategory, float] = Field(
        default_factory=lambda: {
            Metacategory.PERFORMANCE: 35,
            Metacategory.USABILITY: 20,
            Metacategory.CONSTRUCTION: 25,
            Metacategory.ECONOMY: 20,
        }
    )
    contexts: list[ContextProfile] = Field(default_factory=list)
    hybrid_alpha: float = Field(0.6, ge=0, le=1)
    veto_penalty: Optional[float] = Field(
        None, ge=0, le=1, description="Overrides the configured default veto penalty"
    )
    lifespan_band: Optional[LifespanBand] = None
    base_vue_years: Optional[float] = Field(None, gt=0)
    category_average_repairability: float = Field(4.0, ge=0, le=10)

    @property
    def total_weight(self) -> float:
        return sum(c.weight for c in self.criteria)

    def get_context(self, context_id: str) -> Optional[ContextProfile]:
        for context in self.contexts:
            if context.id == context_id:
                return context
        return None


# =============================================================================
# Component Intelligence
# =============================================================================


class ComponentCategory(str, Enum):
    """Physical component families."""
    PANEL = "panel"
    BACKLIGHT = "backlight"
    BOARD = "board"
    POWER_SUPPLY = "power_supply"
    COMPRESSOR = "compressor"
    COIL = "coil"
    SENSOR = "sensor"
    COOLING = "cooling"
    MECHANICAL = "mechanical"
    MOTOR = "motor"
    BATTERY = "battery"
    OTHER = "other"


class Criticality(str, Enum):
    """How a component failure affects the product."""
    FATAL = "fatal"  # Failure usually means replacing the product
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    def is_limiting_candidate(self) -> bool:
        return self in (self.FATAL, self.HIGH)


class PartsAvailability(str, Enum):
    """Spare-part availability tier in the Brazilian market."""
    EXCELLENT = "excellent"
    GOOD = "good"
    LIMITED = "limited"
    SCARCE = "scarce"
    DISCONTINUED = "discontinued"


class DataSource(str, Enum):
    """Provenance of a component's reliability data."""
    LAB_TEST = "lab_test"
    FIELD_DATA = "field_data"
    MANUFACTURER = "manufacturer"
    INDUSTRY_AVG = "industry_avg"
    ESTIMATED = "estimated"


class ReliabilityData(BaseModel):
    """Baseline reliability figures for a component."""
    l10_life_hours: Optional[float] = Field(None, gt=0, description="Hours until 10% of units fail")
    weibull_beta: float = Field(1.0, gt=0, description="Weibull shape")
    weibull_eta_years: float = Field(..., gt=0, description="Weibull characteristic life")
    annual_failure_rate: float = Field(0.0, ge=0, le=1)


class RepairCosts(BaseModel):
    """Typical repair costs in BRL."""
    part_cost: float = Field(0.0, ge=0)
    labor_cost: float = Field(0.0, ge=0)
    repair_time_hours: float = Field(0.0, ge=0)

    @property
    def total(self) -> float:
        return self.part_cost + self.labor_cost


class RiskFactors(BaseModel):
    """Environmental divisors applied to the characteristic life."""
    coastal_penalty: float = Field(1.0, ge=1.0)
    voltage_instability_penalty: float = Field(1.0, ge=1.0)
    heat_penalty: float = Field(1.0, ge=1.0)


class RepairabilityData(BaseModel):
    """Repairability attributes of a component."""
    parts_availability: PartsAvailability = PartsAvailability.LIMITED
    diy_friendly: bool = False
    requires_specialist: bool = True
    repairability_score: float = Field(5.0, ge=0, le=10)
    has_service_manual: bool = False
    disassembly_score: Optional[float] = Field(None, ge=0, le=10)


class ComponentDefinition(BaseModel):
    """A physical component type with reliability and repair data."""
    id: str
    name: str
    category: ComponentCategory
    technology: Optional[str] = None
    description: str = ""
    reliability: ReliabilityData
    costs: RepairCosts = Field(default_factory=RepairCosts)
    risk_factors: RiskFactors = Field(default_factory=RiskFactors)
    repairability: RepairabilityData = Field(default_factory=RepairabilityData)
    failure_modes: list[str] = Field(default_factory=list)
    failure_symptoms: list[str] = Field(default_factory=list)
    data_source: DataSource = DataSource.ESTIMATED


class ComponentInstance(BaseModel):
    """A component as it appears inside a specific product."""
    component_id: str
    quantity: int = Field(1, ge=1)
    criticality: Criticality = Criticality.MEDIUM
    limiting: bool = False
    notes: Optional[str] = None


class ProductComponentMapping(BaseModel):
    """Links a product to the components it contains."""
    product_id: str
    category_id: str
    mapping_confidence: float = Field(0.5, ge=0, le=1)
    mapping_source: str = "inferred"
    components: list[ComponentInstance] = Field(default_factory=list)

    @model_validator(mode="after")
    def _single_limiter(self) -> "ProductComponentMapping":
        flagged = [c.component_id for c in self.components if c.limiting]
        if len(flagged) > 1:
            raise ValueError(
                f"mapping {self.product_id} flags more than one limiting component: {flagged}"
            )
        return self


# =============================================================================
# Quality Factors
# =============================================================================


class BrandTier(str, Enum):
    """Brand manufacturing-quality tier (πMarca)."""
    ELITE = "elite"
    PREMIUM = "premium"
    STANDARD = "standard"
    BUDGET = "budget"
    GENERIC = "generic"


class DisplayTechnology(str, Enum):
    """Display technologies with distinct longevity (πTech for TVs)."""
    OLED_EVO = "oled_evo"
    OLED_STANDARD = "oled_standard"
    MINI_LED = "mini_led"
    EDGE_LED = "edge_led"
    DIRECT_LED = "direct_led"


class CompressorTechnology(str, Enum):
    """Compressor technologies with distinct longevity (πTech for cooling)."""
    INVERTER_RECIPROCATING = "inverter_reciprocating"
    RECIPROCATING_ONOFF = "reciprocating_onoff"
    LINEAR_INVERTER = "linear_inverter"
    LINEAR_INVERTER_V2 = "linear_inverter_v2"


BRAND_QUALITY_FACTORS = {
    BrandTier.ELITE: 1.20,
    BrandTier.PREMIUM: 1.05,
    BrandTier.STANDARD: 0.90,
    BrandTier.BUDGET: 0.80,
    BrandTier.GENERIC: 0.60,
}

DISPLAY_TECH_FACTORS = {
    DisplayTechnology.OLED_EVO: 1.15,
    DisplayTechnology.OLED_STANDARD: 0.80,
    DisplayTechnology.MINI_LED: 1.05,
    DisplayTechnology.EDGE_LED: 0.85,
    DisplayTechnology.DIRECT_LED: 0.90,
}

COMPRESSOR_TECH_FACTORS = {
    CompressorTechnology.INVERTER_RECIPROCATING: 1.20,
    CompressorTechnology.RECIPROCATING_ONOFF: 1.00,
    CompressorTechnology.LINEAR_INVERTER: 0.65,
    CompressorTechnology.LINEAR_INVERTER_V2: 0.90,
}


class ProductQualityFactors(BaseModel):
    """Explicit quality factors for one product."""
    product_id: str
    brand_tier: BrandTier
    display_technology: Optional[DisplayTechnology] = None
    compressor_technology: Optional[CompressorTechnology] = None
    brand_factor_override: Optional[float] = Field(None, gt=0)
    tech_factor_override: Optional[float] = Field(None, gt=0)
    notes: Optional[str] = None


# =============================================================================
# Catalog Document
# =============================================================================


class ProductCatalog(BaseModel):
    """Complete static data set consumed by the scoring core."""
    version: str = "1.0.0"
    categories: list[CategoryConfig] = Field(default_factory=list)
    components: list[ComponentDefinition] = Field(default_factory=list)
    mappings: list[ProductComponentMapping] = Field(default_factory=list)
    quality_factors: list[ProductQualityFactors] = Field(default_factory=list)
    brand_tiers: dict[str, dict[str, BrandTier]] = Field(
        default_factory=dict,
        description="category id -> brand name -> tier",
    )
    products: list[ProductRecord] = Field(default_factory=list)

    @property
    def total_products(self) -> int:
        return len(self.products)
