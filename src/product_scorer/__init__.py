"""Scoring core: HMUM, semantic view, component intelligence and TCO."""

from product_scorer.config import ScorerConfig, get_config, load_config, reset_config
from product_scorer.engine import ScoringEngine, validate_catalog
from product_scorer.hmum import (
    HmumAggregator,
    aggregate_criteria,
    combine_context_profiles,
    no_synergy,
)
from product_scorer.normalizer import apply_direction, normalize
from product_scorer.quality_factors import calculate_adjusted_vue, resolve_quality_factors
from product_scorer.semantic_adapter import SemanticAdapter, weighted_harmonic_mean
from product_scorer.sic import ComponentIntelligenceEngine, weibull_failure_probability
from product_scorer.tco import (
    CATEGORY_ENERGY_DEFAULTS,
    calculate_tco,
    default_energy_kwh_month,
)

__all__ = [
    "ScorerConfig",
    "get_config",
    "load_config",
    "reset_config",
    "ScoringEngine",
    "validate_catalog",
    "HmumAggregator",
    "aggregate_criteria",
    "combine_context_profiles",
    "no_synergy",
    "apply_direction",
    "normalize",
    "calculate_adjusted_vue",
    "resolve_quality_factors",
    "SemanticAdapter",
    "weighted_harmonic_mean",
    "ComponentIntelligenceEngine",
    "weibull_failure_probability",
    "CATEGORY_ENERGY_DEFAULTS",
    "calculate_tco",
    "default_energy_kwh_month",
]
