"""Scorer settings: pydantic models plus YAML discovery and loading."""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from product_catalog.repository import DEFAULT_WEIGHT_TOLERANCE, WeightPolicy


class HmumConfig(BaseModel):
    """Defaults for the HMUM aggregator.

    Category files may override the veto penalty and the hybrid alpha; the
    remaining values apply to every category.
    """
    default_veto_penalty: float = Field(
        0.01,
        ge=0,
        le=1,
        description="Multiplier applied to the base score of a vetoed product"
    )
    contextual_compression: float = Field(
        0.90,
        ge=0,
        le=1,
        description="Pulls contextual scores toward 5.0 (1.0 disables compression)"
    )
    importance_threshold: float = Field(
        1.1,
        description="Multiplier at or above which a context marks a criterion as important"
    )
    union_synergy_multiplier: float = Field(
        1.15,
        ge=1,
        description="Boost when two or more selected contexts mark a criterion as important"
    )
    max_weight_multiplier: float = Field(
        4.0,
        gt=0,
        description="Cap for combined context weight multipliers"
    )
    strength_threshold: float = Field(8.5, description="Normalized score reported as a strength")
    weakness_threshold: float = Field(6.5, description="Normalized score reported as a weakness")


class SemanticConfig(BaseModel):
    """Settings for the metacategory (radar) view."""
    hidden_truth_threshold: float = Field(
        5.0,
        description="Hidden-truth criteria scoring below this produce a warning"
    )
    score_floor: float = Field(
        0.1,
        gt=0,
        description="Floor applied before the harmonic mean divides by a score"
    )


class RepairabilityWeightsConfig(BaseModel):
    """Weights of the five repairability index dimensions (sum to 1.0)."""
    documentation: float = Field(0.10, description="Service manual and schematics")
    disassembly: float = Field(0.25, description="Ease of opening and DIY friendliness")
    parts_availability: float = Field(0.30, description="Spare-part availability tier")
    parts_pricing: float = Field(0.25, description="Repair cost relative to product price")
    software_reset: float = Field(0.10, description="Pairing or firmware lock-in after repair")


class SicConfig(BaseModel):
    """Settings for the component intelligence engine."""
    repairability_weights: RepairabilityWeightsConfig = Field(
        default_factory=RepairabilityWeightsConfig
    )
    criticality_weights: dict[str, float] = Field(
        default_factory=lambda: {"fatal": 2.0, "high": 1.5, "medium": 1.0, "low": 0.5},
        description="Weight of each component in the repairability index by criticality"
    )
    label_thresholds: dict[str, float] = Field(
        default_factory=lambda: {"excellent": 8.0, "good": 6.0, "moderate": 4.0, "poor": 2.0},
        description="Minimum repairability index for each classification"
    )
    forecast_years: float = Field(
        5.0,
        gt=0,
        description="Horizon for failure probability and expected maintenance"
    )
    software_reset_score: float = Field(7.0, ge=0, le=10)
    repair_cost_scale: float = Field(
        200.0,
        gt=0,
        description="BRL per repairability point lost when the product price is unknown"
    )
    quality_warning_low: float = Field(0.8, description="Combined multiplier below this warns")
    quality_warning_high: float = Field(1.1, description="Combined multiplier above this notes a premium build")


class TcoConfig(BaseModel):
    """Defaults for the total cost of ownership calculator."""
    energy_rate: float = Field(0.85, gt=0, description="BRL per kWh")
    inflation_rate: float = Field(0.05, ge=0, description="Annual energy price inflation")
    discount_rate: float = Field(0.02, ge=0, description="Annual discount rate for present value")
    maintenance_rate: float = Field(0.02, ge=0, description="Annual maintenance reserve as a share of price")
    lifespan_years: float = Field(5.0, gt=0, description="Horizon when no lifespan estimate exists")


class CatalogConfig(BaseModel):
    """How catalog data is validated at load time."""
    weight_policy: WeightPolicy = Field(
        WeightPolicy.STRICT,
        description="strict: reject weight drift; normalize: rescale and warn"
    )
    weight_tolerance: float = Field(
        DEFAULT_WEIGHT_TOLERANCE,
        ge=0,
        description="Allowed distance of a category's weight sum from 1.0"
    )
    path: Optional[str] = Field(
        None,
        description="Catalog file or directory (bundled data when empty)"
    )


class ScorerConfig(BaseModel):
    """Complete configuration for the product scorer."""
    hmum: HmumConfig = Field(default_factory=HmumConfig)
    semantic: SemanticConfig = Field(default_factory=SemanticConfig)
    sic: SicConfig = Field(default_factory=SicConfig)
    tco: TcoConfig = Field(default_factory=TcoConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)


CONFIG_ENV_VAR = "PRODUCT_SCORER_CONFIG"
LOCAL_CONFIG_NAMES = ("scorer-config.yaml", "scorer-config.yml")
USER_CONFIG_PATH = Path(".config") / "product-scorer" / "config.yaml"

_SECTION_NOTES = {
    "hmum": "criterion aggregation, veto penalty, context compression",
    "semantic": "radar view and hidden-truth warnings",
    "sic": "component lifespan, repairability and environment multipliers",
    "tco": "energy tariff, discount rate and maintenance defaults",
    "catalog": "catalog location and the criterion weight-sum policy",
}

# Process-wide configuration; the CLI loads it once per invocation
_config: Optional[ScorerConfig] = None


def get_config() -> ScorerConfig:
    """Return the active configuration, creating the defaults on first use."""
    global _config
    if _config is None:
        _config = ScorerConfig()
    return _config


def load_config(path: Path) -> ScorerConfig:
    """Read a YAML file, validate it and make it the active configuration.

    Sections left out of the file keep their defaults. An empty file yields
    the default configuration.

    Raises:
        yaml.YAMLError: the file is not valid YAML.
        pydantic.ValidationError: a value is out of range or of the wrong type.
    """
    global _config

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    _config = ScorerConfig.model_validate(data or {})
    return _config


def reset_config() -> None:
    """Drop any loaded file and go back to the defaults."""
    global _config
    _config = ScorerConfig()


def find_config_file() -> Optional[Path]:
    """Locate the scorer configuration file.

    Checked in order: the file named by PRODUCT_SCORER_CONFIG (skipped when
    it does not exist), scorer-config.yaml or .yml in the working directory,
    then ~/.config/product-scorer/config.yaml.
    """
    candidates: list[Path] = []
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        candidates.append(Path(env_path))
    candidates.extend(Path(name) for name in LOCAL_CONFIG_NAMES)
    candidates.append(Path.home() / USER_CONFIG_PATH)

    for path in candidates:
        if path.exists():
            return path
    return None


def save_default_config(path: Path) -> None:
    """Write the default configuration to ``path`` with a commented header."""
    lines = [
        "# Product Scorer Configuration",
        "# ============================",
        "#",
        "# Sections:",
    ]
    lines.extend(f"#   {name}: {note}" for name, note in _SECTION_NOTES.items())
    lines.extend([
        "#",
        "# Looked up from the " + CONFIG_ENV_VAR + " environment variable,",
        "# ./" + LOCAL_CONFIG_NAMES[0] + " or ~/" + USER_CONFIG_PATH.as_posix() + ".",
        "",
        "",
    ])
    body = yaml.dump(
        ScorerConfig().model_dump(mode="json"),
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write("\n".join(lines) + body)
