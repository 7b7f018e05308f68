"""Normalization Engine - Phase 1 of the Scoring Engine.

Maps heterogeneous raw values (nits, decibels, booleans, panel labels) onto
a common 0-10 scale. Every strategy returns a value inside [0, 10]; policy
for missing values belongs to the aggregator.
"""

import math
from typing import Any, Optional

from product_catalog.schema import Direction, NormalizationConfig, NormalizationType

MIN_SCORE = 0.0
MAX_SCORE = 10.0

TRUTHY_STRINGS = frozenset(["true", "sim", "yes", "1"])


def clamp(value: float, low: float = MIN_SCORE, high: float = MAX_SCORE) -> float:
    return max(low, min(high, value))


def _to_float(raw: Any) -> Optional[float]:
    """Coerce a raw value to float, or None when it is not numeric."""
    if isinstance(raw, bool):
        return 1.0 if raw else 0.0
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        try:
            value = float(raw.strip().replace(",", "."))
        except ValueError:
            return None
    else:
        return None
    if math.isnan(value):
        return None
    return value


def is_missing(raw: Any) -> bool:
    """True for absent values: None or a blank string."""
    return raw is None or (isinstance(raw, str) and not raw.strip())


def _is_truthy(raw: Any) -> bool:
    if isinstance(raw, str):
        return raw.strip().lower() in TRUTHY_STRINGS
    return bool(raw)


def normalize_linear(value: float, config: NormalizationConfig) -> float:
    """Linear map of [min, max] onto [0, 10]."""
    return clamp((value - config.min) / (config.max - config.min) * MAX_SCORE)


def normalize_inverse_exp(value: float, config: NormalizationConfig) -> float:
    """Exponential decay away from the reference value (ideal = 10)."""
    distance = abs(value - config.reference_value)
    return clamp(MAX_SCORE * math.exp(-config.decay * distance))


def normalize_logarithmic(value: float, config: NormalizationConfig) -> float:
    """Diminishing returns: log10(value + 1) scaled, capped at 10."""
    if value + 1 <= 0:
        return MIN_SCORE
    return clamp(math.log10(value + 1) * config.scale_factor)


def normalize_mapping(
    raw: Any,
    config: NormalizationConfig,
    warnings: Optional[list[str]] = None,
) -> float:
    """Look a label up in the mapping table (exact, then case-insensitive)."""
    label = str(raw).strip()
    if label in config.mapping:
        return clamp(config.mapping[label])

    lowered = label.lower()
    for key, score in config.mapping.items():
        if key.lower() == lowered:
            return clamp(score)

    if warnings is not None:
        warnings.append(
            f"Unknown label '{label}' in mapping table; using default score {config.default_score}"
        )
    return clamp(config.default_score)


def normalize(
    raw: Any,
    config: NormalizationConfig,
    warnings: Optional[list[str]] = None,
) -> float:
    """Normalize a raw value to [0, 10] with the configured strategy.

    Args:
        raw: Raw value from the product record. None yields 0.
        config: Normalization strategy and parameters.
        warnings: Optional list collecting fail-soft notices (unknown labels,
            non-numeric input).

    Returns:
        Score in [0, 10].
    """
    if raw is None:
        return MIN_SCORE

    if config.type == NormalizationType.BOOLEAN:
        return clamp(config.true_score if _is_truthy(raw) else config.false_score)

    if config.type == NormalizationType.MAPPING:
        return normalize_mapping(raw, config, warnings)

    value = _to_float(raw)
    if value is None:
        if warnings is not None and not (isinstance(raw, float) and math.isnan(raw)):
            warnings.append(f"Non-numeric value {raw!r} for {config.type.value} normalization")
        return MIN_SCORE

    if config.type == NormalizationType.LINEAR:
        return normalize_linear(value, config)
    if config.type == NormalizationType.INVERSE_EXP:
        return normalize_inverse_exp(value, config)
    return normalize_logarithmic(value, config)


def apply_direction(
    score: float,
    direction: Direction,
    normalization_type: NormalizationType,
) -> float:
    """Invert a score for minimize criteria whose strategy is monotonic.

    INVERSE_EXP, BOOLEAN and MAPPING already encode what "better" means.
    """
    if direction == Direction.MINIMIZE and normalization_type in (
        NormalizationType.LINEAR,
        NormalizationType.LOGARITHMIC,
    ):
        return clamp(MAX_SCORE - score)
    return score


def normalize_criterion(
    raw: Any,
    config: NormalizationConfig,
    direction: Direction,
    warnings: Optional[list[str]] = None,
) -> float:
    """Normalize and then apply direction."""
    return apply_direction(normalize(raw, config, warnings), direction, config.type)
