"""HMUM Aggregator - Phase 2 of the Scoring Engine.

Combines the weighted, normalized criteria of a category into one 0-10
score. Handles missing data (impute, reweight or veto), veto thresholds and
the hybrid blend between the context-free base score and the best
use-case (context) score.
"""

import logging
from typing import Callable, Optional, Sequence

from product_catalog import CatalogRepository, FieldPath
from product_catalog.schema import (
    CategoryConfig,
    ContextProfile,
    CriterionDefinition,
    MissingStrategy,
    ProductRecord,
)

from .config import HmumConfig, ScorerConfig, get_config
from .normalizer import clamp, is_missing, normalize_criterion
from .schema import CriterionContribution, CriterionFlag, HmumResult

logger = logging.getLogger(__name__)

NEUTRAL_SCORE = 5.0

# (contextual_scores) -> bonus added after the hybrid blend
SynergyFunction = Callable[[dict[str, float]], float]


def no_synergy(contextual_scores: dict[str, float]) -> float:
    """Default synergy bonus: none."""
    return 0.0


def combine_context_profiles(
    profiles: Sequence[ContextProfile],
    importance_threshold: float = 1.1,
    union_multiplier: float = 1.15,
    max_multiplier: float = 4.0,
) -> ContextProfile:
    """Merge several use-case profiles with the Requirement Union rule.

    For every criterion the highest multiplier wins. A criterion marked as
    important (multiplier >= importance_threshold) by two or more profiles
    gets an extra union boost. Results are capped and rounded to two
    decimals.
    """
    if not profiles:
        raise ValueError("At least one context profile is required")
    if len(profiles) == 1:
        return profiles[0]

    criterion_ids: list[str] = []
    for profile in profiles:
        for criterion_id in profile.weight_multipliers:
            if criterion_id not in criterion_ids:
                criterion_ids.append(criterion_id)

    merged: dict[str, float] = {}
    for criterion_id in criterion_ids:
        multipliers = [p.multiplier(criterion_id) for p in profiles]
        value = max(multipliers)
        important = sum(1 for m in multipliers if m >= importance_threshold)
        if important >= 2:
            value *= union_multiplier
        merged[criterion_id] = round(min(value, max_multiplier), 2)

    return ContextProfile(
        id="+".join(p.id for p in profiles),
        label=" + ".join(p.label for p in profiles),
        description="Combined use-case profile",
        weight_multipliers=merged,
    )


def contextual_score(
    breakdown: Sequence[CriterionContribution],
    profile: ContextProfile,
    compression: float = 0.90,
) -> float:
    """Score a product under one context profile.

    sum(score * w * m) / sum(w * m), then pulled toward the midpoint by
    ``compression`` so no single context dominates the blend.
    """
    numerator = 0.0
    denominator = 0.0
    for item in breakdown:
        effective = item.final_weight * profile.multiplier(item.criterion_id)
        numerator += item.normalized_value * effective
        denominator += effective

    raw = numerator / denominator if denominator > 0 else NEUTRAL_SCORE
    return clamp(NEUTRAL_SCORE + (raw - NEUTRAL_SCORE) * compression)


def aggregate_criteria(
    criteria: Sequence[CriterionDefinition],
    product: ProductRecord,
    category_id: Optional[str] = None,
    contexts: Sequence[ContextProfile] = (),
    hybrid_alpha: float = 1.0,
    veto_penalty: float = 0.01,
    synergy: SynergyFunction = no_synergy,
    compression: float = 0.90,
) -> HmumResult:
    """Aggregate an explicit list of criteria for one product.

    Args:
        criteria: Criteria in display order.
        product: Product record providing raw values.
        category_id: Reported category (defaults to the product's).
        contexts: Profiles to score; the best one enters the hybrid blend.
            Empty means the final score is the base score.
        hybrid_alpha: Share of the base score in the hybrid blend.
        veto_penalty: Multiplier applied to the base score when vetoed.
        synergy: Bonus function over the contextual scores.
        compression: Contextual score compression toward 5.0.

    Returns:
        HmumResult with the ordered breakdown.
    """
    warnings: list[str] = []

    # (criterion, raw value, flags) for criteria that take part in the sum
    active: list[tuple[CriterionDefinition, object, list[CriterionFlag]]] = []
    for criterion in criteria:
        raw = FieldPath.parse(criterion.data_field).resolve(product)
        flags: list[CriterionFlag] = []

        if is_missing(raw):
            if criterion.missing_strategy == MissingStrategy.IGNORE_REWEIGHT:
                warnings.append(
                    f"Criterion '{criterion.id}' has no data; weight redistributed"
                )
                continue
            if criterion.missing_strategy == MissingStrategy.VETO:
                warnings.append(f"Criterion '{criterion.id}' has no data; product vetoed")
                flags.append(CriterionFlag.VETO)
                raw = None
            else:
                raw = criterion.impute_value
                flags.append(CriterionFlag.IMPUTED)
                warnings.append(
                    f"Criterion '{criterion.id}' imputed with value {criterion.impute_value}"
                )

        active.append((criterion, raw, flags))

    total_weight = sum(c.weight for c, _, _ in active)

    breakdown: list[CriterionContribution] = []
    veto_criteria: list[str] = []
    base_score = 0.0
    for criterion, raw, flags in active:
        normalized = normalize_criterion(
            raw, criterion.normalization, criterion.direction, warnings
        )

        if (
            criterion.veto_threshold is not None
            and CriterionFlag.VETO not in flags
            and normalized <= criterion.veto_threshold
        ):
            flags.append(CriterionFlag.VETO)
            warnings.append(
                f"VETO applied on '{criterion.id}' (normalized {normalized:.2f} "
                f"<= threshold {criterion.veto_threshold})"
            )
        if CriterionFlag.VETO in flags:
            veto_criteria.append(criterion.id)

        final_weight = criterion.weight / total_weight if total_weight > 0 else 0.0
        contribution = normalized * final_weight
        base_score += contribution

        breakdown.append(CriterionContribution(
            criterion_id=criterion.id,
            label=criterion.label,
            raw_value=raw,
            normalized_value=round(normalized, 4),
            final_weight=round(final_weight, 6),
            contribution=round(contribution, 6),
            flags=flags,
        ))

    base_score = clamp(base_score)
    vetoed = bool(veto_criteria)

    contextual_scores: dict[str, float] = {}
    best_context: Optional[str] = None
    synergy_bonus = 0.0

    if vetoed:
        final = clamp(base_score * veto_penalty)
    elif contexts:
        for profile in contexts:
            contextual_scores[profile.id] = round(
                contextual_score(breakdown, profile, compression), 4
            )
        best_context = max(contextual_scores, key=contextual_scores.get)
        synergy_bonus = synergy(contextual_scores)
        final = clamp(
            hybrid_alpha * base_score
            + (1 - hybrid_alpha) * contextual_scores[best_context]
            + synergy_bonus
        )
    else:
        final = base_score

    return HmumResult(
        category_id=category_id or product.category_id,
        product_id=product.id,
        score=round(final, 1),
        raw_score=final,
        base_score=base_score,
        contextual_scores=contextual_scores,
        best_context=best_context,
        synergy_bonus=synergy_bonus,
        vetoed=vetoed,
        veto_criteria=veto_criteria,
        breakdown=breakdown,
        warnings=warnings,
    )


def rank_results(results: Sequence[HmumResult]) -> list[HmumResult]:
    """Sort results by score, best first."""
    return sorted(results, key=lambda r: r.raw_score, reverse=True)


class HmumAggregator:
    """Scores products of a catalog category with the HMUM model.

    Configuration:
    - Veto penalty, compression and union settings come from the ``hmum``
      section of scorer-config.yaml
    - Categories may override ``veto_penalty`` and ``hybrid_alpha``
    """

    def __init__(
        self,
        repository: CatalogRepository,
        config: Optional[ScorerConfig] = None,
        synergy: SynergyFunction = no_synergy,
    ):
        self.repository = repository
        self.config: HmumConfig = (config or get_config()).hmum
        self.synergy = synergy

    def resolve_contexts(
        self,
        category: CategoryConfig,
        context_ids: Optional[Sequence[str]] = None,
    ) -> tuple[list[ContextProfile], list[str]]:
        """Turn selected context ids into the profiles to score.

        Returns:
            (profiles, warnings). Without a selection every category context
            is returned; a selection is merged into one union profile.
        """
        if not context_ids:
            return list(category.contexts), []

        warnings: list[str] = []
        selected: list[ContextProfile] = []
        for context_id in context_ids:
            profile = category.get_context(context_id)
            if profile is None:
                warnings.append(f"Unknown context '{context_id}' for category {category.id}")
            else:
                selected.append(profile)

        if not selected:
            return list(category.contexts), warnings

        return [combine_context_profiles(
            selected,
            importance_threshold=self.config.importance_threshold,
            union_multiplier=self.config.union_synergy_multiplier,
            max_multiplier=self.config.max_weight_multiplier,
        )], warnings

    def aggregate(
        self,
        category_id: str,
        product: ProductRecord,
        contexts: Optional[Sequence[str]] = None,
    ) -> Optional[HmumResult]:
        """Score a product within a category.

        Args:
            category_id: Category id or alias.
            product: Product record.
            contexts: Optional context ids selected by the user.

        Returns:
            HmumResult, or None when the category is not supported.
        """
        category = self.repository.get_category(category_id)
        if category is None:
            logger.info("Unsupported category %s for product %s", category_id, product.id)
            return None

        profiles, context_warnings = self.resolve_contexts(category, contexts)
        veto_penalty = (
            category.veto_penalty
            if category.veto_penalty is not None
            else self.config.default_veto_penalty
        )

        result = aggregate_criteria(
            category.criteria,
            product,
            category_id=category.id,
            contexts=profiles,
            hybrid_alpha=category.hybrid_alpha,
            veto_penalty=veto_penalty,
            synergy=self.synergy,
            compression=self.config.contextual_compression,
        )
        if context_warnings:
            result.warnings.extend(context_warnings)

        if result.vetoed:
            logger.debug(
                "Product %s vetoed on %s", product.id, ", ".join(result.veto_criteria)
            )
        return result

    def aggregate_product(
        self,
        product_id: str,
        contexts: Optional[Sequence[str]] = None,
    ) -> Optional[HmumResult]:
        """Score a catalog product by id."""
        product = self.repository.get_product(product_id)
        if product is None:
            logger.info("Unknown product %s", product_id)
            return None
        return self.aggregate(product.category_id, product, contexts)
