"""Semantic Adapter - metacategory view of a product.

Groups criteria into Performance, Usability, Construction and Economy,
combines the groups with a weighted harmonic mean (a weak group drags the
total down more than an arithmetic mean would) and surfaces hidden-truth
warnings for criteria that marketing copy tends to hide.
"""

import logging
from typing import Any, Optional, Sequence

from product_catalog import CatalogRepository, FieldPath
from product_catalog.schema import CriterionDefinition, Metacategory, ProductRecord

from .config import ScorerConfig, SemanticConfig, get_config
from .normalizer import clamp, is_missing, normalize_criterion
from .schema import RadarPoint, SemanticCriterion, SemanticResult

logger = logging.getLogger(__name__)


def weighted_harmonic_mean(
    scores: Sequence[float],
    weights: Sequence[float],
    floor: float = 0.1,
) -> float:
    """Weighted harmonic mean rounded to one decimal.

    Entries with non-positive weight are ignored. Scores are floored so a
    zero cannot divide by zero.

    Raises:
        ValueError: if the sequences differ in length.
    """
    if len(scores) != len(weights):
        raise ValueError("scores and weights must have the same length")

    pairs = [(s, w) for s, w in zip(scores, weights) if w > 0]
    if not pairs:
        return 0.0

    total_weight = sum(w for _, w in pairs)
    denominator = sum(w / max(floor, s) for s, w in pairs)
    return round(clamp(total_weight / denominator), 1)


def format_value(raw: Any, unit: Optional[str]) -> str:
    if is_missing(raw):
        return "N/A"
    if isinstance(raw, bool):
        return "Sim" if raw else "Não"
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    return f"{raw} {unit}" if unit else str(raw)


class SemanticAdapter:
    """Builds the radar chart, breakdown and warnings for one product."""

    def __init__(
        self,
        repository: CatalogRepository,
        config: Optional[ScorerConfig] = None,
    ):
        self.repository = repository
        self.config: SemanticConfig = (config or get_config()).semantic

    def _score_criteria(
        self,
        criteria: Sequence[CriterionDefinition],
        product: ProductRecord,
        warnings: list[str],
    ) -> tuple[list[tuple[CriterionDefinition, Any, float]], list[str]]:
        scored = []
        missing = []
        for criterion in criteria:
            raw = FieldPath.parse(criterion.data_field).resolve(product)
            if is_missing(raw):
                missing.append(criterion.id)
                continue
            score = normalize_criterion(
                raw, criterion.normalization, criterion.direction, warnings
            )
            scored.append((criterion, raw, score))
        return scored, missing

    def process(
        self,
        product: ProductRecord,
        category_id: Optional[str] = None,
    ) -> Optional[SemanticResult]:
        """Compute the semantic view of a product.

        Args:
            product: Product record.
            category_id: Category override (defaults to the product's).

        Returns:
            SemanticResult, or None when the category is not supported.
        """
        category = self.repository.get_category(category_id or product.category_id)
        if category is None:
            logger.info(
                "No semantic configuration for category %s",
                category_id or product.category_id,
            )
            return None

        warnings: list[str] = []
        scored, missing = self._score_criteria(
            category.criteria + category.extended_criteria, product, warnings
        )
        if missing:
            warnings.append(f"Missing data for criteria: {', '.join(missing)}")

        # Metacategory averages weighted by criterion weight
        groups: dict[Metacategory, list[tuple[float, float]]] = {}
        for criterion, _, score in scored:
            groups.setdefault(criterion.metacategory, []).append((score, criterion.weight))

        radar: list[RadarPoint] = []
        averages: list[float] = []
        for meta in Metacategory:
            members = groups.get(meta)
            if not members:
                continue
            member_weight = sum(w for _, w in members)
            if member_weight > 0:
                average = sum(s * w for s, w in members) / member_weight
            else:
                average = sum(s for s, _ in members) / len(members)
            averages.append(average)
            radar.append(RadarPoint(
                key=meta,
                label=meta.label,
                score=round(average, 1),
                weight=category.metacategory_weights.get(meta, 0.0),
                color=meta.color,
            ))

        final_score = weighted_harmonic_mean(
            averages,
            [p.weight for p in radar],
            floor=self.config.score_floor,
        )

        for criterion, _, score in scored:
            if criterion.is_hidden_truth and score < self.config.hidden_truth_threshold:
                warnings.append(
                    f"Atenção: {criterion.label} abaixo da média ({score:.1f}/10)"
                )

        breakdown = [
            SemanticCriterion(
                id=criterion.id,
                label=criterion.label,
                metacategory=criterion.metacategory,
                score=round(score, 1),
                raw_value=raw,
                value_display=format_value(raw, criterion.unit),
                is_hidden_truth=criterion.is_hidden_truth,
            )
            for criterion, raw, score in scored
        ]
        breakdown.sort(key=lambda c: c.score, reverse=True)

        return SemanticResult(
            product_id=product.id,
            category_id=category.id,
            radar=radar,
            breakdown=breakdown,
            final_score=final_score,
            missing_criteria=missing,
            warnings=warnings,
        )
