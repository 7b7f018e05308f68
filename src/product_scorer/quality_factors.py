"""Quality factors (πMarca, πTech) for lifespan estimates.

Two products with the same components can still age differently: brand
manufacturing quality and display/compressor technology scale the
characteristic life of every component.
"""

import logging
from typing import Optional

from product_catalog import CatalogRepository
from product_catalog.schema import (
    BRAND_QUALITY_FACTORS,
    COMPRESSOR_TECH_FACTORS,
    DISPLAY_TECH_FACTORS,
    ProductQualityFactors,
)

from .schema import QualityFactorsResult

logger = logging.getLogger(__name__)

NEUTRAL_FACTOR = 1.0


def _tech_factor(factors: ProductQualityFactors) -> tuple[float, Optional[str]]:
    """Return (factor, technology name) for the declared technology."""
    if factors.display_technology is not None:
        return (
            DISPLAY_TECH_FACTORS.get(factors.display_technology, NEUTRAL_FACTOR),
            factors.display_technology.value,
        )
    if factors.compressor_technology is not None:
        return (
            COMPRESSOR_TECH_FACTORS.get(factors.compressor_technology, NEUTRAL_FACTOR),
            factors.compressor_technology.value,
        )
    return NEUTRAL_FACTOR, None


def quality_warnings(
    combined: float,
    low: float = 0.8,
    high: float = 1.1,
) -> list[str]:
    """Warnings for unusually weak or strong build quality."""
    if combined < low:
        return [
            f"Fatores de qualidade reduzem a vida útil em {round((1 - combined) * 100)}%"
        ]
    if combined > high:
        return [
            f"Construção premium: vida útil {round((combined - 1) * 100)}% acima da média"
        ]
    return []


def resolve_quality_factors(
    product_id: str,
    repository: CatalogRepository,
    category_id: Optional[str] = None,
) -> QualityFactorsResult:
    """Resolve brand and technology multipliers for a product.

    Resolution order:
    1. Explicit per-product factors (overrides win over tier tables)
    2. Brand tier looked up from the product's brand within its category
    3. Neutral 1.0 with a warning

    Args:
        product_id: Product slug.
        repository: Catalog data.
        category_id: Category for the brand-tier lookup (defaults to the
            product record's).

    Returns:
        QualityFactorsResult with ``combined = brand_factor * tech_factor``.
    """
    explicit = repository.get_quality_factors(product_id)
    if explicit is not None:
        brand_factor = (
            explicit.brand_factor_override
            if explicit.brand_factor_override is not None
            else BRAND_QUALITY_FACTORS[explicit.brand_tier]
        )
        tech_factor, technology = _tech_factor(explicit)
        if explicit.tech_factor_override is not None:
            tech_factor = explicit.tech_factor_override
        return QualityFactorsResult(
            brand_factor=brand_factor,
            tech_factor=tech_factor,
            combined=round(brand_factor * tech_factor, 4),
            brand_tier=explicit.brand_tier,
            technology=technology,
            source="explicit",
        )

    product = repository.get_product(product_id)
    category = category_id or (product.category_id if product else None)
    brand = product.brand if product else None

    tier = repository.get_brand_tier(category, brand) if category else None
    if tier is not None:
        brand_factor = BRAND_QUALITY_FACTORS[tier]
        return QualityFactorsResult(
            brand_factor=brand_factor,
            tech_factor=NEUTRAL_FACTOR,
            combined=brand_factor,
            brand_tier=tier,
            source="brand_tier",
        )

    logger.debug("No quality factors for %s (brand %s)", product_id, brand)
    return QualityFactorsResult(
        source="neutral",
        warnings=[
            f"Marca '{brand or 'desconhecida'}' sem tier cadastrado; fator de qualidade neutro (1.0)"
        ],
    )


def calculate_adjusted_vue(
    base_vue: float,
    factors: QualityFactorsResult,
    environment_factor: float = 1.0,
) -> float:
    """Adjusted useful life: base * brand * tech / environment, two decimals."""
    if environment_factor <= 0:
        raise ValueError("environment_factor must be positive")
    return round(base_vue * factors.brand_factor * factors.tech_factor / environment_factor, 2)
