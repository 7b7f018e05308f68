"""TCO Calculator - Phase 4 of the Scoring Engine.

Total cost of ownership: purchase price plus discounted multi-year energy
cost plus a flat maintenance reserve.
"""

import math
from typing import Optional, Sequence

from product_catalog import canonical_category_id
from product_catalog.schema import ProductRecord

from .config import ScorerConfig, TcoConfig, get_config
from .schema import TcoBreakdown, TcoComparison

DEFAULT_ENERGY_RATE = 0.85  # BRL/kWh

# Typical monthly consumption (kWh) per category when a product has no
# INMETRO label value. Every caller reads this table.
CATEGORY_ENERGY_DEFAULTS = {
    "tv": 15.0,
    "fridge": 40.0,
    "air_conditioner": 120.0,
    "washer": 12.0,
    "robot_vacuum": 3.0,
    "default": 20.0,
}


def default_energy_kwh_month(category_id: Optional[str]) -> float:
    """Typical monthly consumption for a category (aliases accepted)."""
    if not category_id:
        return CATEGORY_ENERGY_DEFAULTS["default"]
    return CATEGORY_ENERGY_DEFAULTS.get(
        canonical_category_id(category_id), CATEGORY_ENERGY_DEFAULTS["default"]
    )


def energy_present_value(
    energy_kwh_month: float,
    energy_rate: float,
    lifespan_years: float,
    inflation_rate: float = 0.05,
    discount_rate: float = 0.02,
) -> float:
    """Present value of energy spending over the lifespan.

    Each year's cost is inflated and then discounted back. A fractional
    final year contributes its fraction of that year's value.
    """
    annual = energy_kwh_month * 12 * energy_rate
    whole_years = int(math.floor(lifespan_years))
    total = 0.0
    for year in range(1, whole_years + 1):
        total += annual * (1 + inflation_rate) ** year / (1 + discount_rate) ** year

    fraction = lifespan_years - whole_years
    if fraction > 0:
        year = whole_years + 1
        total += fraction * annual * (1 + inflation_rate) ** year / (1 + discount_rate) ** year
    return total


def calculate_tco(
    price: float,
    energy_kwh_month: float,
    energy_rate: float = DEFAULT_ENERGY_RATE,
    lifespan_years: float = 5,
    maintenance_rate: float = 0.02,
    inflation_rate: float = 0.05,
    discount_rate: float = 0.02,
) -> TcoBreakdown:
    """Calculate the total cost of ownership.

    Args:
        price: Purchase price (BRL).
        energy_kwh_month: Monthly consumption in kWh.
        energy_rate: Tariff in BRL/kWh.
        lifespan_years: Ownership horizon.
        maintenance_rate: Annual maintenance reserve as a share of price.
        inflation_rate: Annual energy price inflation.
        discount_rate: Annual discount rate.

    Returns:
        TcoBreakdown with integer-rounded currency values.

    Raises:
        ValueError: on negative amounts or a non-positive lifespan.
    """
    if price < 0:
        raise ValueError(f"price must be >= 0, got {price}")
    if energy_kwh_month < 0:
        raise ValueError(f"energy_kwh_month must be >= 0, got {energy_kwh_month}")
    if energy_rate < 0:
        raise ValueError(f"energy_rate must be >= 0, got {energy_rate}")
    if lifespan_years <= 0:
        raise ValueError(f"lifespan_years must be > 0, got {lifespan_years}")
    if maintenance_rate < 0:
        raise ValueError(f"maintenance_rate must be >= 0, got {maintenance_rate}")
    if discount_rate <= -1 or inflation_rate <= -1:
        raise ValueError("inflation_rate and discount_rate must be > -1")

    energy = energy_present_value(
        energy_kwh_month, energy_rate, lifespan_years, inflation_rate, discount_rate
    )
    maintenance = price * maintenance_rate * lifespan_years
    total = price + energy + maintenance

    return TcoBreakdown(
        acquisition_cost=round(price),
        energy_cost=round(energy),
        maintenance_cost=round(maintenance),
        total_tco=round(total),
        tco_per_year=round(total / lifespan_years),
        tco_per_month=round(total / (lifespan_years * 12)),
        lifespan_years=lifespan_years,
        energy_rate=energy_rate,
    )


def maintenance_rate_from_repairability(score: float) -> float:
    """Annual maintenance rate implied by a 0-10 repairability score.

    Hard-to-repair products cost more to keep running: 2% at a perfect
    score, up to 8% at zero.
    """
    score = max(0.0, min(10.0, score))
    return round(0.02 + (10 - score) * 0.006, 4)


def hidden_cost_percent(tco: TcoBreakdown) -> float:
    """Share of the TCO spent beyond the purchase price, in percent."""
    if tco.total_tco <= 0:
        return 0.0
    return round((tco.total_tco - tco.acquisition_cost) / tco.total_tco * 100, 1)


def compare_tco(
    first: tuple[str, TcoBreakdown],
    second: tuple[str, TcoBreakdown],
) -> TcoComparison:
    """Compare two (product id, TCO) pairs; ties favour the first."""
    (cheap_id, cheap), (dear_id, dear) = sorted(
        [first, second], key=lambda item: item[1].total_tco
    )
    savings = dear.total_tco - cheap.total_tco
    percent = round(savings / dear.total_tco * 100, 1) if dear.total_tco > 0 else 0.0
    return TcoComparison(
        cheaper=cheap_id,
        more_expensive=dear_id,
        savings=savings,
        savings_percent=percent,
    )


def rank_by_tco(items: Sequence[tuple[str, TcoBreakdown]]) -> list[tuple[str, TcoBreakdown]]:
    """Sort (product id, TCO) pairs from cheapest to most expensive."""
    return sorted(items, key=lambda item: item[1].total_tco)


def product_tco(
    product: ProductRecord,
    lifespan_years: Optional[float] = None,
    repairability_score: Optional[float] = None,
    energy_rate: Optional[float] = None,
    config: Optional[ScorerConfig] = None,
) -> Optional[TcoBreakdown]:
    """TCO for a catalog product using category and configured defaults.

    Returns None when the product has no price.
    """
    if product.price is None:
        return None

    cfg: TcoConfig = (config or get_config()).tco
    energy = product.energy_kwh_month
    if energy is None:
        energy = default_energy_kwh_month(product.category_id)

    if repairability_score is not None:
        maintenance_rate = maintenance_rate_from_repairability(repairability_score)
    else:
        maintenance_rate = cfg.maintenance_rate

    return calculate_tco(
        price=product.price,
        energy_kwh_month=energy,
        energy_rate=energy_rate if energy_rate is not None else cfg.energy_rate,
        lifespan_years=lifespan_years or cfg.lifespan_years,
        maintenance_rate=maintenance_rate,
        inflation_rate=cfg.inflation_rate,
        discount_rate=cfg.discount_rate,
    )
