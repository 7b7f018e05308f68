"""Main Scoring Engine - Orchestrates all phases.

This is the primary entry point for scoring a catalog product.
It wires together the HMUM aggregator, the semantic adapter, the component
intelligence engine, the TCO calculator and the explainer.
"""

import logging
from pathlib import Path
from typing import Any, Optional, Sequence, Union

import yaml

from product_catalog import CatalogRepository, CatalogValidator
from product_catalog.repository import CatalogValidationError, load_catalog_document
from product_catalog.schema import ProductRecord

from .config import ScorerConfig, get_config
from .explainer import ScoreExplainer
from .hmum import HmumAggregator, SynergyFunction, no_synergy, rank_results
from .schema import HmumResult, ProductReport, TcoBreakdown, UserEnvironment
from .semantic_adapter import SemanticAdapter
from .sic import ComponentIntelligenceEngine
from .tco import product_tco

logger = logging.getLogger(__name__)


class ScoringEngine:
    """Main scoring engine that orchestrates all phases.

    Usage:
        engine = ScoringEngine()
        report = engine.score_product("samsung-qn90c-65")
    """

    def __init__(
        self,
        repository: Optional[CatalogRepository] = None,
        config: Optional[ScorerConfig] = None,
        synergy: SynergyFunction = no_synergy,
    ):
        """Initialize the scoring engine.

        Args:
            repository: Catalog data. Loaded from ``config.catalog`` (or the
                bundled data) when omitted.
            config: Scorer configuration (process default when omitted).
            synergy: Bonus function for the hybrid HMUM blend.
        """
        self.config = config or get_config()
        if repository is None:
            repository = CatalogRepository.from_path(
                self.config.catalog.path,
                weight_policy=self.config.catalog.weight_policy,
                weight_tolerance=self.config.catalog.weight_tolerance,
            )
        self.repository = repository

        self.hmum = HmumAggregator(repository, self.config, synergy=synergy)
        self.semantic = SemanticAdapter(repository, self.config)
        self.sic = ComponentIntelligenceEngine(repository, self.config)
        self.explainer = ScoreExplainer(self.config)

    @classmethod
    def from_catalog(
        cls,
        path: Optional[Union[str, Path]] = None,
        config: Optional[ScorerConfig] = None,
    ) -> "ScoringEngine":
        """Create an engine over a catalog file or directory."""
        cfg = config or get_config()
        repository = CatalogRepository.from_path(
            path if path is not None else cfg.catalog.path,
            weight_policy=cfg.catalog.weight_policy,
            weight_tolerance=cfg.catalog.weight_tolerance,
        )
        return cls(repository, cfg)

    def get_product(self, product_id: str) -> ProductRecord:
        product = self.repository.get_product(product_id)
        if product is None:
            raise ValueError(f"Unknown product: {product_id}")
        return product

    def score_product(
        self,
        product_id: str,
        contexts: Optional[Sequence[str]] = None,
        environment: Optional[UserEnvironment] = None,
        energy_rate: Optional[float] = None,
    ) -> ProductReport:
        """Score a single product through every phase.

        Args:
            product_id: Product slug.
            contexts: Optional use-case context ids for the hybrid blend.
            environment: Usage environment for the lifespan estimate.
            energy_rate: Tariff override in BRL/kWh.

        Returns:
            ProductReport. Phases that do not apply are left as None.

        Raises:
            ValueError: if the product is not in the catalog.
        """
        product = self.get_product(product_id)
        category = self.repository.get_category(product.category_id)
        warnings: list[str] = []

        # Phase 1-2: HMUM
        hmum = self.hmum.aggregate(product.category_id, product, contexts)
        if hmum is None:
            warnings.append(f"Categoria não suportada: {product.category_id}")

        # Semantic view
        semantic = self.semantic.process(product)

        # Phase 3: Component intelligence
        sic = self.sic.calculate(product_id, environment)
        if sic is None:
            warnings.append("Produto sem mapeamento de componentes; vida útil não estimada")

        # Phase 4: TCO over the estimated lifespan
        tco = product_tco(
            product,
            lifespan_years=sic.estimated_lifespan_years if sic else None,
            repairability_score=sic.repairability_index.score if sic else None,
            energy_rate=energy_rate,
            config=self.config,
        )
        if tco is None:
            warnings.append("Produto sem preço; TCO não calculado")

        # Phase 5: Explanation
        explanation = self.explainer.explain(hmum, sic, category, environment)

        logger.debug(
            "Scored %s: hmum=%s lifespan=%s",
            product_id,
            hmum.score if hmum else None,
            sic.estimated_lifespan_years if sic else None,
        )

        return ProductReport(
            product_id=product.id,
            product_name=product.name,
            category_id=category.id if category else product.category_id,
            hmum=hmum,
            semantic=semantic,
            sic=sic,
            tco=tco,
            explanation=explanation,
            warnings=warnings,
        )

    def rank_category(
        self,
        category_id: str,
        contexts: Optional[Sequence[str]] = None,
    ) -> list[HmumResult]:
        """HMUM results for every product of a category, best first."""
        results = []
        for product in self.repository.list_products(category_id):
            result = self.hmum.aggregate(product.category_id, product, contexts)
            if result is not None:
                results.append(result)
        return rank_results(results)

    def product_tco(
        self,
        product_id: str,
        lifespan_years: Optional[float] = None,
        energy_rate: Optional[float] = None,
    ) -> Optional[TcoBreakdown]:
        """TCO of a catalog product, over its estimated lifespan by default."""
        product = self.get_product(product_id)
        repairability = None
        if lifespan_years is None:
            sic = self.sic.calculate(product_id)
            if sic is not None:
                lifespan_years = sic.estimated_lifespan_years
                repairability = sic.repairability_index.score
        return product_tco(
            product,
            lifespan_years=lifespan_years,
            repairability_score=repairability,
            energy_rate=energy_rate,
            config=self.config,
        )

    def agent_payload(self, product_id: str) -> dict[str, Any]:
        """Compact JSON-ready summary for third-party agents."""
        report = self.score_product(product_id)
        product = self.get_product(product_id)
        score = report.hmum.score if report.hmum else None

        return {
            "id": product.id,
            "name": product.name,
            "brand": product.brand,
            "category": report.category_id,
            "specs": product.specs,
            "scores": {
                "hmum_score": score,
                "nota_auditoria": score,
                "semantic_score": report.semantic.final_score if report.semantic else None,
                "detail_scores": product.scores,
                "verdict": report.explanation.verdict if report.explanation else None,
            },
            "durability": {
                "estimated_lifespan_years": (
                    report.sic.estimated_lifespan_years if report.sic else None
                ),
                "repairability_index": (
                    report.sic.repairability_index.score if report.sic else None
                ),
            },
            "tco": report.tco.model_dump() if report.tco else None,
        }


def validate_catalog(
    path: Optional[Union[str, Path]] = None,
    config: Optional[ScorerConfig] = None,
) -> tuple[bool, list[str]]:
    """Validate a catalog file or directory.

    Load-time errors (unreadable or malformed files, unknown field paths,
    weight drift, duplicate ids) are returned as issues instead of raised.
    Weight sums are checked with the configured policy and tolerance, so a
    catalog the engine accepts is also reported valid here.

    Returns:
        (is_valid, issues)
    """
    cfg = config or get_config()
    try:
        catalog = load_catalog_document(path if path is not None else cfg.catalog.path)
        CatalogRepository(
            catalog,
            weight_policy=cfg.catalog.weight_policy,
            weight_tolerance=cfg.catalog.weight_tolerance,
        )
    except yaml.YAMLError as e:
        return False, [f"Malformed catalog file: {e}"]
    except (CatalogValidationError, ValueError, OSError) as e:
        return False, [str(e)]

    issues = CatalogValidator().validate(catalog)
    return len(issues) == 0, issues
