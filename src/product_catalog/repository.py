"""Loading and lookup of static catalog data.

The scoring core never reads files or module-level caches. Callers load a
``CatalogRepository`` once and pass it to each engine explicitly.
"""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from .accessors import FieldPath, UnknownFieldPathError
from .categories import canonical_category_id
from .schema import (
    BrandTier,
    CategoryConfig,
    ComponentDefinition,
    ProductCatalog,
    ProductComponentMapping,
    ProductQualityFactors,
    ProductRecord,
)

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path(__file__).parent / "data"

DEFAULT_WEIGHT_TOLERANCE = 0.001


class CatalogValidationError(Exception):
    """Raised when catalog data violates a load-time invariant."""


class WeightPolicy(str, Enum):
    """What to do when a category's criterion weights do not sum to 1.0."""
    STRICT = "strict"  # Raise CatalogValidationError
    NORMALIZE = "normalize"  # Rescale to 1.0 and log a warning


def _read_document(path: Path) -> Any:
    """Read a YAML or JSON document."""
    with open(path, "r", encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            return json.load(f)
        return yaml.safe_load(f)


def load_catalog_document(path: Optional[Union[str, Path]] = None) -> ProductCatalog:
    """Load a catalog from a single file or from a data directory.

    A data directory holds ``categories/*.yaml`` (one category per file),
    ``components/*.yaml`` (a ``components`` list per file) and the top-level
    documents ``mappings.yaml``, ``quality_factors.yaml`` and
    ``products.yaml``. A single file holds the whole ``ProductCatalog``.

    Args:
        path: File or directory. Defaults to the bundled data set.

    Returns:
        The validated catalog document.
    """
    root = Path(path) if path is not None else DEFAULT_DATA_DIR
    if not root.exists():
        raise FileNotFoundError(f"Catalog not found: {root}")

    if root.is_file():
        return ProductCatalog.model_validate(_read_document(root) or {})

    data: dict[str, Any] = {
        "categories": [],
        "components": [],
        "mappings": [],
        "quality_factors": [],
        "brand_tiers": {},
        "products": [],
    }

    for category_file in sorted((root / "categories").glob("*.yaml")):
        data["categories"].append(_read_document(category_file))

    for component_file in sorted((root / "components").glob("*.yaml")):
        document = _read_document(component_file) or {}
        data["components"].extend(document.get("components", []))

    for name in ("mappings", "quality_factors", "products"):
        doc_path = root / f"{name}.yaml"
        if doc_path.exists():
            document = _read_document(doc_path) or {}
            for key, value in document.items():
                if key == "brand_tiers":
                    data[key].update(value or {})
                else:
                    data.setdefault(key, []).extend(value or [])

    return ProductCatalog.model_validate(data)


def _check_unique(kind: str, ids: list[str]) -> None:
    duplicates = sorted(set(i for i in ids if ids.count(i) > 1))
    if duplicates:
        raise CatalogValidationError(f"Duplicate {kind} ids: {duplicates}")


def _checked_category(
    category: CategoryConfig,
    weight_policy: WeightPolicy,
    weight_tolerance: float,
) -> CategoryConfig:
    """Validate field paths and the weight sum of one category."""
    for criterion in category.criteria + category.extended_criteria:
        try:
            FieldPath.parse(criterion.data_field)
        except UnknownFieldPathError as e:
            raise CatalogValidationError(
                f"[{category.id}] criterion {criterion.id}: {e}"
            ) from e

    if not category.criteria:
        return category

    total = category.total_weight
    if abs(total - 1.0) <= weight_tolerance:
        return category

    if weight_policy == WeightPolicy.STRICT or total <= 0:
        raise CatalogValidationError(
            f"[{category.id}] criterion weights sum to {total:.4f}, expected 1.0 "
            f"(tolerance {weight_tolerance})"
        )

    logger.warning(
        "Category %s weights sum to %.4f; rescaling to 1.0", category.id, total
    )
    criteria = [
        c.model_copy(update={"weight": c.weight / total}) for c in category.criteria
    ]
    return category.model_copy(update={"criteria": criteria})


class CatalogRepository:
    """Read-only access to categories, components, mappings and products."""

    def __init__(
        self,
        catalog: ProductCatalog,
        weight_policy: WeightPolicy = WeightPolicy.STRICT,
        weight_tolerance: float = DEFAULT_WEIGHT_TOLERANCE,
    ):
        _check_unique("category", [c.id for c in catalog.categories])
        _check_unique("component", [c.id for c in catalog.components])
        _check_unique("mapping", [m.product_id for m in catalog.mappings])
        _check_unique("product", [p.id for p in catalog.products])

        categories = [
            _checked_category(c, WeightPolicy(weight_policy), weight_tolerance)
            for c in catalog.categories
        ]
        self.catalog = catalog.model_copy(update={"categories": categories})

        self._categories = {canonical_category_id(c.id): c for c in categories}
        self._components = {c.id: c for c in catalog.components}
        self._mappings = {m.product_id: m for m in catalog.mappings}
        self._quality = {q.product_id: q for q in catalog.quality_factors}
        self._products = {p.id: p for p in catalog.products}
        self._brand_tiers = {
            canonical_category_id(category_id): {
                brand.lower(): tier for brand, tier in brands.items()
            }
            for category_id, brands in catalog.brand_tiers.items()
        }

    @classmethod
    def from_path(
        cls,
        path: Optional[Union[str, Path]] = None,
        weight_policy: WeightPolicy = WeightPolicy.STRICT,
        weight_tolerance: float = DEFAULT_WEIGHT_TOLERANCE,
    ) -> "CatalogRepository":
        """Load and validate a catalog (bundled data when path is None)."""
        catalog = load_catalog_document(path)
        repository = cls(catalog, weight_policy, weight_tolerance)
        logger.debug(
            "Loaded catalog: %d categories, %d components, %d products",
            len(catalog.categories), len(catalog.components), len(catalog.products),
        )
        return repository

    # Categories

    def get_category(self, category_id: str) -> Optional[CategoryConfig]:
        return self._categories.get(canonical_category_id(category_id))

    def list_categories(self) -> list[CategoryConfig]:
        return list(self._categories.values())

    # Components

    def get_component(self, component_id: str) -> Optional[ComponentDefinition]:
        return self._components.get(component_id)

    def list_components(self) -> list[ComponentDefinition]:
        return list(self._components.values())

    def get_mapping(self, product_id: str) -> Optional[ProductComponentMapping]:
        return self._mappings.get(product_id)

    def list_mappings(self) -> list[ProductComponentMapping]:
        return list(self._mappings.values())

    # Quality factors

    def get_quality_factors(self, product_id: str) -> Optional[ProductQualityFactors]:
        return self._quality.get(product_id)

    def get_brand_tier(self, category_id: str, brand: Optional[str]) -> Optional[BrandTier]:
        """Return the tier of a brand within a category, if known."""
        if not brand:
            return None
        tiers = self._brand_tiers.get(canonical_category_id(category_id), {})
        return tiers.get(brand.strip().lower())

    # Products

    def get_product(self, product_id: str) -> Optional[ProductRecord]:
        return self._products.get(product_id)

    def list_products(self, category_id: Optional[str] = None) -> list[ProductRecord]:
        products = list(self._products.values())
        if category_id is None:
            return products
        wanted = canonical_category_id(category_id)
        return [p for p in products if canonical_category_id(p.category_id) == wanted]
