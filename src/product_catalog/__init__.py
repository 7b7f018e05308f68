"""Static product, category and component data for the scoring core."""

from product_catalog.accessors import FieldPath, UnknownFieldPathError
from product_catalog.catalog import CatalogValidator
from product_catalog.categories import canonical_category_id
from product_catalog.repository import (
    DEFAULT_DATA_DIR,
    CatalogRepository,
    CatalogValidationError,
    WeightPolicy,
    load_catalog_document,
)

__all__ = [
    "FieldPath",
    "UnknownFieldPathError",
    "CatalogValidator",
    "canonical_category_id",
    "DEFAULT_DATA_DIR",
    "CatalogRepository",
    "CatalogValidationError",
    "WeightPolicy",
    "load_catalog_document",
]
