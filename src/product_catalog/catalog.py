"""Catalog consistency checks that do not block loading."""

from .categories import canonical_category_id
from .schema import CategoryConfig, NormalizationType, ProductCatalog


class CatalogValidator:
    """Validates catalog cross-references and reports issues."""

    def validate(self, catalog: ProductCatalog) -> list[str]:
        """Validate the catalog and return a list of issues."""
        issues = []

        category_ids = {canonical_category_id(c.id) for c in catalog.categories}
        component_ids = {c.id for c in catalog.components}
        product_ids = {p.id for p in catalog.products}

        for category in catalog.categories:
            issues.extend(self._validate_category(category))

        for mapping in catalog.mappings:
            prefix = f"[mapping {mapping.product_id}]"
            if not mapping.components:
                issues.append(f"{prefix} No components mapped")
            for instance in mapping.components:
                if instance.component_id not in component_ids:
                    issues.append(f"{prefix} Unknown component: {instance.component_id}")
            if product_ids and mapping.product_id not in product_ids:
                issues.append(f"{prefix} No product record with this id")

        for factors in catalog.quality_factors:
            if factors.display_technology and factors.compressor_technology:
                issues.append(
                    f"[quality {factors.product_id}] Both display and compressor "
                    f"technology set; display technology wins"
                )

        for product in catalog.products:
            if canonical_category_id(product.category_id) not in category_ids:
                issues.append(
                    f"[product {product.id}] Unsupported category: {product.category_id}"
                )
            if product.price is None:
                issues.append(f"[product {product.id}] Missing price")

        return issues

    def _validate_category(self, category: CategoryConfig) -> list[str]:
        """Validate a single category."""
        issues = []
        prefix = f"[{category.id}]"

        if not category.criteria:
            issues.append(f"{prefix} No criteria defined")

        criterion_ids = [c.id for c in category.criteria + category.extended_criteria]
        duplicates = sorted(set(i for i in criterion_ids if criterion_ids.count(i) > 1))
        if duplicates:
            issues.append(f"{prefix} Duplicate criterion ids: {duplicates}")

        for criterion in category.criteria + category.extended_criteria:
            if not criterion.label:
                issues.append(f"{prefix} Criterion {criterion.id} has no label")
            norm = criterion.normalization
            if norm.type == NormalizationType.MAPPING and not norm.mapping:
                issues.append(f"{prefix} Criterion {criterion.id} has an empty mapping table")

        known = set(criterion_ids)
        for context in category.contexts:
            unknown = sorted(set(context.weight_multipliers) - known)
            if unknown:
                issues.append(
                    f"{prefix} Context {context.id} references unknown criteria: {unknown}"
                )

        if category.lifespan_band is None:
            issues.append(f"{prefix} No lifespan band configured")

        if not any(w > 0 for w in category.metacategory_weights.values()):
            issues.append(f"{prefix} All metacategory weights are zero")

        return issues
