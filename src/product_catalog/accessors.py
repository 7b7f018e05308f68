"""Typed field paths into product records.

Criteria reference product data with dotted paths such as ``scores.c3`` or
``specs.panel.peak_brightness_nits``. Paths are parsed once, when a catalog
is loaded, so a typo in a category file fails at load time instead of
quietly producing missing values at scoring time.
"""

from dataclasses import dataclass
from typing import Any

from .schema import ProductRecord


class UnknownFieldPathError(ValueError):
    """Raised when a field path does not start at a known product field."""


# Root fields that hold nested mappings
MAPPING_ROOTS = frozenset(["scores", "specs", "attributes"])

# Root fields that are scalar values on the record
SCALAR_ROOTS = frozenset(["price", "brand", "energy_kwh_month", "name"])


@dataclass(frozen=True)
class FieldPath:
    """A validated path into a ``ProductRecord``."""
    root: str
    keys: tuple[str, ...] = ()

    @classmethod
    def parse(cls, path: str) -> "FieldPath":
        """Parse a dotted path, rejecting unknown roots and empty segments."""
        if not path or not path.strip():
            raise UnknownFieldPathError("Empty field path")

        parts = path.strip().split(".")
        if any(not part for part in parts):
            raise UnknownFieldPathError(f"Malformed field path: {path!r}")

        root, keys = parts[0], tuple(parts[1:])
        if root in MAPPING_ROOTS:
            if not keys:
                raise UnknownFieldPathError(
                    f"Field path {path!r} must name a key inside '{root}'"
                )
        elif root in SCALAR_ROOTS:
            if keys:
                raise UnknownFieldPathError(
                    f"Field path {path!r} descends into scalar field '{root}'"
                )
        else:
            known = ", ".join(sorted(MAPPING_ROOTS | SCALAR_ROOTS))
            raise UnknownFieldPathError(
                f"Unknown field path root {root!r} in {path!r} (expected one of: {known})"
            )
        return cls(root=root, keys=keys)

    def resolve(self, product: ProductRecord) -> Any:
        """Return the value at this path, or None when any segment is absent."""
        value: Any = getattr(product, self.root)
        for key in self.keys:
            if not isinstance(value, dict):
                return None
            value = value.get(key)
            if value is None:
                return None
        return value

    def __str__(self) -> str:
        return ".".join((self.root,) + self.keys)
