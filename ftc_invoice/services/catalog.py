"""
Read-only parts catalog used for invoice line matching.

The catalog is built once from a JSON document (the packaged GoBILDA/REV
library by default) and never mutated afterwards, so a single instance can be
shared by every parse call and every request thread.
"""

from functools import lru_cache
from pathlib import Path
from typing import Iterable, Iterator
from loguru import logger
from pydantic import ValidationError
from ..models.catalog import CatalogFile, PartFamily, PartVariant

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "parts_catalog.json"


class CatalogError(ValueError):
    """Raised when a catalog document cannot be loaded"""


class PartsCatalog:
    def __init__(self, families: Iterable[PartFamily]):
        self._families: tuple[PartFamily, ...] = tuple(families)
        self._by_id: dict[str, PartFamily] = {}
        self._by_sku: dict[str, tuple[PartFamily, PartVariant]] = {}

        for family in self._families:
            if family.id in self._by_id:
                raise CatalogError(f"Duplicate part family id: {family.id}")
            self._by_id[family.id] = family
            for variant in family.variants:
                if variant.sku in self._by_sku:
                    raise CatalogError(f"Duplicate SKU {variant.sku} in family {family.id}")
                self._by_sku[variant.sku] = (family, variant)

    @property
    def families(self) -> tuple[PartFamily, ...]:
        return self._families

    def __iter__(self) -> Iterator[PartFamily]:
        return iter(self._families)

    def __len__(self) -> int:
        return len(self._families)

    @property
    def variant_count(self) -> int:
        return len(self._by_sku)

    def get(self, part_id: str) -> PartFamily | None:
        return self._by_id.get(part_id)

    def find_by_sku(self, sku: str) -> tuple[PartFamily, PartVariant] | None:
        return self._by_sku.get(sku)

    def manufacturers(self) -> list[str]:
        return sorted({family.manufacturer for family in self._families})

    def categories(self) -> list[str]:
        return sorted({family.category for family in self._families})

    def search(
        self,
        query: str | None = None,
        manufacturer: str | None = None,
        category: str | None = None,
    ) -> list[PartFamily]:
        """
        Case-insensitive substring search over name, series, description and SKUs.

        Filters are exact (case-insensitive) matches. Results keep catalog order.
        """
        needle = (query or "").strip().lower()
        results = []
        for family in self._families:
            if manufacturer and family.manufacturer.lower() != manufacturer.lower():
                continue
            if category and family.category.lower() != category.lower():
                continue
            if needle:
                haystack = [family.name, family.series, family.description]
                haystack.extend(v.sku for v in family.variants)
                if not any(needle in field.lower() for field in haystack):
                    continue
            results.append(family)
        return results


def load_catalog(path: str | Path) -> PartsCatalog:
    """Load and validate a catalog JSON document"""
    path = Path(path)
    if not path.exists():
        raise CatalogError(f"Parts catalog not found: {path}")

    try:
        document = CatalogFile.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as e:
        raise CatalogError(f"Invalid parts catalog {path}: {e.error_count()} validation error(s)") from e

    catalog = PartsCatalog(document.families)
    logger.info(
        "Loaded parts catalog",
        path=str(path),
        families=len(catalog),
        variants=catalog.variant_count
    )
    return catalog


@lru_cache
def get_default_catalog() -> PartsCatalog:
    """Process-wide catalog, loaded on first use"""
    from ..core.config import settings

    return load_catalog(settings.parts_catalog_path or DEFAULT_CATALOG_PATH)
