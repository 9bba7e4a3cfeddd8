"""
Tests for the parts catalog: loading, validation and lookups.
"""

import json
import pytest
from pydantic import ValidationError
from ftc_invoice.models.catalog import PartFamily, PartVariant
from ftc_invoice.services.catalog import (
    DEFAULT_CATALOG_PATH,
    CatalogError,
    PartsCatalog,
    get_default_catalog,
    load_catalog,
)
from conftest import make_family


class TestPackagedCatalog:
    """The catalog shipped with the package"""

    def test_loads(self):
        catalog = load_catalog(DEFAULT_CATALOG_PATH)
        assert len(catalog) == 34
        assert catalog.variant_count == 141
        assert catalog.manufacturers() == ["GoBILDA", "REV"]

    def test_default_catalog_is_shared(self):
        assert get_default_catalog() is get_default_catalog()

    def test_sku_lookup(self):
        family, variant = get_default_catalog().find_by_sku("REV-41-1300")
        assert family.id == "rev-hd-hex-series"
        assert variant.price == 49.99

    def test_search_by_text(self):
        results = get_default_catalog().search("mecanum")
        assert [f.id for f in results] == ["gobilda-mecanum-wheels", "rev-mecanum-wheels"]

    def test_search_filters(self):
        results = get_default_catalog().search(manufacturer="rev", category="electronics")
        assert len(results) == 5
        assert all(f.manufacturer == "REV" for f in results)

    def test_every_family_has_variants(self):
        for family in get_default_catalog():
            assert family.variants


class TestPartsCatalog:
    """Tests for PartsCatalog built from in-memory families"""

    def test_lookups(self, fake_catalog):
        assert fake_catalog.get("rev-hex").name == "REV HD Hex Motor"
        assert fake_catalog.get("missing") is None
        assert fake_catalog.find_by_sku("nope") is None
        assert fake_catalog.categories() == ["Motors & Actuators", "Structural"]

    def test_search_matches_sku(self, fake_catalog):
        assert [f.id for f in fake_catalog.search("2101-0096")] == ["gb-channel"]

    def test_search_without_query_returns_everything(self, fake_catalog):
        assert len(fake_catalog.search()) == len(fake_catalog)

    def test_duplicate_id(self):
        family = make_family("dup", "Part", "REV", "S", [("REV-10-0001", 1.0)])
        other = make_family("dup", "Other", "REV", "S", [("REV-10-0002", 1.0)])
        with pytest.raises(CatalogError):
            PartsCatalog([family, other])

    def test_duplicate_sku(self):
        family = make_family("a", "Part", "REV", "S", [("REV-10-0001", 1.0)])
        other = make_family("b", "Other", "REV", "S", [("REV-10-0001", 1.0)])
        with pytest.raises(CatalogError):
            PartsCatalog([family, other])

    def test_family_requires_a_variant(self):
        with pytest.raises(ValidationError):
            PartFamily(id="x", name="X", manufacturer="REV", category="C", series="S", variants=[])

    def test_families_are_immutable(self, fake_catalog):
        with pytest.raises(ValidationError):
            fake_catalog.get("rev-hex").name = "Renamed"
        with pytest.raises(ValidationError):
            PartVariant(sku="A-1", price=1.0).price = 2.0


class TestLoadCatalog:
    """Tests for load_catalog error handling"""

    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogError):
            load_catalog(tmp_path / "absent.json")

    def test_invalid_document(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({"families": [{"id": "x", "name": "X"}]}))
        with pytest.raises(CatalogError):
            load_catalog(path)

    def test_custom_document(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({
            "version": 1,
            "families": [{
                "id": "am-wheel",
                "name": "Stealth Wheel",
                "manufacturer": "Other",
                "category": "Motion",
                "series": "Stealth",
                "variants": [{"sku": "am-2987", "price": 12.0}],
            }],
        }))
        catalog = load_catalog(path)
        assert len(catalog) == 1
        assert catalog.find_by_sku("am-2987")[0].id == "am-wheel"
