"""
Unit tests for catalog matching heuristics.

Uses the small fake catalog from conftest so scores are easy to reason about.
"""

import pytest
from ftc_invoice.models.invoice import ParsedInvoiceItem
from ftc_invoice.services.catalog import PartsCatalog
from ftc_invoice.services.part_matcher import (
    MATCH_FLOOR,
    PartMatcher,
    calculate_match_score,
    extract_key_terms,
)


def item(description, sku=None, price=0.0, confidence=0.5):
    return ParsedInvoiceItem(description=description, sku=sku, price=price, confidence=confidence)


class TestExtractKeyTerms:
    def test_drops_short_terms_stop_words_and_duplicates(self):
        assert extract_key_terms("The HD-Hex motor, and the MOTOR") == ["hex", "motor"]

    def test_empty(self):
        assert extract_key_terms("") == []


class TestCalculateMatchScore:
    """Tests for the additive scoring rules"""

    def test_sku_and_vendor(self, fake_catalog):
        family = fake_catalog.get("gb-motor")
        score = calculate_match_score(item("Motor", sku="5203-2402-0014"), family, "Gobilda")
        assert score == pytest.approx(1.0)

    def test_sku_without_vendor(self, fake_catalog):
        family = fake_catalog.get("gb-motor")
        score = calculate_match_score(item("Motor", sku="5203-2402-0014"), family, "Unknown Vendor")
        assert score == pytest.approx(0.6)

    def test_keywords_and_series_number(self, fake_catalog):
        family = fake_catalog.get("gb-motor")
        score = calculate_match_score(item("5203 planetary"), family, "Unknown Vendor")
        assert score == pytest.approx(0.6)

    def test_price_within_tolerance(self, fake_catalog):
        family = fake_catalog.get("rev-hex")
        without_price = calculate_match_score(item("HD Hex Motor"), family, "Unknown Vendor")
        with_price = calculate_match_score(item("HD Hex Motor", price=49.99), family, "Unknown Vendor")
        assert without_price == pytest.approx(0.3)
        assert with_price == pytest.approx(0.4)

    def test_price_outside_tolerance(self, fake_catalog):
        family = fake_catalog.get("rev-hex")
        score = calculate_match_score(item("HD Hex Motor", price=80.0), family, "Unknown Vendor")
        assert score == pytest.approx(0.3)

    def test_score_is_bounded(self, fake_catalog):
        for family in fake_catalog:
            score = calculate_match_score(
                item("GoBILDA 5203 Planetary Gear Motor", sku="5203-2402-0051", price=54.99),
                family,
                "GoBILDA",
            )
            assert 0.0 <= score <= 1.0


class TestPartMatcher:
    """Tests for PartMatcher.match"""

    def test_sku_match_snapshots_variant(self, fake_catalog):
        matcher = PartMatcher(fake_catalog)
        matched = matcher.match(item("GoBILDA Motor", sku="5203-2402-0014"), "Gobilda")
        assert matched.matched_part.id == "gb-motor"
        assert matched.matched_part.sku == "5203-2402-0014"
        assert matched.manufacturer == "GoBILDA"
        assert matched.confidence == pytest.approx(1.0)

    def test_match_without_sku_uses_first_variant(self, fake_catalog):
        matcher = PartMatcher(fake_catalog)
        matched = matcher.match(item("HD Hex Motor", price=49.99), "Unknown Vendor")
        assert matched.matched_part.id == "rev-hex"
        assert matched.matched_part.sku == "REV-41-1300"
        assert matched.manufacturer == "REV"

    def test_score_at_floor_is_not_a_match(self, fake_catalog):
        matcher = PartMatcher(fake_catalog)
        result = matcher.match(item("HD Hex Motor"), "Unknown Vendor")
        assert result.confidence == pytest.approx(MATCH_FLOOR)
        assert result.matched_part is None
        assert result.manufacturer is None

    def test_original_item_is_untouched(self, fake_catalog):
        original = item("GoBILDA Motor", sku="5203-2402-0051", confidence=0.5)
        PartMatcher(fake_catalog).match(original, "Gobilda")
        assert original.confidence == 0.5
        assert original.matched_part is None

    def test_first_family_wins_ties(self, fake_catalog):
        family, score = PartMatcher(fake_catalog).best_match(item("GoBILDA widget"), "Unknown Vendor")
        assert family.id == "gb-motor"
        assert score == pytest.approx(0.15)

    def test_empty_catalog(self):
        result = PartMatcher(PartsCatalog([])).match(item("HD Hex Motor", price=49.99), "REV")
        assert result.confidence == 0.0
        assert result.matched_part is None

    def test_match_all_keeps_order(self, fake_catalog):
        items = [item("U-Channel", sku="2101-0096-0096"), item("HD Hex Motor", sku="REV-41-1300")]
        results = PartMatcher(fake_catalog).match_all(items, "Unknown Vendor")
        assert [r.matched_part.id for r in results] == ["gb-channel", "rev-hex"]
