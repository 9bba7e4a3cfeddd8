"""
Heuristic matching of invoice lines against the parts catalog.

Every family in the catalog is scored independently:

    +0.4  family manufacturer equals the recognized vendor (case-insensitive)
    +0.6  item SKU equals one of the family's variant SKUs (stops scoring)
    +0.3  x fraction of item key terms found in family name + series
    +0.3  a 4-digit series number in the description appears in the family name
    +0.1  item price within 20% of the family's first variant price

Scores are capped at 1.0. The strictly highest score wins (catalog order breaks
ties) and is attached as a match only when it clears MATCH_FLOOR.
"""

import re
from loguru import logger
from ..models.catalog import PartFamily
from ..models.invoice import MatchedPart, ParsedInvoiceItem
from .catalog import PartsCatalog

VENDOR_WEIGHT = 0.4
SKU_WEIGHT = 0.6
KEYWORD_WEIGHT = 0.3
SERIES_WEIGHT = 0.3
PRICE_WEIGHT = 0.1
PRICE_TOLERANCE = 0.2
MATCH_FLOOR = 0.3

STOP_WORDS = {"the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by"}

TERM_SPLIT_PATTERN = re.compile(r"[\s\-_]+")
NON_WORD_PATTERN = re.compile(r"[^\w]")
SERIES_NUMBER_PATTERN = re.compile(r"\b(\d{4})\b")


def extract_key_terms(text: str) -> list[str]:
    """Lower-cased alphanumeric terms of 3+ characters, stop words removed, first occurrence order"""
    terms = []
    for raw in TERM_SPLIT_PATTERN.split(text.lower()):
        term = NON_WORD_PATTERN.sub("", raw)
        if len(term) > 2 and term not in STOP_WORDS and term not in terms:
            terms.append(term)
    return terms


def calculate_match_score(item: ParsedInvoiceItem, family: PartFamily, vendor: str) -> float:
    score = 0.0

    if family.manufacturer.lower() == vendor.lower():
        score += VENDOR_WEIGHT

    if item.sku and family.find_variant(item.sku):
        score += SKU_WEIGHT
        return min(score, 1.0)

    item_description = item.description.lower()
    family_name = family.name.lower()

    item_terms = extract_key_terms(item_description)
    family_terms = set(extract_key_terms(f"{family_name} {family.series.lower()}"))
    overlap = sum(1 for term in item_terms if term in family_terms)
    score += overlap / max(len(item_terms), 1) * KEYWORD_WEIGHT

    series_match = SERIES_NUMBER_PATTERN.search(item_description)
    if series_match and series_match.group(1) in family_name:
        score += SERIES_WEIGHT

    reference_price = family.variants[0].price
    if item.price > 0 and reference_price > 0:
        if abs(item.price - reference_price) / reference_price < PRICE_TOLERANCE:
            score += PRICE_WEIGHT

    return min(score, 1.0)


def snapshot_match(item: ParsedInvoiceItem, family: PartFamily) -> MatchedPart:
    """Copy the matched family's identifying fields into the result"""
    variant = family.find_variant(item.sku) if item.sku else None
    if variant is None:
        variant = family.variants[0]
    return MatchedPart(
        id=family.id,
        name=family.name,
        sku=variant.sku,
        manufacturer=family.manufacturer,
        category=family.category,
        series=family.series,
    )


class PartMatcher:
    def __init__(self, catalog: PartsCatalog):
        self.catalog = catalog

    def best_match(self, item: ParsedInvoiceItem, vendor: str) -> tuple[PartFamily | None, float]:
        best_family = None
        best_score = 0.0
        for family in self.catalog:
            score = calculate_match_score(item, family, vendor)
            if score > best_score:
                best_family, best_score = family, score
        return best_family, best_score

    def match(self, item: ParsedInvoiceItem, vendor: str) -> ParsedInvoiceItem:
        """
        Return a copy of item carrying its match confidence.

        The confidence is always the best score found. matched_part and the
        manufacturer are only set when that score clears MATCH_FLOOR.
        """
        family, score = self.best_match(item, vendor)
        update = {"confidence": score}

        if family is not None and score > MATCH_FLOOR:
            update["matched_part"] = snapshot_match(item, family)
            update["manufacturer"] = family.manufacturer
            logger.debug(
                "Matched invoice line",
                part_id=family.id,
                sku=item.sku,
                confidence=round(score, 3)
            )
        else:
            logger.debug("No catalog match for invoice line", sku=item.sku, best_score=round(score, 3))

        return item.model_copy(update=update)

    def match_all(self, items: list[ParsedInvoiceItem], vendor: str) -> list[ParsedInvoiceItem]:
        return [self.match(item, vendor) for item in items]
