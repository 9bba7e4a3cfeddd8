"""
Invoice text → structured, catalog-matched invoice.

    text ─► vendor/metadata ─► line items ─► catalog matching ─► confidence

Parsing is a pure function of the text and the (immutable) catalog. Bad or
empty input never raises; it yields a low-confidence result instead.
"""

from loguru import logger
from ..models.invoice import ParsedInvoice
from .catalog import PartsCatalog, get_default_catalog
from .line_extractor import extract_line_items
from .part_matcher import PartMatcher
from .suggestions import calculate_parsing_confidence
from .vendor_recognizer import recognize_metadata


class InvoiceParser:
    def __init__(self, catalog: PartsCatalog):
        self.catalog = catalog
        self.matcher = PartMatcher(catalog)

    def parse(self, text: str) -> ParsedInvoice:
        if not isinstance(text, str):
            raise TypeError(f"Invoice text must be str, got {type(text).__name__}")

        metadata = recognize_metadata(text)
        items = extract_line_items(text, metadata.vendor)
        matched_items = self.matcher.match_all(items, metadata.vendor)
        parsing_confidence = calculate_parsing_confidence(matched_items)

        logger.info(
            "Invoice parsed",
            vendor=metadata.vendor,
            invoice_number=metadata.invoice_number,
            text_chars=len(text),
            items=len(matched_items),
            matched=sum(1 for item in matched_items if item.matched_part),
            parsing_confidence=round(parsing_confidence, 3)
        )

        return ParsedInvoice(
            vendor=metadata.vendor,
            invoice_number=metadata.invoice_number,
            date=metadata.date,
            total_amount=metadata.total_amount,
            items=matched_items,
            parsing_confidence=parsing_confidence,
        )


def parse_invoice_text(text: str, catalog: PartsCatalog | None = None) -> ParsedInvoice:
    """Parse invoice text against the given catalog (default: the packaged one)"""
    if catalog is None:
        catalog = get_default_catalog()
    return InvoiceParser(catalog).parse(text)
