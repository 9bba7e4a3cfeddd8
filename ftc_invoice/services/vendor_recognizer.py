"""
Vendor and header metadata recognition for OCR'd invoice text.

Every function here is total: a missing or unreadable field degrades to its
documented default ("Unknown Vendor", "N/A", today's date, 0.0).
"""

import re
from datetime import date
from loguru import logger
from ..models.invoice import InvoiceMetadata

UNKNOWN_VENDOR = "Unknown Vendor"
UNKNOWN_INVOICE_NUMBER = "N/A"

# Vendor key -> lower-case name fragments. Order is the tie-break.
VENDOR_PATTERNS: dict[str, list[str]] = {
    "gobilda": ["gobilda", "go-bilda", "gb"],
    "rev": ["rev robotics", "revrobotics", "rev", "first choice"],
    "andymark": ["andymark", "andy mark", "am"],
    "vex": ["vexrobotics", "vex robotics", "vex"],
    "wcp": ["west coast products", "wcp"],
}

VENDOR_LABEL_PATTERN = re.compile(r"(?:from|bill from|vendor)[\s:]*([^\n\r]{1,50})", re.IGNORECASE)

INVOICE_NUMBER_PATTERNS = [
    re.compile(r"invoice\s*#?:?\s*([a-z0-9-]+)", re.IGNORECASE),
    re.compile(r"inv\s*#?:?\s*([a-z0-9-]+)", re.IGNORECASE),
    re.compile(r"order\s*#?:?\s*([a-z0-9-]+)", re.IGNORECASE),
]

DATE_PATTERNS = [
    re.compile(r"\b(\d{1,2}/\d{1,2}/\d{2,4})\b"),
    re.compile(r"\b(\d{4}-\d{2}-\d{2})\b"),
    re.compile(r"\b(\w{3,9}\s+\d{1,2},?\s+\d{4})\b"),
]

TOTAL_PATTERNS = [
    re.compile(r"total[\s:]*\$?(\d+\.?\d*)", re.IGNORECASE),
    re.compile(r"amount due[\s:]*\$?(\d+\.?\d*)", re.IGNORECASE),
    re.compile(r"grand total[\s:]*\$?(\d+\.?\d*)", re.IGNORECASE),
]


def _first_capture(patterns: list[re.Pattern], text: str) -> str | None:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def detect_vendor(text: str) -> str:
    lower_text = text.lower()

    for vendor, fragments in VENDOR_PATTERNS.items():
        if any(fragment in lower_text for fragment in fragments):
            return vendor[0].upper() + vendor[1:]

    # Fall back to a "From:" / "Vendor:" style header
    match = VENDOR_LABEL_PATTERN.search(text)
    if match and match.group(1).strip():
        return match.group(1).strip()

    return UNKNOWN_VENDOR


def extract_invoice_number(text: str) -> str:
    return _first_capture(INVOICE_NUMBER_PATTERNS, text) or UNKNOWN_INVOICE_NUMBER


def extract_date(text: str) -> str:
    return _first_capture(DATE_PATTERNS, text) or date.today().isoformat()


def extract_total_amount(text: str) -> float:
    raw = _first_capture(TOTAL_PATTERNS, text)
    if raw is None:
        return 0.0
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Could not parse invoice total: {raw}")
        return 0.0


def recognize_metadata(text: str) -> InvoiceMetadata:
    metadata = InvoiceMetadata(
        vendor=detect_vendor(text),
        invoice_number=extract_invoice_number(text),
        date=extract_date(text),
        total_amount=extract_total_amount(text),
    )
    logger.debug(
        "Recognized invoice metadata",
        vendor=metadata.vendor,
        invoice_number=metadata.invoice_number,
        total_amount=metadata.total_amount
    )
    return metadata
