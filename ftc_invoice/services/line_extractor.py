"""
Line item extraction from OCR'd invoice text.

Extraction runs in tiers, each a total function over a single line:

1. Structured: strict positional patterns, first match wins.
2. Flexible: OCR-tolerant variants of the same shapes, only tried on lines the
   structured tier could not read, and only when it produced fewer than
   MIN_STRUCTURED_ITEMS items for the whole document.
3. Aggressive: token-class heuristics over every candidate line. Runs when the
   first two tiers together still produced fewer than MIN_STRUCTURED_ITEMS
   items. Its reading replaces theirs except on lines an itemized pattern
   (explicit quantity and total) already read. Output is capped at
   AGGRESSIVE_MAX_ITEMS.

Header, footer and contact lines are dropped before any tier sees them.
"""

import re
from dataclasses import dataclass
from typing import Callable
from loguru import logger
from ..models.invoice import ParsedInvoiceItem

STRUCTURED_CONFIDENCE = 0.5
FLEXIBLE_CONFIDENCE = 0.6
AGGRESSIVE_CONFIDENCE = 0.4

MIN_STRUCTURED_ITEMS = 2
AGGRESSIVE_MAX_ITEMS = 10
MIN_LINE_LENGTH = 8
MAX_DESCRIPTION_LENGTH = 100

# Aggressive price candidates in this range win over larger/smaller values
PREFERRED_PRICE_RANGE = (5.0, 10000.0)
MAX_INFERRED_QUANTITY = 20

NOISE_KEYWORDS = [
    "invoice", "receipt", "bill to", "ship to", "customer", "address",
    "phone", "email", "fax", "website", "www", "zip", "state",
    "thank you", "page", "continued", "terms", "conditions", "policy",
    "subtotal", "tax", "shipping", "handling", "discount", "total due",
    "grand total", "amount due",
    "payment", "method", "card", "check", "cash", "balance",
    "date", "time", "order", "number", "#",
]

PHONE_PATTERN = re.compile(r"^\d{3}-\d{3}-\d{4}$")
ZIP_PATTERN = re.compile(r"^\d{5}(-\d{4})?$")
DIGITS_ONLY_PATTERN = re.compile(r"^\d+$")
SINGLE_WORD_PATTERN = re.compile(r"^\w+$")
# "Total: $12.00" footers; "Total Motion Servo Kit ..." is an item
TOTAL_LINE_PATTERN = re.compile(r"^(?:grand\s+)?total\b[^a-z]*$", re.IGNORECASE)

# Manufacturer part-number shapes; the first group (if any) is the catalog SKU
SKU_PATTERNS: dict[str, re.Pattern] = {
    "GoBILDA": re.compile(r"^(?:GB-)?(\d{4}-\d{4}-\d{4}|\d{4}-\d{3,4})$", re.IGNORECASE),
    "REV": re.compile(r"^REV-\d{2}-\d{4}$", re.IGNORECASE),
    "AndyMark": re.compile(r"^am-\d{4}[a-z]?$", re.IGNORECASE),
}

TOKEN_PUNCTUATION = ".,;:()[]{}#*'\""

LETTER_WORD_PATTERN = re.compile(r"[a-zA-Z]{3,}")
NUMERIC_TOKEN_PATTERN = re.compile(r"(\$)?\b(\d+(?:\.\d+)?)\b")
NUMERIC_STRIP_PATTERN = re.compile(r"\$?\d+\.?\d*")
NON_WORD_PATTERN = re.compile(r"[^\w\s-]")
WHITESPACE_PATTERN = re.compile(r"\s+")


@dataclass(frozen=True)
class LinePattern:
    """A line shape and the function that maps its match to item fields"""
    name: str
    regex: re.Pattern
    extract: Callable[[re.Match], dict]
    itemized: bool = True  # Line states its own quantity and total


def _sku_first(m: re.Match) -> dict:
    return {"sku": m[1], "description": m[2], "quantity": m[3], "price": m[4], "total": m[5]}


def _desc_qty_price_total(m: re.Match) -> dict:
    return {"description": m[1], "quantity": m[2], "price": m[3], "total": m[4]}


def _qty_first(m: re.Match) -> dict:
    return {"quantity": m[1], "description": m[2], "price": m[3], "total": m[4]}


def _desc_price(m: re.Match) -> dict:
    return {"description": m[1], "quantity": None, "price": m[2], "total": m[2]}


def _sku_desc_price(m: re.Match) -> dict:
    return {"sku": m[1], "description": m[2], "quantity": None, "price": m[3], "total": m[3]}


STRUCTURED_PATTERNS: list[LinePattern] = [
    LinePattern(
        "sku_desc_qty_price_total",
        re.compile(r"^([A-Z0-9-]+)\s+(.+?)\s+(\d+)\s+\$?(\d+\.?\d*)\s+\$?(\d+\.?\d*)$", re.IGNORECASE),
        _sku_first,
    ),
    LinePattern(
        "desc_qty_at_price_total",
        re.compile(r"^(.+?)\s+(\d+)\s+@\s+\$?(\d+\.?\d*)\s+=\s+\$?(\d+\.?\d*)$", re.IGNORECASE),
        _desc_qty_price_total,
    ),
    LinePattern(
        "qty_desc_price_total",
        re.compile(r"^(\d+)\s+(.+?)\s+\$?(\d+\.?\d*)\s+\$?(\d+\.?\d*)$", re.IGNORECASE),
        _qty_first,
    ),
    LinePattern(
        "desc_price",
        re.compile(r"^(.+?)\s+\$?(\d+\.?\d*)$", re.IGNORECASE),
        _desc_price,
        itemized=False,
    ),
]

# Same shapes with room for OCR filler ("x2", "ea", "USD", stray symbols)
FLEXIBLE_PATTERNS: list[LinePattern] = [
    LinePattern(
        "flex_sku_desc_qty_price_total",
        re.compile(
            r"^([A-Z0-9]+(?:-[A-Z0-9]+)+)\W+(.+?)\s+(?:qty[:\s]*|x\s*)?(\d{1,4})(?!\d)"
            r".*?\$?\s*(\d+\.\d{2})(?!\d).*?\$?\s*(\d+\.\d{2})(?!\d)\D*$",
            re.IGNORECASE,
        ),
        _sku_first,
    ),
    LinePattern(
        "flex_desc_qty_price_total",
        re.compile(
            r"^(.+?)\s+(?:qty[:\s]*|x\s*)?(\d{1,4})(?!\d)"
            r".*?\$?\s*(\d+\.\d{2})(?!\d).*?\$?\s*(\d+\.\d{2})(?!\d)\D*$",
            re.IGNORECASE,
        ),
        _desc_qty_price_total,
    ),
    LinePattern(
        "flex_qty_desc_price_total",
        re.compile(
            r"^(\d{1,4})\s*[x.)-]?\s+(.+?)\s+\$?\s*(\d+\.\d{2})(?!\d).*?\$?\s*(\d+\.\d{2})(?!\d)\D*$",
            re.IGNORECASE,
        ),
        _qty_first,
    ),
    LinePattern(
        "flex_sku_desc_price",
        re.compile(r"^([A-Z0-9]+(?:-[A-Z0-9]+)+)\W+(.+?)[\s:.-]+\$?\s*(\d+\.\d{2})(?!\d)\D*$", re.IGNORECASE),
        _sku_desc_price,
        itemized=False,
    ),
    LinePattern(
        "flex_desc_price",
        re.compile(r"^(.+?)[\s:.-]+\$\s*(\d+\.\d{2})(?!\d)\D*$", re.IGNORECASE),
        _desc_price,
        itemized=False,
    ),
]


def parse_quantity(value) -> int:
    """Integer quantity, defaulting to 1 for missing, malformed or non-positive input"""
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        return 1
    return quantity if quantity >= 1 else 1


def parse_money(value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def normalize_sku(token: str) -> str | None:
    """Return the catalog form of a manufacturer part number, or None"""
    token = token.strip(TOKEN_PUNCTUATION)
    for manufacturer, pattern in SKU_PATTERNS.items():
        match = pattern.match(token)
        if not match:
            continue
        if manufacturer == "GoBILDA":
            return match.group(1)
        if manufacturer == "REV":
            return token.upper()
        return token.lower()
    return None


def find_sku(text: str) -> tuple[str, str] | None:
    """First manufacturer part number in text, as (sku, raw token)"""
    for token in text.split():
        sku = normalize_sku(token)
        if sku:
            return sku, token
    return None


def collapse_whitespace(text: str) -> str:
    return WHITESPACE_PATTERN.sub(" ", text).strip()


def clean_description(text: str) -> str:
    """Drop special characters (hyphens survive), collapse spaces, cap length"""
    return collapse_whitespace(NON_WORD_PATTERN.sub(" ", text))[:MAX_DESCRIPTION_LENGTH].strip()


def is_noise_line(line: str) -> bool:
    """True for header, footer, contact and other non-item lines"""
    stripped = line.strip()
    lower_line = stripped.lower()

    if any(keyword in lower_line for keyword in NOISE_KEYWORDS):
        return True

    if TOTAL_LINE_PATTERN.match(stripped):
        return True

    if PHONE_PATTERN.match(stripped) or ZIP_PATTERN.match(stripped):
        return True

    if (
        len(stripped) < MIN_LINE_LENGTH
        or DIGITS_ONLY_PATTERN.match(stripped)
        or SINGLE_WORD_PATTERN.match(stripped)
    ):
        return True

    return False


def candidate_lines(text: str) -> list[str]:
    """Stripped, non-empty lines that survive the noise filter, in document order"""
    lines = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if is_noise_line(line):
            logger.debug("Skipping non-item line", length=len(line))
            continue
        lines.append(line)
    return lines


def _item_from_fields(fields: dict, confidence: float) -> ParsedInvoiceItem:
    description = collapse_whitespace(fields.get("description") or "")
    sku = fields.get("sku")

    if sku is not None:
        normalized = normalize_sku(sku)
        if normalized:
            sku = normalized
        elif not any(ch.isdigit() for ch in sku):
            # A leading word, not a part number
            description = collapse_whitespace(f"{sku} {description}")
            sku = None

    if sku is None:
        found = find_sku(description)
        if found:
            sku = found[0]

    quantity = parse_quantity(fields.get("quantity"))
    price = parse_money(fields.get("price"))
    total = parse_money(fields.get("total"))

    return ParsedInvoiceItem(
        description=description or "Unknown Item",
        quantity=quantity,
        price=price,
        total=total,
        sku=sku,
        confidence=confidence,
    )


def read_structured_line(line: str) -> tuple[LinePattern, ParsedInvoiceItem] | None:
    """First structured pattern matching the line, with the item it reads"""
    for pattern in STRUCTURED_PATTERNS:
        match = pattern.regex.match(line)
        if match:
            logger.debug("Structured line match", pattern=pattern.name)
            return pattern, _item_from_fields(pattern.extract(match), STRUCTURED_CONFIDENCE)
    return None


def read_flexible_line(line: str) -> tuple[LinePattern, ParsedInvoiceItem] | None:
    # Loose shapes also match junk, so a match must still look like a product
    for pattern in FLEXIBLE_PATTERNS:
        match = pattern.regex.match(line)
        if not match:
            continue
        item = _item_from_fields(pattern.extract(match), FLEXIBLE_CONFIDENCE)
        if LETTER_WORD_PATTERN.search(item.description) and item.price > 0:
            logger.debug("Flexible line match", pattern=pattern.name)
            return pattern, item
    return None


def parse_structured_line(line: str) -> ParsedInvoiceItem | None:
    reading = read_structured_line(line)
    return reading[1] if reading else None


def parse_flexible_line(line: str) -> ParsedInvoiceItem | None:
    reading = read_flexible_line(line)
    return reading[1] if reading else None


def parse_aggressive_line(line: str) -> ParsedInvoiceItem | None:
    """
    Read a line as "some words plus some numbers".

    Requires a 3+ letter word and a numeric token above 1. Every such token is
    a price candidate: the first value in PREFERRED_PRICE_RANGE wins, else the
    largest. A standalone integer from 1 to MAX_INFERRED_QUANTITY (other than
    the price token) is the quantity. A manufacturer part number is taken as
    the SKU and never read as a number.
    """
    if not LETTER_WORD_PATTERN.search(line):
        return None

    working = line
    sku = None
    found = find_sku(line)
    if found:
        sku, token = found
        working = working.replace(token, " ", 1)

    tokens = []
    for match in NUMERIC_TOKEN_PATTERN.finditer(working):
        raw_value = match.group(2)
        tokens.append({
            "value": float(raw_value),
            "integer": "." not in raw_value and not match.group(1),
        })

    candidates = [t for t in tokens if t["value"] > 1]
    if not candidates:
        return None

    low, high = PREFERRED_PRICE_RANGE
    price_token = next((t for t in candidates if low <= t["value"] < high), None)
    if price_token is None:
        price_token = max(candidates, key=lambda t: t["value"])
    price = price_token["value"]

    quantity = next(
        (
            int(t["value"]) for t in tokens
            if t["integer"] and t is not price_token and 1 <= t["value"] <= MAX_INFERRED_QUANTITY
        ),
        1,
    )

    description = clean_description(NUMERIC_STRIP_PATTERN.sub(" ", working))
    if len(description) <= 3:
        return None

    return ParsedInvoiceItem(
        description=description,
        quantity=quantity,
        price=price,
        total=round(price * quantity, 2),
        sku=sku,
        confidence=AGGRESSIVE_CONFIDENCE,
    )


def extract_line_items(text: str, vendor: str | None = None) -> list[ParsedInvoiceItem]:
    """
    Split invoice text into line items, in document order.

    The vendor only labels log records; extraction is vendor-agnostic.
    """
    lines = candidate_lines(text)

    readings: dict[int, tuple[LinePattern, ParsedInvoiceItem]] = {}
    for index, line in enumerate(lines):
        reading = read_structured_line(line)
        if reading:
            readings[index] = reading
    structured_count = len(readings)

    if len(readings) < MIN_STRUCTURED_ITEMS:
        for index, line in enumerate(lines):
            if index in readings:
                continue
            reading = read_flexible_line(line)
            if reading:
                readings[index] = reading

    found = {index: item for index, (_, item) in readings.items()}
    tier = "structured" if len(found) == structured_count else "flexible"

    if len(found) < MIN_STRUCTURED_ITEMS:
        aggressive_count = 0
        for index, line in enumerate(lines):
            reading = readings.get(index)
            if reading and reading[0].itemized:
                continue
            item = parse_aggressive_line(line)
            if item:
                found[index] = item
                aggressive_count += 1
        if aggressive_count:
            tier = "aggressive"
        items = [found[index] for index in sorted(found)][:AGGRESSIVE_MAX_ITEMS]
    else:
        items = [found[index] for index in sorted(found)]

    logger.info(
        "Extracted invoice line items",
        vendor=vendor,
        candidate_lines=len(lines),
        items=len(items),
        tier=tier
    )
    return items
