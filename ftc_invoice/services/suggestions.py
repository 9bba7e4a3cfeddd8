from loguru import logger
from ..models.invoice import InventoryDraft, InventorySuggestions, ParsedInvoiceItem

READY_CONFIDENCE = 0.5
BULK_ADD_THRESHOLD = 5
DRAFT_MIN_CONFIDENCE = 0.3
UNMATCHED_CATEGORY = "Tools & Accessories"


def calculate_parsing_confidence(items: list[ParsedInvoiceItem]) -> float:
    """0.7 x mean item confidence + 0.3 x share of matched items; 0 for no items"""
    if not items:
        return 0.0

    average_confidence = sum(item.confidence for item in items) / len(items)
    match_rate = sum(1 for item in items if item.matched_part) / len(items)
    return min(average_confidence * 0.7 + match_rate * 0.3, 1.0)


def is_ready_to_add(item: ParsedInvoiceItem) -> bool:
    return item.matched_part is not None and item.confidence > READY_CONFIDENCE


def generate_inventory_suggestions(items: list[ParsedInvoiceItem]) -> InventorySuggestions:
    to_add = [item for item in items if is_ready_to_add(item)]

    suggestions = [
        f"Found {len(to_add)} parts ready to add to inventory",
        f"{len(items) - len(to_add)} items need manual review",
        "Consider bulk adding these items" if len(to_add) > BULK_ADD_THRESHOLD else "",
        "GoBILDA parts detected" if any(item.manufacturer == "GoBILDA" for item in items) else "",
        "REV parts detected" if any(item.manufacturer == "REV" for item in items) else "",
    ]

    return InventorySuggestions(to_add=to_add, suggestions=[s for s in suggestions if s])


def build_inventory_drafts(
    items: list[ParsedInvoiceItem],
    invoice_number: str | None = None,
) -> list[InventoryDraft]:
    """
    Turn parsed lines into proposed inventory rows.

    Lines at or below DRAFT_MIN_CONFIDENCE are left for manual entry. Rows
    sharing a part number are merged by adding their quantities.
    """
    source = invoice_number or "AI-parsed"
    drafts: dict[str, InventoryDraft] = {}
    unmatched_count = 0

    for item in items:
        if item.confidence <= DRAFT_MIN_CONFIDENCE:
            continue

        match = item.matched_part
        if match is None:
            unmatched_count += 1

        part_number = item.sku or (match.sku if match else f"UNKNOWN-{unmatched_count}")

        if part_number in drafts:
            existing = drafts[part_number]
            drafts[part_number] = existing.model_copy(
                update={"quantity": existing.quantity + item.quantity}
            )
            continue

        drafts[part_number] = InventoryDraft(
            part_id=match.id if match else f"unmatched-{unmatched_count}",
            part_number=part_number,
            name=match.name if match else item.description,
            description=item.description,
            manufacturer=(match.manufacturer if match else None) or item.manufacturer or "Unknown",
            category=match.category if match else UNMATCHED_CATEGORY,
            unit_cost=item.price,
            quantity=item.quantity,
            matched=match is not None,
            notes=f"Added from invoice {source} - {'Matched' if match else 'Unmatched'}",
        )

    logger.info("Built inventory drafts", items=len(items), drafts=len(drafts))
    return list(drafts.values())
