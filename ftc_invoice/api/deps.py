from pydantic import BaseModel
from ..core.config import settings
from ..models.invoice import InventoryDraft, ParsedInvoice, ParsedInvoiceItem
from ..services.catalog import PartsCatalog, get_default_catalog


def get_catalog() -> PartsCatalog:
    """FastAPI dependency; override in tests to inject a fake catalog"""
    return get_default_catalog()


def max_invoice_chars() -> int:
    return settings.max_invoice_chars


class ParseRequest(BaseModel):
    text: str


class ParseResponse(BaseModel):
    invoice: ParsedInvoice
    suggestions: list[str]


class SuggestionsRequest(BaseModel):
    items: list[ParsedInvoiceItem]


class SuggestionsResponse(BaseModel):
    to_add: list[ParsedInvoiceItem]
    suggestions: list[str]


class DraftsRequest(BaseModel):
    invoice_number: str | None = None
    items: list[ParsedInvoiceItem]


class DraftsResponse(BaseModel):
    drafts: list[InventoryDraft]
