from pydantic import BaseModel, ConfigDict, Field


class MatchedPart(BaseModel):
    """Snapshot of the catalog family an invoice line was matched to"""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    sku: str
    manufacturer: str
    category: str
    series: str


class ParsedInvoiceItem(BaseModel):
    description: str
    quantity: int = Field(default=1, ge=1)
    price: float = 0.0
    total: float = 0.0
    sku: str | None = None
    manufacturer: str | None = None  # Set from the matched family
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    matched_part: MatchedPart | None = None


class InvoiceMetadata(BaseModel):
    vendor: str = "Unknown Vendor"
    invoice_number: str = "N/A"
    date: str
    total_amount: float = 0.0


class ParsedInvoice(BaseModel):
    model_config = ConfigDict(frozen=True)

    vendor: str
    invoice_number: str
    date: str
    total_amount: float
    items: list[ParsedInvoiceItem] = []
    parsing_confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class InventorySuggestions(BaseModel):
    to_add: list[ParsedInvoiceItem]
    suggestions: list[str]


class InventoryDraft(BaseModel):
    """Inventory row proposed from an invoice line (not persisted here)"""
    part_id: str
    part_number: str
    name: str
    description: str
    manufacturer: str
    category: str
    unit_cost: float
    quantity: int = Field(ge=1)
    matched: bool
    notes: str = ""
