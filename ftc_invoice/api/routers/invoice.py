from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from loguru import logger
from ...services.catalog import PartsCatalog
from ...services.invoice_parser import InvoiceParser
from ...services.suggestions import build_inventory_drafts, generate_inventory_suggestions
from ..deps import (
    DraftsRequest,
    DraftsResponse,
    ParseRequest,
    ParseResponse,
    SuggestionsRequest,
    SuggestionsResponse,
    get_catalog,
    max_invoice_chars,
)

router = APIRouter(prefix="/invoices", tags=["invoices"])


def _parse(text: str, catalog: PartsCatalog, limit: int) -> ParseResponse:
    if len(text) > limit:
        raise HTTPException(
            status_code=413,
            detail=f"Invoice text is {len(text)} characters; the limit is {limit}"
        )

    parsed = InvoiceParser(catalog).parse(text)
    suggestions = generate_inventory_suggestions(parsed.items)
    return ParseResponse(invoice=parsed, suggestions=suggestions.suggestions)


@router.post("/parse", response_model=ParseResponse)
def parse_invoice(
    req: ParseRequest,
    catalog: PartsCatalog = Depends(get_catalog),
    limit: int = Depends(max_invoice_chars),
):
    """
    Parse OCR'd invoice text and match its lines to the parts catalog.

    Example request:
    {
        "text": "GoBILDA Invoice\\n5203-2402-0051 GoBILDA Motor 117 RPM 1 $54.99 $54.99"
    }

    The response carries the parsed invoice (vendor, number, date, total,
    items with match confidence) plus review suggestions.
    """
    return _parse(req.text, catalog, limit)


@router.post("/parse-file", response_model=ParseResponse)
async def parse_invoice_file(
    request: Request,
    file: UploadFile = File(None),
    catalog: PartsCatalog = Depends(get_catalog),
    limit: int = Depends(max_invoice_chars),
):
    """
    Parse an OCR text file.

    Accepts either:
    - multipart/form-data (file upload via form)
    - text/plain (raw body)
    """
    if file:
        content = await file.read()
    else:
        content = await request.body()

    if not content:
        raise HTTPException(status_code=422, detail="No invoice text provided (either multipart or raw body)")

    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError:
        logger.warning("Rejected non UTF-8 invoice upload", size_bytes=len(content))
        raise HTTPException(status_code=400, detail="Invoice text must be UTF-8 encoded")

    # Parsing is CPU-bound; keep it off the event loop
    return await run_in_threadpool(_parse, text, catalog, limit)


@router.post("/suggestions", response_model=SuggestionsResponse)
def inventory_suggestions(req: SuggestionsRequest):
    """Split parsed items into ready-to-add and needs-review, with hints"""
    result = generate_inventory_suggestions(req.items)
    return SuggestionsResponse(to_add=result.to_add, suggestions=result.suggestions)


@router.post("/inventory-drafts", response_model=DraftsResponse)
def inventory_drafts(req: DraftsRequest):
    """Propose inventory rows for parsed items (nothing is stored)"""
    return DraftsResponse(drafts=build_inventory_drafts(req.items, req.invoice_number))
