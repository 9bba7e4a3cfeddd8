from fastapi import APIRouter, Depends, HTTPException
from ...models.catalog import PartFamily
from ...services.catalog import PartsCatalog
from ..deps import get_catalog

router = APIRouter(prefix="/parts", tags=["parts"])


@router.get("")
async def list_parts(
    q: str | None = None,
    manufacturer: str | None = None,
    category: str | None = None,
    catalog: PartsCatalog = Depends(get_catalog),
):
    """Search the parts catalog by text, manufacturer and category"""
    families = catalog.search(q, manufacturer=manufacturer, category=category)
    return {
        "total": len(families),
        "manufacturers": catalog.manufacturers(),
        "categories": catalog.categories(),
        "parts": families,
    }


@router.get("/sku/{sku}")
async def get_part_by_sku(sku: str, catalog: PartsCatalog = Depends(get_catalog)):
    found = catalog.find_by_sku(sku)
    if not found:
        raise HTTPException(status_code=404, detail=f"No part with SKU {sku}")

    family, variant = found
    return {"part": family, "variant": variant}


@router.get("/{part_id}", response_model=PartFamily)
async def get_part(part_id: str, catalog: PartsCatalog = Depends(get_catalog)):
    family = catalog.get(part_id)
    if not family:
        raise HTTPException(status_code=404, detail="Part not found")
    return family
