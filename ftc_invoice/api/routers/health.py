from fastapi import APIRouter, Depends
from ...core.config import settings
from ...services.catalog import PartsCatalog
from ..deps import get_catalog

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(catalog: PartsCatalog = Depends(get_catalog)):
    """Liveness check; also proves the parts catalog loaded"""
    return {
        "status": "ok",
        "app": settings.app_name,
        "env": settings.app_env,
        "catalog_families": len(catalog),
        "catalog_variants": catalog.variant_count,
    }
