"""Catalog API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from src.modules.catalog.schemas import CatalogResponse
from src.modules.catalog.service import CatalogService, get_catalog_service

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("/products", response_model=CatalogResponse)
async def list_catalog_products(
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    """Return the resolved product catalog; ``stale`` marks a snapshot."""
    catalog, stale = await catalog_service.resolve()
    return CatalogResponse(
        products=catalog.products,
        price_rules=catalog.price_rules,
        stale=stale,
    )
