"""Pricing preview API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from src.modules.auth.auth import AuthenticatedUser, get_current_user
from src.modules.catalog.service import CatalogService, get_catalog_service
from src.modules.pricing.calculator import quote_project
from src.modules.pricing.schemas import PricedLineItemResponse, QuoteRequest, QuoteResponse

router = APIRouter(prefix="/pricing", tags=["pricing"])


@router.post("/quote", response_model=QuoteResponse)
async def quote(
    body: QuoteRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    """Price line items against the current catalog. Nothing is persisted."""
    catalog = await catalog_service.get_catalog()
    result = quote_project(body.main_item, body.additional_items, catalog)
    return QuoteResponse(
        main_item=(
            PricedLineItemResponse.model_validate(result.main_item)
            if result.main_item is not None
            else None
        ),
        additional_items=[
            PricedLineItemResponse.model_validate(item) for item in result.additional_items
        ],
        baseline_total=result.baseline_total,
    )
