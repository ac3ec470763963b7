"""Centralized v1 API router; all module routers are included here."""

from fastapi import APIRouter

from src.modules.catalog.router import router as catalog_router
from src.modules.pricing.router import router as pricing_router
from src.modules.project.router import bid_router
from src.modules.project.router import router as project_router

v1_router = APIRouter(prefix="/api/v1")
v1_router.include_router(catalog_router)
v1_router.include_router(pricing_router)
v1_router.include_router(project_router)
v1_router.include_router(bid_router)
