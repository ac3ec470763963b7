"""Project & Bid API routers."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.session import get_db
from src.models.enums import BidStatus
from src.modules.auth.auth import (
    AuthenticatedUser,
    get_current_user,
    require_admin,
    require_customer,
    require_vendor,
)
from src.modules.catalog.service import CatalogService, get_catalog_service
from src.modules.project.bid_service import BidService
from src.modules.project.project_service import ProjectService
from src.modules.project.status import normalize_status
from src.modules.project.schemas import (
    AcceptDeliveryRequest,
    BidCreate,
    BidListResponse,
    BidResponse,
    BidStatusUpdate,
    BidUpdate,
    BidWithVendorStats,
    CancelRequest,
    DeliverRequest,
    ModerationRequest,
    ProjectCreate,
    ProjectListResponse,
    ProjectResponse,
    ProjectUpdate,
    RateVendorRequest,
    RejectDeliveryRequest,
    VendorBidListResponse,
    VendorStats,
)

router = APIRouter(prefix="/projects", tags=["projects"])
bid_router = APIRouter(prefix="/bids", tags=["bids"])


def _page(items, total: int, limit: int, offset: int) -> ProjectListResponse:
    return ProjectListResponse(
        items=[ProjectResponse.model_validate(p) for p in items],
        total=total,
        limit=limit,
        offset=offset,
    )


# ---------------------------------------------------------------------------
# Project CRUD
# ---------------------------------------------------------------------------


@router.post("/", response_model=ProjectResponse, status_code=201)
async def create_project(
    body: ProjectCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    """Create a Draft project; every total is computed server-side."""
    require_customer(user)
    svc = ProjectService(db, catalog_service=catalog_service)
    project = await svc.create_project(user.id, body)
    return ProjectResponse.model_validate(project)


@router.get("/open", response_model=ProjectListResponse)
async def list_open_projects(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Projects currently accepting bids."""
    items, total = await ProjectService(db).list_open(limit=limit, offset=offset)
    return _page(items, total, limit, offset)


@router.get("/mine", response_model=ProjectListResponse)
async def list_my_projects(
    status: str | None = Query(None, description="Status name or integer code"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    require_customer(user)
    items, total = await ProjectService(db).list_for_customer(
        user.id, status=normalize_status(status) if status else None, limit=limit, offset=offset
    )
    return _page(items, total, limit, offset)


@router.get("/assigned", response_model=ProjectListResponse)
async def list_assigned_projects(
    status: str | None = Query(None, description="Status name or integer code"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Projects the calling vendor won."""
    require_vendor(user)
    items, total = await ProjectService(db).list_assigned(
        user.id, status=normalize_status(status) if status else None, limit=limit, offset=offset
    )
    return _page(items, total, limit, offset)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: uuid.UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    project = await ProjectService(db).get_visible_project(project_id, user.id, user.role)
    return ProjectResponse.model_validate(project)


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: uuid.UUID,
    body: ProjectUpdate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    """Edit a Draft project owned by the caller."""
    require_customer(user)
    svc = ProjectService(db, catalog_service=catalog_service)
    project = await svc.update_project(project_id, user.id, body)
    return ProjectResponse.model_validate(project)


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


@router.post("/{project_id}/moderation", response_model=ProjectResponse)
async def moderate_project(
    project_id: uuid.UUID,
    body: ModerationRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Release a Draft for bidding as Published or InBidding."""
    require_admin(user)
    project = await ProjectService(db).moderate(project_id, user.id, body.status, body.reason)
    return ProjectResponse.model_validate(project)


@router.post("/{project_id}/deliver", response_model=ProjectResponse)
async def deliver_project(
    project_id: uuid.UUID,
    body: DeliverRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    require_vendor(user)
    project = await ProjectService(db).deliver(project_id, user.id, body.note, body.files)
    return ProjectResponse.model_validate(project)


@router.post("/{project_id}/accept-delivery", response_model=ProjectResponse)
async def accept_delivery(
    project_id: uuid.UUID,
    body: AcceptDeliveryRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Complete the project and compute the commission split."""
    require_customer(user)
    project = await ProjectService(db).accept_delivery(
        project_id, user.id, rating=body.rating, comment=body.comment
    )
    return ProjectResponse.model_validate(project)


@router.post("/{project_id}/reject-delivery", response_model=ProjectResponse)
async def reject_delivery(
    project_id: uuid.UUID,
    body: RejectDeliveryRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    require_customer(user)
    project = await ProjectService(db).reject_delivery(project_id, user.id, body.reason)
    return ProjectResponse.model_validate(project)


@router.post("/{project_id}/cancel", response_model=ProjectResponse)
async def cancel_project(
    project_id: uuid.UUID,
    body: CancelRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    project = await ProjectService(db).cancel(project_id, user.id, user.role, body.reason)
    return ProjectResponse.model_validate(project)


@router.post("/{project_id}/rate-vendor", response_model=ProjectResponse)
async def rate_vendor(
    project_id: uuid.UUID,
    body: RateVendorRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    require_customer(user)
    project = await ProjectService(db).rate_vendor(project_id, user.id, body.value, body.comment)
    return ProjectResponse.model_validate(project)


# ---------------------------------------------------------------------------
# Bids on a project
# ---------------------------------------------------------------------------


@router.get("/{project_id}/bids", response_model=BidListResponse)
async def list_project_bids(
    project_id: uuid.UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Bids newest first, each with the bidding vendor's completion stats."""
    rows = await BidService(db).list_bids(project_id, user.id, user.role)
    items = [
        BidWithVendorStats(
            **BidResponse.model_validate(bid).model_dump(),
            vendor_stats=VendorStats(**stats),
        )
        for bid, stats in rows
    ]
    return BidListResponse(items=items, total=len(items))


@router.post("/{project_id}/bids", response_model=BidResponse, status_code=201)
async def submit_bid(
    project_id: uuid.UUID,
    body: BidCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    require_vendor(user)
    bid = await BidService(db).submit_bid(
        project_id, user.id, price=body.price, days=body.days, message=body.message
    )
    return BidResponse.model_validate(bid)


# ---------------------------------------------------------------------------
# Bid actions
# ---------------------------------------------------------------------------


@bid_router.get("/mine", response_model=VendorBidListResponse)
async def list_my_bids(
    status: BidStatus | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    require_vendor(user)
    items, total = await BidService(db).list_for_vendor(
        user.id, status=status, limit=limit, offset=offset
    )
    return VendorBidListResponse(
        items=[BidResponse.model_validate(b) for b in items],
        total=total,
        limit=limit,
        offset=offset,
    )


@bid_router.put("/{bid_id}", response_model=BidResponse)
async def update_bid(
    bid_id: uuid.UUID,
    body: BidUpdate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Revise the caller's own pending bid."""
    require_vendor(user)
    bid = await BidService(db).update_bid(
        bid_id, user.id, price=body.price, days=body.days, message=body.message
    )
    return BidResponse.model_validate(bid)


@bid_router.delete("/{bid_id}", response_model=BidResponse)
async def withdraw_bid(
    bid_id: uuid.UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    require_vendor(user)
    bid = await BidService(db).withdraw_bid(bid_id, user.id)
    return BidResponse.model_validate(bid)


@bid_router.post("/{bid_id}/status", response_model=BidResponse)
async def update_bid_status(
    bid_id: uuid.UUID,
    body: BidStatusUpdate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Accept or reject a bid. Accepting assigns the vendor and starts work."""
    require_customer(user)
    bid = await BidService(db).update_bid_status(bid_id, user.id, body.action, body.reason)
    return BidResponse.model_validate(bid)
