"""Pydantic v2 schemas for project & bid API endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, computed_field

from src.models.enums import BidStatus, ProjectStatus
from src.modules.pricing.schemas import AccessoryCharge, FreeformDetails, LineItemInput
from src.modules.project.constants import MAX_EXECUTION_DAYS
from src.modules.project.status import encode_status, normalize_status

# Requests may carry a status as its name or its integer code
StatusInput = Annotated[ProjectStatus, BeforeValidator(normalize_status)]

# ---------------------------------------------------------------------------
# Project item schemas
# ---------------------------------------------------------------------------


class ProjectItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    position: int
    is_main: bool
    product_type: str
    subtype: str | None = None
    material: str | None = None
    color: str | None = None
    width: Decimal
    height: Decimal
    length: Decimal
    quantity: int
    selected_accessories: list[str] = Field(default_factory=list)
    description: str | None = None
    custom_details: FreeformDetails | None = None
    is_freeform: bool
    price_per_unit: Decimal
    measure: Decimal
    accessory_cost: Decimal
    accessories: list[AccessoryCharge] = Field(default_factory=list)
    total: Decimal


# ---------------------------------------------------------------------------
# Project schemas
# ---------------------------------------------------------------------------


class ProjectCreate(BaseModel):
    title: str | None = Field(None, max_length=255)
    description: str | None = Field(None, max_length=5000)
    main_item: LineItemInput
    additional_items: list[LineItemInput] = Field(default_factory=list, max_length=50)
    requested_days: int | None = Field(None, ge=1, le=MAX_EXECUTION_DAYS)
    # Accepted for compatibility; the baseline is always recomputed
    total: Decimal | None = None


class ProjectUpdate(BaseModel):
    title: str | None = Field(None, max_length=255)
    description: str | None = Field(None, max_length=5000)
    main_item: LineItemInput | None = None
    additional_items: list[LineItemInput] | None = Field(None, max_length=50)
    requested_days: int | None = Field(None, ge=1, le=MAX_EXECUTION_DAYS)
    total: Decimal | None = None


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    customer_id: uuid.UUID
    title: str | None = None
    description: str | None = None
    status: ProjectStatus
    baseline_total: Decimal
    requested_days: int | None = None
    currency: str
    assigned_vendor_id: uuid.UUID | None = None
    accepted_bid_id: uuid.UUID | None = None
    agreed_price: Decimal | None = None
    accepted_days: int | None = None
    started_at: datetime | None = None
    expected_end_at: datetime | None = None
    delivery_note: str | None = None
    delivery_files: list[str] = Field(default_factory=list)
    delivered_at: datetime | None = None
    delivery_rejection_reason: str | None = None
    commission_percent: Decimal | None = None
    platform_commission: Decimal | None = None
    vendor_earnings: Decimal | None = None
    completed_at: datetime | None = None
    vendor_rating: int | None = None
    vendor_rating_comment: str | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    version: int
    created_at: datetime
    updated_at: datetime
    items: list[ProjectItemResponse] = Field(default_factory=list)

    @computed_field
    @property
    def status_code(self) -> int:
        return encode_status(self.status)


class ProjectListResponse(BaseModel):
    items: list[ProjectResponse]
    total: int
    limit: int
    offset: int


class ModerationRequest(BaseModel):
    status: StatusInput
    reason: str | None = Field(None, max_length=1000)


class DeliverRequest(BaseModel):
    note: str | None = Field(None, max_length=5000)
    files: list[str] = Field(default_factory=list, max_length=20)


class AcceptDeliveryRequest(BaseModel):
    rating: int | None = Field(None, ge=1, le=5)
    comment: str | None = Field(None, max_length=2000)


class RejectDeliveryRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=2000)


class CancelRequest(BaseModel):
    reason: str | None = Field(None, max_length=1000)


class RateVendorRequest(BaseModel):
    value: int = Field(..., ge=1, le=5)
    comment: str | None = Field(None, max_length=2000)


# ---------------------------------------------------------------------------
# Bid schemas
# ---------------------------------------------------------------------------


class BidCreate(BaseModel):
    # Bounds are checked against the project, not here, so that violations
    # come back as PRICE_OUT_OF_BOUNDS / DURATION_OUT_OF_BOUNDS
    price: Decimal
    days: int
    message: str | None = Field(None, max_length=5000)


class BidUpdate(BaseModel):
    price: Decimal | None = None
    days: int | None = None
    message: str | None = Field(None, max_length=5000)


class BidStatusUpdate(BaseModel):
    action: Literal["accept", "reject"]
    reason: str | None = Field(None, max_length=1000)


class BidResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    project_id: uuid.UUID
    vendor_id: uuid.UUID
    price: Decimal
    days: int
    message: str | None = None
    status: BidStatus
    revision: int
    decided_at: datetime | None = None
    withdrawn_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class VendorStats(BaseModel):
    accepted_count: int
    completed_count: int
    rating: float


class BidWithVendorStats(BidResponse):
    vendor_stats: VendorStats


class BidListResponse(BaseModel):
    items: list[BidWithVendorStats]
    total: int


class VendorBidListResponse(BaseModel):
    items: list[BidResponse]
    total: int
    limit: int
    offset: int
